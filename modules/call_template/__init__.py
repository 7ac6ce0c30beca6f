"""
Call Template Module
====================

Responsibility:
- Immutable, printable descriptions of fit and predict calls.
- Placeholder slots bound to live values only when a call is evaluated.
- Lazy import of the engine package at the point of use.
"""

from .call_template import (
    CallTemplate,
    Deferred,
    FunctionRef,
    MissingArg,
    Placeholder,
    TuneMarker,
    deferred,
    render_value,
    tune,
)

__all__ = [
    'CallTemplate', 'Deferred', 'FunctionRef', 'MissingArg', 'Placeholder',
    'TuneMarker', 'deferred', 'render_value', 'tune',
]
