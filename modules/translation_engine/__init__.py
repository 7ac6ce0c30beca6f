"""
Translation Engine Module
=========================

Responsibility:
- Validates mode and engine of a model specification.
- Resolves canonical arguments to engine-native names.
- Enforces protected fit arguments and applies engine defaults.
- Produces the deferred, printable fit call.
"""

from .translation_engine import build_fit_call, resolve_arguments, translate

__all__ = ['build_fit_call', 'resolve_arguments', 'translate']
