"""
Model Specification Module
==========================

Responsibility:
- The user-facing ModelSpec value (mode + unevaluated arguments + engine).
- Constructor validation of the mode.
- Engine selection, mode changes and argument updates.
- Data descriptors for arguments computed from the training data.
"""

from .data_descriptors import DataDescriptors
from .model_spec import ModelSpec, new_model_spec, required_pkgs, set_engine, set_mode, tunable, update

__all__ = [
    'DataDescriptors', 'ModelSpec', 'new_model_spec', 'required_pkgs',
    'set_engine', 'set_mode', 'tunable', 'update',
]
