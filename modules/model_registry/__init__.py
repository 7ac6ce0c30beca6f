"""
Model Registry Module
=====================

Responsibility:
- Mode set and engine table per model.
- Argument key from canonical argument names to engine-native names.
- Engine descriptors: fit spec, prediction specs, encodings, dependencies.
"""

from .descriptors import ArgSpec, EncodingSpec, EngineDescriptor, FitSpec, PredSpec
from .model_registry import ModelRegistry, get_registry

__all__ = [
    'ArgSpec', 'EncodingSpec', 'EngineDescriptor', 'FitSpec', 'PredSpec',
    'ModelRegistry', 'get_registry',
]
