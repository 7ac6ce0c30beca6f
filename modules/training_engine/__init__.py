"""
Training Engine Module
======================

Responsibility:
- Translates a model specification and checks engine dependencies.
- Converts formula or x/y input to the engine's fit interface.
- Evaluates the deferred fit call and returns a ModelFit.
- Persists fitted models (.pkl) and training metadata (.json).
"""

from .model_fit import FitPreprocessor, ModelFit
from .training_engine import TrainingEngine

__all__ = ['FitPreprocessor', 'ModelFit', 'TrainingEngine']
