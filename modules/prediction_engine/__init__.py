"""
Prediction Engine Module
========================

Responsibility:
- Selects the engine's prediction module for the requested type.
- Replays training-time encoding and applies pre/post transforms.
- Enforces the output shape contract (numeric / class / prob).
- Persists predictions as Parquet.
"""

from .prediction_engine import PredictionEngine

__all__ = ['PredictionEngine']
