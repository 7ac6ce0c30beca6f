"""
Tuning Engine Module
====================

Responsibility:
- Expands a grid of canonical argument values (ParameterGrid).
- Fits and scores each candidate specification on a holdout set.
- Selects the best candidate and persists the results table.
"""

from .tuning_engine import TuningEngine, score_fit

__all__ = ['TuningEngine', 'score_fit']
