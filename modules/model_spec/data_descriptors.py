from dataclasses import dataclass
from typing import Any, Tuple

import pandas as pd


@dataclass(frozen=True)
class DataDescriptors:
    """
    Facts about the training data that deferred arguments can use, e.g.
    ``deferred(lambda d: d.n_preds // 2)``.

    n_obs:     training rows
    n_preds:   predictor columns before encoding
    n_cols:    predictor columns after indicator encoding
    n_factors: non-numeric predictor columns
    levels:    outcome levels (empty for regression)
    """
    n_obs: int
    n_preds: int
    n_cols: int
    n_factors: int
    levels: Tuple[Any, ...] = ()

    @property
    def n_levels(self) -> int:
        return len(self.levels)

    @classmethod
    def from_data(cls, X: pd.DataFrame, X_encoded: pd.DataFrame, levels=None) -> "DataDescriptors":
        n_factors = sum(
            1 for c in X.columns
            if not pd.api.types.is_numeric_dtype(X[c]) or pd.api.types.is_bool_dtype(X[c])
        )
        return cls(
            n_obs=len(X),
            n_preds=X.shape[1],
            n_cols=X_encoded.shape[1],
            n_factors=n_factors,
            levels=tuple(levels) if levels is not None else (),
        )
