"""
Pre/post transforms shared by engine prediction modules.

pre:  (new_data, model_fit) -> adapted new_data
post: (raw_result, model_fit) -> normalized result
"""

import numpy as np
import pandas as pd


def as_matrix(new_data, model_fit):
    """Float matrix for engines fit through the matrix interface."""
    return np.asarray(new_data, dtype=float)


def to_numeric(result, model_fit):
    """Unnamed numeric vector; single-column matrices are flattened."""
    values = np.asarray(result, dtype=float)
    if values.ndim == 2 and values.shape[1] == 1:
        values = values.ravel()
    return values


def to_class(result, model_fit):
    """Categorical vector with the training levels as categories."""
    return pd.Categorical(np.asarray(result), categories=list(model_fit.lvl))


def to_prob_frame(result, model_fit):
    """
    One column per training level, in level order.

    Engine column order follows the fitted estimator's ``classes_`` when it
    has them; levels never seen during fitting get probability zero.
    """
    values = np.asarray(result, dtype=float)
    classes = getattr(model_fit.fit, "classes_", None)
    columns = list(classes) if classes is not None else list(model_fit.lvl)
    frame = pd.DataFrame(values, columns=columns)
    return frame.reindex(columns=list(model_fit.lvl), fill_value=0.0)
