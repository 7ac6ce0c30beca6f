import inspect
import logging
from typing import Any, Dict

from sklearn.linear_model import ElasticNet, Ridge
from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor

logger = logging.getLogger("engines")


def _filter_params(model_class, params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove parameters from `params` that are not accepted by `model_class` constructor.
    """
    sig = inspect.signature(model_class.__init__)

    valid_keys = [
        p.name for p in sig.parameters.values()
        if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
    ]

    # Always allow **kwargs if the model supports it
    if any(p.kind == p.VAR_KEYWORD for p in sig.parameters.values()):
        return params

    dropped = sorted(k for k in params if k not in valid_keys)
    if dropped:
        logger.warning(f"{model_class.__name__} does not accept {dropped}; ignoring them.")
    return {k: v for k, v in params.items() if k in valid_keys}


def _fit_estimator(model_class, X, y, sample_weight, params: Dict[str, Any]):
    model = model_class(**_filter_params(model_class, params))
    if sample_weight is None:
        return model.fit(X, y)
    if 'sample_weight' not in inspect.signature(model.fit).parameters:
        raise ValueError(f"{model_class.__name__} does not support case weights.")
    return model.fit(X, y, sample_weight=sample_weight)


def fit_ridge(X, y, sample_weight=None, **params):
    return _fit_estimator(Ridge, X, y, sample_weight, params)


def fit_elastic_net(X, y, sample_weight=None, **params):
    return _fit_estimator(ElasticNet, X, y, sample_weight, params)


def fit_knn_classifier(X, y, sample_weight=None, **params):
    return _fit_estimator(KNeighborsClassifier, X, y, sample_weight, params)


def fit_knn_regressor(X, y, sample_weight=None, **params):
    return _fit_estimator(KNeighborsRegressor, X, y, sample_weight, params)
