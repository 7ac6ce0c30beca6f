"""
Mixture discriminant analysis engine.

Each class is modelled by a Gaussian mixture with ``subclasses`` components
(EM from scikit-learn's GaussianMixture); class posteriors combine the
mixture densities with the class frequencies of the training data.
"""

import numpy as np
import pandas as pd
from scipy.special import logsumexp
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.mixture import GaussianMixture
from sklearn.utils.validation import check_is_fitted

from utils import constants
from utils.formula import encode_predictors, parse_formula, predictor_columns


class MixtureDiscriminantAnalysis(ClassifierMixin, BaseEstimator):

    def __init__(self, subclasses=3, covariance_type="tied", max_iter=100, tol=1e-3,
                 reg_covar=1e-6, n_init=1, random_state=None,
                 predictor_indicators=constants.INDICATORS_TRADITIONAL):
        self.subclasses = subclasses
        self.covariance_type = covariance_type
        self.max_iter = max_iter
        self.tol = tol
        self.reg_covar = reg_covar
        self.n_init = n_init
        self.random_state = random_state
        self.predictor_indicators = predictor_indicators

    def _design(self, X, fitting=False):
        if isinstance(X, pd.DataFrame):
            if fitting:
                self.predictors_ = [str(c) for c in X.columns]
                encoded = encode_predictors(X, self.predictor_indicators)
                self.design_columns_ = list(encoded.columns)
            else:
                missing = [c for c in self.predictors_ if c not in X.columns]
                if missing:
                    raise ValueError(f"Missing predictors required by the model: {missing}")
                encoded = encode_predictors(X[self.predictors_], self.predictor_indicators,
                                            columns=self.design_columns_)
            return encoded.to_numpy(dtype=float)
        return np.asarray(X, dtype=float)

    def fit(self, X, y):
        if int(self.subclasses) < 1:
            raise ValueError(f"subclasses must be >= 1, got {self.subclasses}")
        X_arr = self._design(X, fitting=True)
        y_arr = np.asarray(y)
        if len(X_arr) != len(y_arr):
            raise ValueError(f"X has {len(X_arr)} rows but y has {len(y_arr)}")

        self.classes_, y_idx = np.unique(y_arr, return_inverse=True)
        if len(self.classes_) < 2:
            raise ValueError("Mixture discriminant analysis needs at least two classes.")
        counts = np.bincount(y_idx, minlength=len(self.classes_))
        self.priors_ = counts / counts.sum()

        self.mixtures_ = []
        for k in range(len(self.classes_)):
            X_k = X_arr[y_idx == k]
            mixture = GaussianMixture(
                n_components=min(int(self.subclasses), len(X_k)),
                covariance_type=self.covariance_type,
                max_iter=self.max_iter,
                tol=self.tol,
                reg_covar=self.reg_covar,
                n_init=self.n_init,
                random_state=self.random_state,
            )
            self.mixtures_.append(mixture.fit(X_k))
        self.n_features_in_ = X_arr.shape[1]
        return self

    def _joint_log_likelihood(self, X):
        check_is_fitted(self, "mixtures_")
        X_arr = self._design(X)
        densities = np.column_stack([m.score_samples(X_arr) for m in self.mixtures_])
        return densities + np.log(self.priors_)

    def predict_log_proba(self, X):
        jll = self._joint_log_likelihood(X)
        return jll - logsumexp(jll, axis=1, keepdims=True)

    def predict_proba(self, X):
        return np.exp(self.predict_log_proba(X))

    def predict(self, X):
        return self.classes_[np.argmax(self._joint_log_likelihood(X), axis=1)]


def mda(formula, data, weights=None, subclasses=3, **kwargs):
    """
    Fit mixture discriminant analysis from a formula and a data frame.

    Unknown keyword arguments are rejected by the estimator constructor.
    """
    if weights is not None:
        raise ValueError("mda does not support case weights.")
    parsed = parse_formula(formula)
    predictors = predictor_columns(parsed, data)
    model = MixtureDiscriminantAnalysis(subclasses=subclasses, **kwargs)
    model.fit(data[predictors], data[parsed.outcome])
    model.formula_ = formula
    return model
