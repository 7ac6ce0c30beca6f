import logging

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import ElasticNet, Ridge
from sklearn.neighbors import KNeighborsClassifier

from modules.engines.mda import MixtureDiscriminantAnalysis, mda
from modules.engines.sklearn_engines import (
    _filter_params,
    fit_elastic_net,
    fit_knn_classifier,
    fit_ridge,
)

# --- Fixtures ---

@pytest.fixture
def three_class_df():
    """Three well separated Gaussian blobs with a categorical nuisance column."""
    rng = np.random.default_rng(0)
    centers = {'a': (0.0, 0.0), 'b': (6.0, 0.0), 'c': (0.0, 6.0)}
    frames = []
    for label, (cx, cy) in centers.items():
        frames.append(pd.DataFrame({
            'x1': rng.normal(cx, 0.5, 40),
            'x2': rng.normal(cy, 0.5, 40),
            'site': rng.choice(['north', 'south'], 40),
            'label': label,
        }))
    return pd.concat(frames, ignore_index=True)

@pytest.fixture
def regression_data():
    rng = np.random.default_rng(1)
    X = rng.normal(size=(60, 3))
    y = X @ np.array([1.5, -2.0, 0.5]) + 0.01 * rng.normal(size=60)
    return X, y

# --- Mixture Discriminant Analysis ---

class TestMixtureDiscriminantAnalysis:

    def test_formula_fit_and_predict(self, three_class_df):
        model = mda("label ~ x1 + x2", three_class_df, subclasses=2, random_state=0)
        assert list(model.classes_) == ['a', 'b', 'c']
        assert len(model.mixtures_) == 3
        assert model.mixtures_[0].n_components == 2
        assert model.predictors_ == ['x1', 'x2']

        preds = model.predict(three_class_df)
        assert (preds == three_class_df['label'].to_numpy()).mean() > 0.95

    def test_probabilities_sum_to_one(self, three_class_df):
        model = mda("label ~ x1 + x2", three_class_df, subclasses=2, random_state=0)
        proba = model.predict_proba(three_class_df.head(10))
        assert proba.shape == (10, 3)
        np.testing.assert_allclose(proba.sum(axis=1), 1.0)
        log_proba = model.predict_log_proba(three_class_df.head(10))
        np.testing.assert_allclose(np.exp(log_proba), proba)

    def test_dot_formula_encodes_factors(self, three_class_df):
        model = mda("label ~ .", three_class_df, subclasses=1, random_state=0)
        assert model.predictors_ == ['x1', 'x2', 'site']
        assert model.design_columns_ == ['x1', 'x2', 'site_south']

    def test_priors_follow_class_frequencies(self, three_class_df):
        df = three_class_df.iloc[:100]
        model = MixtureDiscriminantAnalysis(subclasses=1, random_state=0).fit(df[['x1', 'x2']], df['label'])
        np.testing.assert_allclose(model.priors_, [0.4, 0.4, 0.2])

    def test_predict_requires_training_predictors(self, three_class_df):
        model = mda("label ~ x1 + x2", three_class_df, subclasses=1, random_state=0)
        with pytest.raises(ValueError, match="Missing predictors"):
            model.predict(three_class_df[['x1']])

    def test_weights_rejected(self, three_class_df):
        with pytest.raises(ValueError, match="case weights"):
            mda("label ~ x1 + x2", three_class_df, weights=np.ones(len(three_class_df)))

    def test_invalid_subclasses(self, three_class_df):
        with pytest.raises(ValueError):
            mda("label ~ x1 + x2", three_class_df, subclasses=0)

    def test_single_class(self, three_class_df):
        df = three_class_df[three_class_df['label'] == 'a']
        with pytest.raises(ValueError, match="two classes"):
            mda("label ~ x1 + x2", df)

    def test_unknown_keyword_rejected(self, three_class_df):
        with pytest.raises(TypeError):
            mda("label ~ x1 + x2", three_class_df, shrinkage=0.1)

# --- scikit-learn wrappers ---

class TestSklearnEngines:

    def test_filter_params_drops_unknown(self, caplog):
        with caplog.at_level(logging.WARNING, logger="engines"):
            params = _filter_params(Ridge, {'alpha': 0.5, 'bogus': 1})
        assert params == {'alpha': 0.5}
        assert "bogus" in caplog.text

    def test_fit_ridge(self, regression_data):
        X, y = regression_data
        model = fit_ridge(X, y, alpha=1e-6)
        assert isinstance(model, Ridge)
        np.testing.assert_allclose(model.coef_, [1.5, -2.0, 0.5], atol=0.05)

    def test_fit_elastic_net_with_weights(self, regression_data):
        X, y = regression_data
        model = fit_elastic_net(X, y, sample_weight=np.ones(len(y)), alpha=0.01, l1_ratio=0.5)
        assert isinstance(model, ElasticNet)
        assert model.l1_ratio == 0.5

    def test_fit_knn_without_weight_support(self, three_class_df):
        X = three_class_df[['x1', 'x2']]
        y = three_class_df['label']
        model = fit_knn_classifier(X, y, n_neighbors=3)
        assert isinstance(model, KNeighborsClassifier)
        with pytest.raises(ValueError, match="case weights"):
            fit_knn_classifier(X, y, sample_weight=np.ones(len(y)))
