import gc
import importlib.util
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import joblib
import numpy as np
import pandas as pd

from modules.base.base_engine import BaseEngine
from modules.model_registry import EngineDescriptor
from modules.model_spec import DataDescriptors, ModelSpec
from modules.training_engine.model_fit import FitPreprocessor, ModelFit
from modules.translation_engine import translate
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import DataValidationError, DependencyError, ModelRegistryException, ModelTrainingError
from utils.file_io import save_json
from utils.formula import encode_predictors, formula_from_xy, parse_formula, predictor_columns


class TrainingEngine(BaseEngine):
    """
    Fits a model specification.

    The specification is translated, the engine's packages are checked, the
    user's data is converted to the engine's fit interface (formula, data
    frame or matrix) and the deferred fit call is evaluated.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.FINAL_MODEL_DIR

    @handle_engine_errors("Training", wrap_as=ModelTrainingError)
    def execute(self, spec: ModelSpec, data: Optional[pd.DataFrame] = None, formula: Optional[str] = None,
                x: Any = None, y: Any = None, weights: Any = None, run_id: Optional[str] = None) -> ModelFit:
        """
        Fit ``spec`` with either ``formula`` + ``data`` or ``x`` + ``y``.

        Args:
            spec: Model specification (translated here).
            data: Training frame for a formula fit.
            formula: Additive formula, e.g. "Species ~ .".
            x, y: Predictors and outcome for an x/y fit.
            weights: Optional case weights.
            run_id: Run identifier (metadata only).

        Returns:
            ModelFit with a frozen copy of the translated specification.
        """
        self.logger.info(f"Starting fit of '{spec.model}'...")

        # 1. Translate (mode, engine and argument checks happen here)
        translated = translate(spec)
        descriptor = translated.method
        self.logger.debug(f"Fit template: {translated.fit_call.render()}")

        # 2. Dependencies are only needed now
        self.check_dependencies(descriptor)

        # 3. Convert data to the engine's interface
        X_raw, outcome, formula_text = self._collect_inputs(data, formula, x, y)
        if weights is not None and len(weights) != len(X_raw):
            raise DataValidationError(f"weights has {len(weights)} values but the data has {len(X_raw)} rows.")
        levels = self.validate_outcome(translated.mode, outcome)
        env, preproc, X_encoded = self._build_env(descriptor, X_raw, outcome, formula_text, weights)
        descriptors = DataDescriptors.from_data(X_raw, X_encoded, levels)

        self.logger.info(
            f"Fitting {translated.model} with engine '{translated.engine}' on {len(X_raw)} rows "
            f"and {X_raw.shape[1]} predictors ({descriptor.fit.interface} interface)."
        )

        # 4. Evaluate the deferred call with timing
        start_time = time.time()
        try:
            fitted = translated.fit_call.evaluate(env, descriptors)
        except ModelRegistryException:
            raise
        except Exception as e:
            raise ModelTrainingError(f"Failed to train model: {str(e)}") from e
        finally:
            del env
            gc.collect()
        duration = time.time() - start_time
        self.logger.info(f"Training completed in {duration:.2f} seconds.")

        model_fit = ModelFit(translated, fitted, levels, preproc, duration)

        # 5. Save model & metadata
        if self.save_enabled('save_models'):
            self._save_artifacts(model_fit, run_id)

        return model_fit

    def check_dependencies(self, descriptor: EngineDescriptor) -> None:
        missing = [pkg for pkg in descriptor.dependencies if importlib.util.find_spec(pkg) is None]
        if missing:
            raise DependencyError(
                f"Engine '{descriptor.engine}' for model '{descriptor.model}' requires packages "
                f"that are not installed: {missing}"
            )

    @staticmethod
    def validate_outcome(mode: str, outcome: pd.Series) -> Optional[List[Any]]:
        """Returns the outcome levels for classification, None for regression."""
        if outcome.isna().any():
            raise DataValidationError(f"Outcome '{outcome.name}' contains missing values.")

        if mode == constants.MODE_CLASSIFICATION:
            if isinstance(outcome.dtype, pd.CategoricalDtype):
                return list(outcome.cat.categories)
            if pd.api.types.is_float_dtype(outcome):
                raise DataValidationError(
                    f"For a classification model, the outcome '{outcome.name}' should be categorical, not float."
                )
            return sorted(pd.unique(outcome).tolist())

        if not pd.api.types.is_numeric_dtype(outcome) or pd.api.types.is_bool_dtype(outcome):
            raise DataValidationError(
                f"For a regression model, the outcome '{outcome.name}' should be numeric."
            )
        return None

    def _collect_inputs(self, data, formula, x, y) -> Tuple[pd.DataFrame, pd.Series, str]:
        if formula is not None:
            if data is None:
                raise DataValidationError("A formula fit requires 'data'.")
            if x is not None or y is not None:
                raise DataValidationError("Supply either 'formula' and 'data' or 'x' and 'y', not both.")
            parsed = parse_formula(formula)
            data = data.rename(columns=str)
            predictors = predictor_columns(parsed, data)
            return data[predictors], data[parsed.outcome], formula

        if x is None or y is None:
            raise DataValidationError("Supply either 'formula' and 'data' or 'x' and 'y'.")

        if isinstance(x, pd.DataFrame):
            X_raw = x.rename(columns=str)
        else:
            values = np.asarray(x)
            if values.ndim != 2:
                raise DataValidationError(f"x must be two-dimensional, got {values.ndim} dimension(s).")
            X_raw = pd.DataFrame(values, columns=[f"x{i + 1}" for i in range(values.shape[1])])

        outcome_name = getattr(y, 'name', None) or ".outcome"
        outcome = pd.Series(np.asarray(y) if not isinstance(y, pd.Series) else y.to_numpy(),
                            name=str(outcome_name), index=X_raw.index)
        if isinstance(y, pd.Series) and isinstance(y.dtype, pd.CategoricalDtype):
            outcome = outcome.astype(y.dtype)
        if len(outcome) != len(X_raw):
            raise DataValidationError(f"x has {len(X_raw)} rows but y has {len(outcome)}.")
        if outcome.name in X_raw.columns:
            raise DataValidationError(f"Outcome name '{outcome.name}' is also a predictor column.")
        return X_raw, outcome, formula_from_xy(list(X_raw.columns), outcome.name)

    def _build_env(self, descriptor: EngineDescriptor, X_raw: pd.DataFrame, outcome: pd.Series,
                   formula_text: str, weights) -> Tuple[Dict[str, Any], FitPreprocessor, pd.DataFrame]:
        interface = descriptor.fit.interface
        indicators = descriptor.encoding.predictor_indicators
        X_encoded = encode_predictors(X_raw, indicators)

        if interface == constants.INTERFACE_FORMULA:
            frame = X_raw.assign(**{outcome.name: outcome})
            env = {'formula': formula_text, 'data': frame, 'weights': weights}
        elif interface == constants.INTERFACE_DATA_FRAME:
            env = {'X': X_encoded, 'y': outcome, 'sample_weight': weights}
        else:
            env = {
                'X': X_encoded.to_numpy(dtype=float),
                'y': outcome.to_numpy(),
                'sample_weight': None if weights is None else np.asarray(weights, dtype=float),
            }

        preproc = FitPreprocessor(
            interface=interface,
            predictors=tuple(X_raw.columns),
            design_columns=tuple(X_encoded.columns),
            predictor_indicators=indicators,
            outcome=outcome.name,
        )
        return env, preproc, X_encoded

    def _save_artifacts(self, model_fit: ModelFit, run_id: Optional[str]) -> None:
        try:
            model_path = self.output_dir / constants.MODEL_FILE
            joblib.dump(model_fit, model_path)
            self.logger.info(f"Model saved to {model_path}")

            spec = model_fit.spec
            metadata = {
                'run_id': run_id,
                'model': spec.model,
                'mode': spec.mode,
                'engine': spec.engine,
                'fit_call': spec.fit_call.render(),
                'predictors': list(model_fit.preproc.predictors),
                'design_columns': list(model_fit.preproc.design_columns),
                'outcome': model_fit.preproc.outcome,
                'levels': [str(level) for level in model_fit.lvl] if model_fit.lvl is not None else None,
                'training_time_sec': model_fit.elapsed,
                'timestamp': time.strftime("%Y-%m-%d %H:%M:%S"),
            }
            save_json(metadata, self.output_dir / constants.TRAINING_METADATA_FILE)
        except Exception as e:
            self.logger.warning(f"Failed to save model artifacts. Error: {e}")
