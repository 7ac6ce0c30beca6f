import logging
from typing import Any, Optional

import numpy as np
import pandas as pd

from modules.base.base_engine import BaseEngine
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import ModelRegistryException, PredictionError, PredictionShapeError
from utils.file_io import save_dataframe
from utils.formula import encode_predictors


class PredictionEngine(BaseEngine):
    """
    Dispatches predictions to the engine's prediction module and checks the
    shape of what comes back.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.PREDICTIONS_DIR

    @handle_engine_errors("Prediction", wrap_as=PredictionError)
    def execute(self, model_fit, new_data: pd.DataFrame, type: Optional[str] = None,
                split_name: str = "new_data", run_id: Optional[str] = None) -> Any:
        """
        Predict ``type`` for every row of ``new_data``.

        Parameters:
            model_fit: ModelFit returned by the TrainingEngine.
            new_data: DataFrame holding (at least) the training predictors.
            type: 'numeric', 'class', 'prob' or 'raw'; defaults per mode.
            split_name: Label used in logs and file names.
            run_id: Run identifier.

        Returns:
            numeric: 1-D float array (2-D for multivariate outcomes)
            class:   pandas.Categorical with the training levels
            prob:    DataFrame with one column per training level
            raw:     whatever the engine returns
        """
        mode = model_fit.mode
        pred_type = type or constants.DEFAULT_PRED_TYPE[mode]
        if pred_type not in constants.PRED_TYPES:
            raise PredictionError(f"Unknown prediction type '{pred_type}'. Expected one of {constants.PRED_TYPES}")
        if pred_type not in constants.MODE_PRED_TYPES[mode]:
            raise PredictionError(
                f"'{pred_type}' predictions are not available for a {mode} model. "
                f"Use one of {constants.MODE_PRED_TYPES[mode]}"
            )

        pred_spec = model_fit.spec.method.get_pred(pred_type)
        if pred_spec is None:
            raise PredictionError(
                f"No '{pred_type}' prediction module is registered for model '{model_fit.spec.model}' "
                f"with engine '{model_fit.engine}'."
            )

        self.logger.info(f"Generating '{pred_type}' predictions for {split_name} ({len(new_data)} rows)...")

        prepared = self.prepare_data(model_fit, new_data)
        if len(new_data) == 0:
            # Nothing to send to the engine
            result = self.empty_result(pred_type, model_fit)
        else:
            result = self._dispatch(pred_spec, model_fit, prepared, split_name)
        self.validate_shape(result, pred_type, len(new_data), model_fit)

        # Save
        if self.save_enabled('save_predictions') and pred_type != constants.PRED_RAW:
            table = self.to_table(result, pred_type, new_data.index)
            save_path = self.output_dir / f"predictions_{split_name}_{pred_type}.parquet"
            save_dataframe(table, save_path, excel_copy=self.outputs.get('save_excel_copy', False), index=True)
            self.logger.info(f"Predictions saved to {save_path}")

        return result

    def _dispatch(self, pred_spec, model_fit, prepared: Any, split_name: str) -> Any:
        """Engine pre-transform, template evaluation with the live fit, post-transform."""
        if pred_spec.pre is not None:
            prepared = pred_spec.pre(prepared, model_fit)

        template = pred_spec.template()
        env = {constants.PLACEHOLDER_OBJECT: model_fit, constants.PLACEHOLDER_NEW_DATA: prepared}
        try:
            raw = template.evaluate(env)
        except ModelRegistryException:
            raise
        except Exception as e:
            self.logger.error(f"Prediction failed for {split_name}: {e}")
            raise PredictionError(f"Prediction failed for {split_name}: {e}") from e

        return pred_spec.post(raw, model_fit) if pred_spec.post is not None else raw

    @staticmethod
    def empty_result(pred_type: str, model_fit) -> Any:
        """Zero-row result of the standard shape for ``pred_type``."""
        if pred_type == constants.PRED_CLASS:
            return pd.Categorical([], categories=list(model_fit.lvl))
        if pred_type == constants.PRED_PROB:
            return pd.DataFrame(columns=list(model_fit.lvl), dtype=float)
        return np.empty(0)

    def prepare_data(self, model_fit, new_data: pd.DataFrame) -> Any:
        """
        Check the training predictors are present; for data frame and matrix
        engines also replay the training encoding.
        """
        if not isinstance(new_data, pd.DataFrame):
            raise PredictionError(f"new_data must be a pandas DataFrame, got {type(new_data).__name__}")

        preproc = model_fit.preproc
        new_data = new_data.rename(columns=str)
        missing = sorted(set(preproc.predictors) - set(new_data.columns))
        if missing:
            raise PredictionError(f"Missing features required by the model: {missing}")

        if preproc.interface == constants.INTERFACE_FORMULA:
            return new_data
        return encode_predictors(new_data[list(preproc.predictors)], preproc.predictor_indicators,
                                 columns=preproc.design_columns)

    @staticmethod
    def validate_shape(result: Any, pred_type: str, n_rows: int, model_fit) -> None:
        if pred_type == constants.PRED_NUMERIC:
            if isinstance(result, pd.DataFrame):
                rows = len(result)
            elif isinstance(result, np.ndarray) and result.ndim in (1, 2):
                rows = result.shape[0]
                if not np.issubdtype(result.dtype, np.number):
                    raise PredictionShapeError(f"Numeric predictions have non-numeric dtype {result.dtype}")
            else:
                raise PredictionShapeError(
                    f"Numeric predictions must be a 1-D/2-D array or a DataFrame, got {type(result).__name__}"
                )
            if rows != n_rows:
                raise PredictionShapeError(f"Expected {n_rows} numeric predictions, got {rows}")

        elif pred_type == constants.PRED_CLASS:
            if not isinstance(result, pd.Categorical):
                raise PredictionShapeError(f"Class predictions must be a pandas.Categorical, got {type(result).__name__}")
            if len(result) != n_rows:
                raise PredictionShapeError(f"Expected {n_rows} class predictions, got {len(result)}")
            if list(result.categories) != list(model_fit.lvl):
                raise PredictionShapeError(
                    f"Class prediction levels {list(result.categories)} do not match training levels {model_fit.lvl}"
                )

        elif pred_type == constants.PRED_PROB:
            if not isinstance(result, pd.DataFrame):
                raise PredictionShapeError(f"Probability predictions must be a DataFrame, got {type(result).__name__}")
            if len(result) != n_rows:
                raise PredictionShapeError(f"Expected {n_rows} rows of probabilities, got {len(result)}")
            if list(result.columns) != list(model_fit.lvl):
                raise PredictionShapeError(
                    f"Probability columns {list(result.columns)} do not match training levels {model_fit.lvl}"
                )

    @staticmethod
    def to_table(result: Any, pred_type: str, index: pd.Index) -> pd.DataFrame:
        """DataFrame view of a prediction result for persistence."""
        if pred_type == constants.PRED_PROB:
            table = result.rename(columns=str)
        elif pred_type == constants.PRED_CLASS:
            table = pd.DataFrame({'pred_class': result})
        elif isinstance(result, pd.DataFrame):
            table = result.rename(columns=str)
        else:
            values = np.asarray(result)
            if values.ndim == 1:
                table = pd.DataFrame({'pred': values})
            else:
                table = pd.DataFrame(values, columns=[f"pred_{i + 1}" for i in range(values.shape[1])])
        table.index = index
        return table
