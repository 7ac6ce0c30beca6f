import gc
import logging
import math
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, mean_squared_error
from sklearn.model_selection import ParameterGrid

from modules.base.base_engine import BaseEngine
from modules.model_spec import ModelSpec, update
from modules.prediction_engine import PredictionEngine
from modules.training_engine import ModelFit, TrainingEngine
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import (
    ConfigurationError,
    DataValidationError,
    ModelTrainingError,
    PredictionError,
)
from utils.file_io import save_dataframe
from utils.formula import parse_formula


def score_fit(model_fit: ModelFit, holdout_df: pd.DataFrame, outcome: str,
              predictor: PredictionEngine) -> Tuple[str, float]:
    """
    Holdout score: accuracy for classification, RMSE for regression.
    """
    y_true = holdout_df[outcome]
    if model_fit.mode == constants.MODE_CLASSIFICATION:
        preds = predictor.execute(model_fit, holdout_df, type=constants.PRED_CLASS, split_name="holdout")
        return 'accuracy', float(accuracy_score(np.asarray(y_true, dtype=object), np.asarray(preds, dtype=object)))

    preds = predictor.execute(model_fit, holdout_df, type=constants.PRED_NUMERIC, split_name="holdout")
    return 'rmse', float(math.sqrt(mean_squared_error(y_true, preds)))


def _to_builtin(value: Any) -> Any:
    return value.item() if isinstance(value, np.generic) else value


class TuningEngine(BaseEngine):
    """
    Grid evaluation of canonical arguments on a holdout set.

    Each candidate is the base specification updated with one grid point;
    failing candidates are recorded and skipped.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        self.tuning_config = config.get('tuning', {})
        self.max_configs = config.get('resources', {}).get('max_grid_configs', 1000)

    def _get_engine_directory_name(self) -> str:
        return constants.TUNING_DIR

    def _candidate_config(self) -> Dict[str, Any]:
        # Candidates are compute-only: no directories, no artifacts
        outputs = dict(self.outputs, save_models=False, save_predictions=False, skip_dir_creation=True)
        return dict(self.config, outputs=outputs)

    @handle_engine_errors("Tuning", wrap_as=ModelTrainingError)
    def execute(self, spec: ModelSpec, train_df: pd.DataFrame, holdout_df: pd.DataFrame, formula: str,
                grid: Optional[Mapping[str, Any]] = None, run_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Evaluate every grid point.

        Returns:
            Dict with 'best_args', 'metric', 'best_score' and the 'results' DataFrame.
        """
        grid = grid if grid is not None else self.tuning_config.get('grid', {})
        if not grid:
            raise ConfigurationError("Tuning grid is empty.")
        candidates = list(ParameterGrid(grid))
        if not candidates:
            raise ConfigurationError(f"Tuning grid {grid} has no candidates.")
        if len(candidates) > self.max_configs:
            raise ConfigurationError(
                f"Tuning grid has {len(candidates)} configurations, above the limit of {self.max_configs}."
            )

        self.logger.info(f"Starting tuning of '{spec.model}' over {len(candidates)} candidates...")
        outcome = parse_formula(formula).outcome
        inner_config = self._candidate_config()
        trainer = TrainingEngine(inner_config, self.logger)
        predictor = PredictionEngine(inner_config, self.logger)

        rows = []
        tried = []
        metric_name = None
        for config_id, params in enumerate(candidates, start=1):
            params = {k: _to_builtin(v) for k, v in params.items()}
            tried.append(params)
            candidate = update(spec, **params)
            try:
                model_fit = trainer.execute(candidate, data=train_df, formula=formula)
                metric_name, score = score_fit(model_fit, holdout_df, outcome, predictor)
                status = "success"
            except (DataValidationError, ModelTrainingError, PredictionError) as e:
                self.logger.error(f"Tuning candidate {config_id} {params} failed: {str(e)}")
                score = float('nan')
                status = "failed"
            finally:
                gc.collect()
            rows.append({'config_id': config_id, **params, 'score': score, 'status': status})

        results_df = pd.DataFrame(rows)
        successful = results_df[results_df['status'] == "success"]
        if successful.empty:
            raise ModelTrainingError("All tuning candidates failed.")

        results_df['metric'] = metric_name
        higher_is_better = metric_name == 'accuracy'
        best_idx = successful['score'].idxmax() if higher_is_better else successful['score'].idxmin()
        best_row = results_df.loc[best_idx]
        # Values as given; the results column may have been upcast to float
        best_args = dict(tried[best_idx])

        self.logger.info(f"Best candidate {int(best_row['config_id'])}: {best_args} ({metric_name}={best_row['score']:.4f})")

        if self.save_enabled('save_tuning'):
            save_path = self.output_dir / "tuning_results.parquet"
            save_dataframe(results_df, save_path, excel_copy=self.outputs.get('save_excel_copy', False))
            self.logger.info(f"Tuning results saved to {save_path}")

        return {
            'best_args': best_args,
            'metric': metric_name,
            'best_score': float(best_row['score']),
            'results': results_df,
        }
