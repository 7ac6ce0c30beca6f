#!/usr/bin/env python
"""
Model Engine Registry - Pipeline Entry Point
Builds a model specification from the config, shows its translated fit call,
fits it through the registered engine and predicts on a holdout split.
"""
import sys
import logging
import argparse
import traceback
import random
from pathlib import Path
from typing import Any, Dict, Tuple

import pandas as pd
import numpy as np
from sklearn.model_selection import train_test_split

# Core Infrastructure
from modules.config_manager import ConfigurationManager
from modules.logging_config import LoggingConfigurator
from modules.model_spec import ModelSpec, set_engine, update
from modules.models import MODEL_CONSTRUCTORS
from modules.prediction_engine import PredictionEngine
from modules.training_engine import TrainingEngine
from modules.translation_engine import translate
from modules.tuning_engine import TuningEngine, score_fit
from utils import constants
from utils.exceptions import DataValidationError, ModelRegistryException
from utils.file_io import read_dataframe
from utils.formula import parse_formula


def parse_arguments(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Model Engine Registry - translate, fit and predict a registered model",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/config.json",
        help="Path to the configuration JSON file"
    )

    parser.add_argument(
        "--schema",
        type=str,
        default="config/schema.json",
        help="Path to the configuration JSON schema"
    )

    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Optional run identifier (defaults to timestamp if not provided)"
    )

    parser.add_argument(
        "--show-model",
        action="store_true",
        help="Print the registry information for the configured model"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and print the fit call without fitting"
    )

    return parser.parse_args(argv)


def setup_global_determinism(config: dict, logger: logging.Logger):
    """Seed Python and NumPy from the data seed."""
    seed = config.get('data', {}).get('seed', 42)
    logger.info(f"Setting Global Deterministic Seed: {seed}")
    random.seed(seed)
    np.random.seed(seed)


def build_spec(model_cfg: Dict[str, Any]) -> ModelSpec:
    """Model specification from the ``model`` config section."""
    constructor = MODEL_CONSTRUCTORS[model_cfg['name']]
    spec = constructor(mode=model_cfg['mode'], **model_cfg.get('args', {}))
    if model_cfg.get('engine') or model_cfg.get('engine_args'):
        spec = set_engine(spec, model_cfg.get('engine'), **model_cfg.get('engine_args', {}))
    return spec


def split_data(data: pd.DataFrame, outcome: str, mode: str, test_size: float,
               seed: int) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Train/holdout split, stratified on the outcome for classification."""
    if outcome not in data.columns:
        raise DataValidationError(f"Outcome column '{outcome}' not found in data.")
    stratify = data[outcome] if mode == constants.MODE_CLASSIFICATION else None
    return train_test_split(data, test_size=test_size, random_state=seed, stratify=stratify)


def main(argv=None):
    """
    Main pipeline orchestration function.

    Returns:
        int: Exit code (0 for success, 1 for errors)
    """
    logger = None

    try:
        args = parse_arguments(argv)

        # ---------------------------------------------------------------
        # PHASE 0: CONFIGURATION, LOGGING, RUN DIRECTORY
        # ---------------------------------------------------------------
        config_manager = ConfigurationManager(config_path=args.config, schema_path=args.schema)
        config = config_manager.load_and_validate()

        if args.verbose:
            config.setdefault('logging', {})['level'] = 'DEBUG'

        logging_configurator = LoggingConfigurator(config)
        logging_configurator.setup()
        logger = logging_configurator.get_logger('pipeline')
        logger.info(f"Configuration loaded from: {args.config}")

        run_id = args.run_id or config_manager.generate_run_id()
        config_manager.run_id = run_id
        run_dir = Path(config['outputs']['base_results_dir']) / run_id
        run_dir.mkdir(parents=True, exist_ok=True)
        config['outputs']['base_results_dir'] = str(run_dir)
        config_manager.save_artifacts(str(run_dir))
        setup_global_determinism(config, logger)

        logger.info(f"Run ID: {run_id}")
        logger.info(f"Output Directory: {run_dir.absolute()}")

        # ---------------------------------------------------------------
        # PHASE 1: SPECIFICATION & TRANSLATION
        # ---------------------------------------------------------------
        spec = build_spec(config['model'])
        if args.show_model:
            print(spec.registry.show_model_info(spec.model))

        translated = translate(spec)
        print(translated)
        (run_dir / constants.TRANSLATION_FILE).write_text(translated.fit_call.render() + "\n", encoding='utf-8')

        if args.dry_run:
            logger.info("Dry run mode: translation complete. Exiting without fitting.")
            return 0

        # ---------------------------------------------------------------
        # PHASE 2: DATA
        # ---------------------------------------------------------------
        data_cfg = config['data']
        formula = data_cfg['formula']
        outcome = parse_formula(formula).outcome
        data = read_dataframe(Path(data_cfg['file_path']))
        logger.info(f"Data loaded: {len(data)} rows from {data_cfg['file_path']}")

        train_df, holdout_df = split_data(data, outcome, spec.mode, data_cfg['test_size'], data_cfg['seed'])
        logger.info(f"Split created - Train: {len(train_df)}, Holdout: {len(holdout_df)}")

        # ---------------------------------------------------------------
        # PHASE 3: TUNING (optional)
        # ---------------------------------------------------------------
        if config.get('tuning', {}).get('enabled', False):
            tuning = TuningEngine(config, logger).execute(spec, train_df, holdout_df, formula, run_id=run_id)
            spec = update(spec, **tuning['best_args'])

        # ---------------------------------------------------------------
        # PHASE 4: FIT & PREDICT
        # ---------------------------------------------------------------
        model_fit = TrainingEngine(config, logger).execute(spec, data=train_df, formula=formula, run_id=run_id)

        predictor = PredictionEngine(config, logger)
        for pred_type in config['prediction']['types']:
            predictor.execute(model_fit, holdout_df, type=pred_type, split_name="holdout", run_id=run_id)

        metric, score = score_fit(model_fit, holdout_df, outcome, predictor)
        logger.info(f"Holdout {metric}: {score:.4f}")

        print(f"\n[SUCCESS] Pipeline completed. Results saved to: {run_dir}")
        return 0

    except ModelRegistryException as e:
        msg = f"Pipeline Error: {str(e)}"
        print(f"\n[ERROR] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        return 1

    except KeyboardInterrupt:
        print("\n[INTERRUPTED] Pipeline interrupted by user.")
        if logger:
            logger.warning("Pipeline interrupted by user (Ctrl+C)")
        return 130

    except Exception as e:
        msg = f"Unexpected Error: {str(e)}"
        print(f"\n[CRITICAL] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
