import hashlib
import inspect
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
from sklearn.model_selection import ParameterGrid

from modules.model_registry import ModelRegistry, get_registry
from modules.models import MODEL_CONSTRUCTORS
from utils import constants
from utils.exceptions import ConfigurationError
from utils.file_io import save_json


class ConfigurationManager:
    """
    Loads and validates the run configuration.

    Validation runs in three passes: JSON schema (structure), logic (the
    model, mode, engine and arguments must exist in the registry) and
    resources (tuning grid size).
    """

    DEFAULT_MAX_GRID_CONFIGS = 1000  # Prevent accidental combinatoric explosions

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = "config/schema.json",
                 registry: Optional[ModelRegistry] = None):
        """
        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition.
            registry: Model registry to validate against (default registry if None).
        """
        self.config_path = config_path
        self.schema_path = schema_path
        self.registry = registry if registry is not None else get_registry()
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.logger = logging.getLogger("config_manager")

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Load the config and schema, validate both, fill defaults.

        Returns:
            Dict[str, Any]: The validated configuration.

        Raises:
            ConfigurationError: If any validation step fails.
        """
        self.config = self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)

        self._validate_schema()
        self._validate_logic()
        self._validate_resources()
        self._apply_defaults()

        return self.config

    def generate_run_id(self) -> str:
        """Timestamp-based run identifier, generated once per manager."""
        if not self.run_id:
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def save_artifacts(self, output_dir: str) -> None:
        """
        Save config_used.json, its SHA256 hash and run metadata under
        ``output_dir``/01_RunConfiguration.
        """
        config_dir = Path(output_dir) / constants.CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        save_json(self.config, config_dir / constants.CONFIG_USED_FILE)

        config_str = json.dumps(self.config, sort_keys=True)
        config_hash = hashlib.sha256(config_str.encode()).hexdigest()
        with open(config_dir / constants.CONFIG_HASH_FILE, 'w') as f:
            f.write(config_hash)

        metadata = {
            'run_id': self.run_id,
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version,
            'platform': sys.platform,
            'config_hash': config_hash,
            'working_directory': os.getcwd(),
            'model': self.config.get('model', {}).get('name'),
        }
        save_json(metadata, config_dir / constants.RUN_METADATA_FILE)

    def _load_json(self, path: str) -> Dict[str, Any]:
        """Safely load a JSON file."""
        if not os.path.exists(path):
            raise ConfigurationError(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self) -> None:
        """Validate config structure against JSON schema."""
        try:
            jsonschema.validate(instance=self.config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Schema validation failed: {e.message}")

    def _validate_logic(self) -> None:
        # --- Model Section ---
        model_cfg = self.config.get('model', {})
        name = model_cfg.get('name')
        if not name:
            raise ConfigurationError("model.name must be specified.")
        if not self.registry.has_model(name) or name not in MODEL_CONSTRUCTORS:
            raise ConfigurationError(f"Unknown model '{name}'. Available: {sorted(MODEL_CONSTRUCTORS)}")

        mode = model_cfg.get('mode')
        if mode is None:
            mode = inspect.signature(MODEL_CONSTRUCTORS[name]).parameters['mode'].default
        self.registry.validate_mode(name, mode, allow_unknown=False)

        engine = model_cfg.get('engine')
        if engine is not None:
            self.registry.validate_engine(name, mode, engine)
        elif model_cfg.get('engine_args'):
            raise ConfigurationError(
                f"model.engine_args needs model.engine. Engines for '{name}' ({mode}): "
                f"{self.registry.get_engines(name, mode)}"
            )

        valid_args = self.canonical_args(name)
        unknown = [k for k in model_cfg.get('args', {}) if k not in valid_args]
        if unknown:
            raise ConfigurationError(f"Unknown arguments for '{name}': {unknown}. Valid: {valid_args}")

        # --- Data Section ---
        data = self.config.get('data', {})
        for key in ['file_path', 'formula']:
            if not data.get(key):
                raise ConfigurationError(f"Data '{key}' must be specified and non-empty.")
        test_size = data.get('test_size', 0.25)
        if not (0.0 < test_size < 1.0):
            raise ConfigurationError(f"test_size must be between 0 and 1 (exclusive), got {test_size}")
        if data.get('seed', 42) < 0:
            raise ConfigurationError("Data seed must be non-negative.")

        # --- Prediction Section ---
        allowed = constants.MODE_PRED_TYPES[mode]
        for pred_type in self.config.get('prediction', {}).get('types', []):
            if pred_type not in allowed:
                raise ConfigurationError(
                    f"Prediction type '{pred_type}' is not valid for a {mode} model. Allowed: {allowed}"
                )

        # --- Tuning Section ---
        tuning = self.config.get('tuning', {})
        if tuning.get('enabled', False):
            grid = tuning.get('grid')
            if not grid:
                raise ConfigurationError("Tuning grid cannot be empty when tuning is enabled.")
            unknown = [k for k in grid if k not in valid_args]
            if unknown:
                raise ConfigurationError(f"Tuning grid has unknown arguments for '{name}': {unknown}")

    def _validate_resources(self) -> None:
        """Guard against tuning grids that would explode combinatorially."""
        tuning = self.config.get('tuning', {})
        if not tuning.get('enabled', False):
            return

        try:
            total_configs = len(ParameterGrid(tuning.get('grid', {})))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid tuning grid: {str(e)}")

        max_configs = self.config.get('resources', {}).get('max_grid_configs', self.DEFAULT_MAX_GRID_CONFIGS)
        if total_configs > max_configs:
            raise ConfigurationError(
                f"Tuning grid too large: {total_configs} configurations exceed the limit of {max_configs}. "
                "Reduce the grid or increase 'resources.max_grid_configs'."
            )
        self.logger.info(f"Tuning grid size validated: {total_configs} combinations (Limit: {max_configs})")

    def _apply_defaults(self) -> None:
        model_cfg = self.config.setdefault('model', {})
        if model_cfg.get('mode') is None:
            model_cfg['mode'] = inspect.signature(MODEL_CONSTRUCTORS[model_cfg['name']]).parameters['mode'].default
        model_cfg.setdefault('args', {})
        model_cfg.setdefault('engine_args', {})

        data = self.config.setdefault('data', {})
        data.setdefault('test_size', 0.25)
        data.setdefault('seed', 42)

        prediction = self.config.setdefault('prediction', {})
        prediction.setdefault('types', [constants.DEFAULT_PRED_TYPE[model_cfg['mode']]])

        self.config.setdefault('outputs', {}).setdefault('base_results_dir', 'results')
        self.config.setdefault('resources', {}).setdefault('max_grid_configs', self.DEFAULT_MAX_GRID_CONFIGS)

    @staticmethod
    def canonical_args(model: str) -> List[str]:
        """Canonical argument names the model's constructor accepts."""
        params = inspect.signature(MODEL_CONSTRUCTORS[model]).parameters
        return [p for p in params if p not in ('mode', 'registry')]
