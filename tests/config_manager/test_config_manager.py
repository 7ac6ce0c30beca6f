import pytest
import copy
import json
import hashlib
from pathlib import Path

from modules.config_manager.config_manager import ConfigurationManager
from utils.exceptions import ConfigurationError, EngineError, ModeError

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "config" / "schema.json"

@pytest.fixture
def valid_config(tmp_path):
    """A minimal valid configuration."""
    return {
        "model": {"name": "discrim_mixture", "engine": "mda", "args": {"sub_classes": 2}},
        "data": {"file_path": "data/iris.csv", "formula": "Species ~ ."},
        "outputs": {"base_results_dir": str(tmp_path / "results")}
    }

@pytest.fixture
def write_config(tmp_path):
    """Writes a config dict to disk and returns a manager for it."""
    def _write(config):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(config))
        return ConfigurationManager(str(config_path), str(SCHEMA_PATH))
    return _write

# --- Test Cases ---

def test_load_and_validate_success(write_config, valid_config):
    config = write_config(valid_config).load_and_validate()

    assert config['model']['mode'] == "classification"
    assert config['model']['engine_args'] == {}
    assert config['data']['test_size'] == 0.25
    assert config['data']['seed'] == 42
    assert config['prediction']['types'] == ["class"]
    assert config['resources']['max_grid_configs'] == 1000

def test_shipped_config_is_valid():
    root = SCHEMA_PATH.parent
    config = ConfigurationManager(str(root / "config.json"), str(SCHEMA_PATH)).load_and_validate()
    assert config['model']['name'] == "discrim_mixture"

def test_config_not_found(tmp_path):
    manager = ConfigurationManager(str(tmp_path / "missing.json"), str(SCHEMA_PATH))
    with pytest.raises(ConfigurationError, match="File not found: .*missing.json"):
        manager.load_and_validate()

def test_invalid_json(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("this is not valid json")
    with pytest.raises(ConfigurationError, match="Invalid JSON in .*config.json"):
        ConfigurationManager(str(config_path), str(SCHEMA_PATH)).load_and_validate()

def test_schema_failure(write_config, valid_config):
    valid_config['data']['test_size'] = "a quarter"
    with pytest.raises(ConfigurationError, match="Schema validation failed"):
        write_config(valid_config).load_and_validate()

def test_unknown_model(write_config, valid_config):
    valid_config['model']['name'] = "random_forest"
    with pytest.raises(ConfigurationError, match="Unknown model 'random_forest'"):
        write_config(valid_config).load_and_validate()

def test_mode_not_in_mode_set(write_config, valid_config):
    valid_config['model']['mode'] = "regression"
    with pytest.raises(ModeError):
        write_config(valid_config).load_and_validate()

def test_unknown_mode_rejected(write_config, valid_config):
    valid_config['model'] = {"name": "nearest_neighbor", "args": {"neighbors": 3}}
    with pytest.raises(ModeError, match="set the mode"):
        write_config(valid_config).load_and_validate()

def test_engine_not_in_table(write_config, valid_config):
    valid_config['model']['engine'] = "lda"
    with pytest.raises(EngineError):
        write_config(valid_config).load_and_validate()

def test_unknown_argument(write_config, valid_config):
    valid_config['model']['args'] = {"subclasses": 2}
    with pytest.raises(ConfigurationError, match="Unknown arguments"):
        write_config(valid_config).load_and_validate()

def test_prediction_type_for_mode(write_config, valid_config):
    valid_config['prediction'] = {"types": ["numeric"]}
    with pytest.raises(ConfigurationError, match="not valid for a classification model"):
        write_config(valid_config).load_and_validate()

def test_tuning_grid_validation(write_config, valid_config):
    valid_config['tuning'] = {"enabled": True, "grid": {"neighbors": [1, 2]}}
    with pytest.raises(ConfigurationError, match="unknown arguments"):
        write_config(copy.deepcopy(valid_config)).load_and_validate()

    valid_config['tuning'] = {"enabled": True}
    with pytest.raises(ConfigurationError, match="cannot be empty"):
        write_config(valid_config).load_and_validate()

def test_tuning_grid_explosion(write_config, valid_config):
    valid_config['tuning'] = {"enabled": True, "grid": {"sub_classes": list(range(1, 11))}}
    valid_config['resources'] = {"max_grid_configs": 5}
    with pytest.raises(ConfigurationError, match="Tuning grid too large: 10 configurations"):
        write_config(valid_config).load_and_validate()

def test_generate_run_id_is_stable(write_config, valid_config):
    manager = write_config(valid_config)
    run_id = manager.generate_run_id()
    assert run_id == manager.generate_run_id()

def test_save_artifacts(write_config, valid_config, tmp_path):
    manager = write_config(valid_config)
    config = manager.load_and_validate()
    manager.run_id = "run_1"
    manager.save_artifacts(str(tmp_path / "out"))

    config_dir = tmp_path / "out" / "01_RunConfiguration"
    saved = json.loads((config_dir / "config_used.json").read_text())
    assert saved == config

    expected_hash = hashlib.sha256(json.dumps(config, sort_keys=True).encode()).hexdigest()
    assert (config_dir / "config_hash.txt").read_text() == expected_hash

    metadata = json.loads((config_dir / "run_metadata.json").read_text())
    assert metadata['run_id'] == "run_1"
    assert metadata['model'] == "discrim_mixture"

def test_canonical_args():
    assert ConfigurationManager.canonical_args("linear_reg") == ["penalty", "mixture"]
    assert ConfigurationManager.canonical_args("nearest_neighbor") == ["neighbors", "weight_func", "dist_power"]

def test_engine_args_need_engine(write_config, valid_config):
    del valid_config['model']['engine']
    valid_config['model']['engine_args'] = {"covariance_type": "tied"}
    with pytest.raises(ConfigurationError, match="engine_args needs model.engine"):
        write_config(valid_config).load_and_validate()
