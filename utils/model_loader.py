import joblib
from pathlib import Path
from modules.training_engine import ModelFit
from utils.exceptions import ModelTrainingError

def safe_load_model(path: Path) -> ModelFit:
    """Safely load a saved ModelFit with validation."""
    try:
        model_fit = joblib.load(path)
    except Exception as e:
        raise ModelTrainingError(f"Failed to load model: {e}") from e
    if not isinstance(model_fit, ModelFit):
        raise ModelTrainingError(f"Invalid model type: expected ModelFit, got {type(model_fit).__name__}")
    return model_fit
