# utils/constants.py

# --- Modes ---
# 'unknown' is a placeholder for specifications whose mode is decided later;
# it is never valid when translating or fitting.
MODE_CLASSIFICATION = "classification"
MODE_REGRESSION = "regression"
MODE_UNKNOWN = "unknown"

ALL_MODES = [MODE_CLASSIFICATION, MODE_REGRESSION, MODE_UNKNOWN]

# --- Prediction Types ---
PRED_NUMERIC = "numeric"
PRED_CLASS = "class"
PRED_PROB = "prob"
PRED_RAW = "raw"

PRED_TYPES = [PRED_NUMERIC, PRED_CLASS, PRED_PROB, PRED_RAW]

# Prediction types each mode may request ('raw' is engine-native and always allowed)
MODE_PRED_TYPES = {
    MODE_CLASSIFICATION: [PRED_CLASS, PRED_PROB, PRED_RAW],
    MODE_REGRESSION: [PRED_NUMERIC, PRED_RAW],
}

# Default prediction type when the caller does not ask for one
DEFAULT_PRED_TYPE = {
    MODE_CLASSIFICATION: PRED_CLASS,
    MODE_REGRESSION: PRED_NUMERIC,
}

# --- Fit Interfaces ---
INTERFACE_FORMULA = "formula"
INTERFACE_DATA_FRAME = "data.frame"
INTERFACE_MATRIX = "matrix"

FIT_INTERFACES = [INTERFACE_FORMULA, INTERFACE_DATA_FRAME, INTERFACE_MATRIX]

# Names under which the framework binds live data into fit templates
FORMULA_SLOTS = ("formula", "data", "weights")
XY_SLOTS = ("X", "y", "sample_weight")

# Names under which the framework binds live values into prediction templates
PLACEHOLDER_OBJECT = "object"
PLACEHOLDER_NEW_DATA = "new_data"

# --- Predictor Encodings ---
INDICATORS_TRADITIONAL = "traditional"   # dummy variables, first level dropped
INDICATORS_ONE_HOT = "one_hot"           # one column per level
INDICATORS_NONE = "none"                 # predictors passed through untouched

PREDICTOR_INDICATORS = [INDICATORS_TRADITIONAL, INDICATORS_ONE_HOT, INDICATORS_NONE]

# --- Result Directories ---
CONFIG_DIR = "01_RunConfiguration"
TUNING_DIR = "02_TuningResults"
FINAL_MODEL_DIR = "03_TrainedModel"
PREDICTIONS_DIR = "04_Predictions"

# --- File Names ---
CONFIG_USED_FILE = "config_used.json"
CONFIG_HASH_FILE = "config_hash.txt"
RUN_METADATA_FILE = "run_metadata.json"
MODEL_FILE = "final_model.pkl"
TRAINING_METADATA_FILE = "training_metadata.json"
TRANSLATION_FILE = "fit_call.txt"
