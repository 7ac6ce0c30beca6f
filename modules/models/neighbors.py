from modules.call_template import FunctionRef, Placeholder
from modules.model_registry import EncodingSpec, FitSpec, ModelRegistry, PredSpec
from modules.model_spec import ModelSpec, new_model_spec
from modules.prediction_engine.transforms import to_class, to_numeric, to_prob_frame
from utils import constants

MODEL_NAME = "nearest_neighbor"
ENGINE = "sklearn"

_FIT_FUNCTIONS = {
    constants.MODE_CLASSIFICATION: "fit_knn_classifier",
    constants.MODE_REGRESSION: "fit_knn_regressor",
}


def nearest_neighbor(mode: str = constants.MODE_UNKNOWN, neighbors=None, weight_func=None,
                     dist_power=None, registry: ModelRegistry = None) -> ModelSpec:
    """
    K-nearest neighbors specification. The mode must be set before fitting.
    """
    return new_model_spec(
        MODEL_NAME,
        args={'neighbors': neighbors, 'weight_func': weight_func, 'dist_power': dist_power},
        mode=mode,
        registry=registry,
    )


def register(registry: ModelRegistry) -> None:
    registry.set_new_model(MODEL_NAME)
    for mode, fit_function in _FIT_FUNCTIONS.items():
        registry.set_model_mode(MODEL_NAME, mode)
        registry.set_model_engine(MODEL_NAME, mode, ENGINE)
        registry.set_fit(MODEL_NAME, ENGINE, mode, FitSpec(
            interface=constants.INTERFACE_DATA_FRAME,
            protect=("X", "y", "sample_weight"),
            func=FunctionRef("modules.engines.sklearn_engines", fit_function),
        ))
        registry.set_encoding(MODEL_NAME, ENGINE, mode, EncodingSpec(constants.INDICATORS_ONE_HOT))

    registry.set_dependency(MODEL_NAME, ENGINE, "sklearn")
    registry.set_model_arg(MODEL_NAME, ENGINE, "neighbors", "n_neighbors",
                           tunable={'type': 'integer', 'range': (1, 15)}, has_submodel=True)
    registry.set_model_arg(MODEL_NAME, ENGINE, "weight_func", "weights",
                           tunable={'type': 'character', 'values': ('uniform', 'distance')})
    registry.set_model_arg(MODEL_NAME, ENGINE, "dist_power", "p",
                           tunable={'type': 'double', 'range': (1.0, 2.0)})

    receiver = {'object': Placeholder("object.fit"), 'X': Placeholder("new_data")}
    registry.set_pred(MODEL_NAME, ENGINE, constants.MODE_CLASSIFICATION, constants.PRED_CLASS, PredSpec(
        func=FunctionRef(None, "predict"), args=receiver, post=to_class,
    ))
    registry.set_pred(MODEL_NAME, ENGINE, constants.MODE_CLASSIFICATION, constants.PRED_PROB, PredSpec(
        func=FunctionRef(None, "predict_proba"), args=receiver, post=to_prob_frame,
    ))
    registry.set_pred(MODEL_NAME, ENGINE, constants.MODE_REGRESSION, constants.PRED_NUMERIC, PredSpec(
        func=FunctionRef(None, "predict"), args=receiver, post=to_numeric,
    ))
