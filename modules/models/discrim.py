"""
Mixture discriminant analysis as a pluggable model.

Registered as model ``discrim_mixture`` with the single engine ``mda``:
    discrim_mixture(sub_classes=2) -> set_engine("mda") -> translate/fit/predict
"""

from modules.call_template import FunctionRef, Placeholder
from modules.model_registry import EncodingSpec, FitSpec, ModelRegistry, PredSpec
from modules.model_spec import ModelSpec, new_model_spec
from modules.prediction_engine.transforms import to_class, to_prob_frame
from utils import constants

MODEL_NAME = "discrim_mixture"
ENGINE = "mda"


def discrim_mixture(mode: str = constants.MODE_CLASSIFICATION, sub_classes=None,
                    registry: ModelRegistry = None) -> ModelSpec:
    """
    Mixture discriminant analysis specification.

    Args:
        mode: Only "classification" (or the "unknown" placeholder).
        sub_classes: Number of mixture components per class.
    """
    return new_model_spec(MODEL_NAME, args={'sub_classes': sub_classes}, mode=mode, registry=registry)


def register(registry: ModelRegistry) -> None:
    mode = constants.MODE_CLASSIFICATION

    registry.set_new_model(MODEL_NAME)
    registry.set_model_mode(MODEL_NAME, mode)
    registry.set_model_engine(MODEL_NAME, mode, ENGINE)
    registry.set_dependency(MODEL_NAME, ENGINE, "sklearn")
    registry.set_dependency(MODEL_NAME, ENGINE, "scipy")

    registry.set_model_arg(
        MODEL_NAME, ENGINE, canonical="sub_classes", native="subclasses",
        tunable={'type': 'integer', 'range': (1, 10)},
    )

    registry.set_fit(MODEL_NAME, ENGINE, mode, FitSpec(
        interface=constants.INTERFACE_FORMULA,
        protect=("formula", "data", "weights"),
        func=FunctionRef("modules.engines.mda", "mda"),
        defaults={'random_state': 0},
    ))
    registry.set_encoding(MODEL_NAME, ENGINE, mode, EncodingSpec(constants.INDICATORS_TRADITIONAL))

    receiver = {'object': Placeholder("object.fit"), 'X': Placeholder("new_data")}
    registry.set_pred(MODEL_NAME, ENGINE, mode, constants.PRED_CLASS, PredSpec(
        func=FunctionRef(None, "predict"), args=receiver, post=to_class,
    ))
    registry.set_pred(MODEL_NAME, ENGINE, mode, constants.PRED_PROB, PredSpec(
        func=FunctionRef(None, "predict_proba"), args=receiver, post=to_prob_frame,
    ))
    registry.set_pred(MODEL_NAME, ENGINE, mode, constants.PRED_RAW, PredSpec(
        func=FunctionRef(None, "predict_log_proba"), args=receiver,
    ))
