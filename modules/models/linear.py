from modules.call_template import FunctionRef, Placeholder
from modules.model_registry import EncodingSpec, FitSpec, ModelRegistry, PredSpec
from modules.model_spec import ModelSpec, new_model_spec
from modules.prediction_engine.transforms import as_matrix, to_numeric
from utils import constants

MODEL_NAME = "linear_reg"


def linear_reg(mode: str = constants.MODE_REGRESSION, penalty=None, mixture=None,
               registry: ModelRegistry = None) -> ModelSpec:
    """
    Penalized linear regression specification.

    Args:
        penalty: Amount of regularization.
        mixture: Proportion of L1 penalty (elasticnet engine only).
    """
    return new_model_spec(MODEL_NAME, args={'penalty': penalty, 'mixture': mixture},
                          mode=mode, registry=registry)


def register(registry: ModelRegistry) -> None:
    mode = constants.MODE_REGRESSION

    registry.set_new_model(MODEL_NAME)
    registry.set_model_mode(MODEL_NAME, mode)

    # ridge: matrix interface, no L1 component
    registry.set_model_engine(MODEL_NAME, mode, "ridge")
    registry.set_dependency(MODEL_NAME, "ridge", "sklearn")
    registry.set_model_arg(MODEL_NAME, "ridge", "penalty", "alpha",
                           tunable={'type': 'double', 'range': (1e-10, 1.0), 'trans': 'log10'})
    registry.set_fit(MODEL_NAME, "ridge", mode, FitSpec(
        interface=constants.INTERFACE_MATRIX,
        protect=("X", "y", "sample_weight"),
        func=FunctionRef("modules.engines.sklearn_engines", "fit_ridge"),
    ))
    registry.set_encoding(MODEL_NAME, "ridge", mode, EncodingSpec(constants.INDICATORS_TRADITIONAL))
    registry.set_pred(MODEL_NAME, "ridge", mode, constants.PRED_NUMERIC, PredSpec(
        func=FunctionRef(None, "predict"),
        args={'object': Placeholder("object.fit"), 'X': Placeholder("new_data")},
        pre=as_matrix,
        post=to_numeric,
    ))

    # elasticnet: data frame interface
    registry.set_model_engine(MODEL_NAME, mode, "elasticnet")
    registry.set_dependency(MODEL_NAME, "elasticnet", "sklearn")
    registry.set_model_arg(MODEL_NAME, "elasticnet", "penalty", "alpha",
                           tunable={'type': 'double', 'range': (1e-10, 1.0), 'trans': 'log10'})
    registry.set_model_arg(MODEL_NAME, "elasticnet", "mixture", "l1_ratio",
                           tunable={'type': 'double', 'range': (0.0, 1.0)})
    registry.set_fit(MODEL_NAME, "elasticnet", mode, FitSpec(
        interface=constants.INTERFACE_DATA_FRAME,
        protect=("X", "y", "sample_weight"),
        func=FunctionRef("modules.engines.sklearn_engines", "fit_elastic_net"),
        defaults={'max_iter': 10000},
    ))
    registry.set_encoding(MODEL_NAME, "elasticnet", mode, EncodingSpec(constants.INDICATORS_TRADITIONAL))
    registry.set_pred(MODEL_NAME, "elasticnet", mode, constants.PRED_NUMERIC, PredSpec(
        func=FunctionRef(None, "predict"),
        args={'object': Placeholder("object.fit"), 'X': Placeholder("new_data")},
        post=to_numeric,
    ))
