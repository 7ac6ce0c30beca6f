from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from modules.call_template import CallTemplate, FunctionRef
from utils import constants
from utils.exceptions import ConfigurationError


@dataclass(frozen=True)
class FitSpec:
    """How to call an engine's fit function."""
    interface: str
    protect: Tuple[str, ...]
    func: FunctionRef
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.interface not in constants.FIT_INTERFACES:
            raise ConfigurationError(
                f"Unknown fit interface '{self.interface}'. Expected one of {constants.FIT_INTERFACES}"
            )
        object.__setattr__(self, 'protect', tuple(self.protect))
        object.__setattr__(self, 'defaults', dict(self.defaults))

        slots = constants.FORMULA_SLOTS if self.interface == constants.INTERFACE_FORMULA else constants.XY_SLOTS
        unbound = [name for name in self.protect if name not in slots]
        if unbound:
            raise ConfigurationError(
                f"Protected arguments {unbound} cannot be bound for the '{self.interface}' interface. "
                f"Available slots: {list(slots)}"
            )
        overlap = [name for name in self.defaults if name in self.protect]
        if overlap:
            raise ConfigurationError(f"Protected arguments cannot have defaults: {overlap}")


@dataclass(frozen=True)
class PredSpec:
    """
    How to call an engine's predict function.

    ``pre(new_data, model_fit)`` adapts the input before the call and
    ``post(result, model_fit)`` normalizes the raw output after it.
    """
    func: FunctionRef
    args: Tuple[Tuple[str, Any], ...]
    pre: Optional[Callable[[Any, Any], Any]] = None
    post: Optional[Callable[[Any, Any], Any]] = None

    def __post_init__(self):
        args = self.args.items() if isinstance(self.args, Mapping) else self.args
        object.__setattr__(self, 'args', tuple(args))

    def template(self) -> CallTemplate:
        return CallTemplate(self.func, self.args)


@dataclass(frozen=True)
class EncodingSpec:
    """How non-numeric predictors are turned into indicator columns."""
    predictor_indicators: str = constants.INDICATORS_TRADITIONAL

    def __post_init__(self):
        if self.predictor_indicators not in constants.PREDICTOR_INDICATORS:
            raise ConfigurationError(
                f"Unknown predictor encoding '{self.predictor_indicators}'. "
                f"Expected one of {constants.PREDICTOR_INDICATORS}"
            )


@dataclass(frozen=True)
class ArgSpec:
    """One row of the argument key."""
    canonical: str
    engine: str
    native: str
    tunable: Optional[Mapping[str, Any]] = None
    has_submodel: bool = False


@dataclass
class EngineDescriptor:
    """Everything the framework needs to fit and predict with one (model, engine, mode)."""
    model: str
    engine: str
    mode: str
    dependencies: List[str] = field(default_factory=list)
    fit: Optional[FitSpec] = None
    predictions: Dict[str, PredSpec] = field(default_factory=dict)
    encoding: EncodingSpec = field(default_factory=EncodingSpec)

    def get_pred(self, pred_type: str) -> Optional[PredSpec]:
        return self.predictions.get(pred_type)

    @property
    def pred_types(self) -> List[str]:
        return [t for t in constants.PRED_TYPES if t in self.predictions]
