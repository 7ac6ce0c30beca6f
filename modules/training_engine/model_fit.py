from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from modules.model_spec import ModelSpec


@dataclass(frozen=True)
class FitPreprocessor:
    """What the framework did to the training data, replayed on new data."""
    interface: str
    predictors: Tuple[str, ...]
    design_columns: Tuple[str, ...]
    predictor_indicators: str
    outcome: str


class ModelFit:
    """
    A fitted model: the frozen translated specification, the engine's fitted
    object, the outcome levels (classification only) and the preprocessing
    needed to prepare new data.
    """

    def __init__(self, spec: ModelSpec, fit: Any, lvl: Optional[List[Any]],
                 preproc: FitPreprocessor, elapsed: float):
        self.spec = spec if spec.frozen else spec.freeze()
        self.fit = fit
        self.lvl = list(lvl) if lvl is not None else None
        self.preproc = preproc
        self.elapsed = elapsed

    @property
    def mode(self) -> str:
        return self.spec.mode

    @property
    def engine(self) -> str:
        return self.spec.engine

    def __repr__(self) -> str:
        return (f"ModelFit(model={self.spec.model!r}, engine={self.engine!r}, mode={self.mode!r}, "
                f"elapsed={self.elapsed:.3f}s)")
