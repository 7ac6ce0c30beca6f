import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from modules.model_registry.descriptors import ArgSpec, EncodingSpec, EngineDescriptor, FitSpec, PredSpec
from utils import constants
from utils.exceptions import ConfigurationError, EngineError, ModeError


@dataclass
class _ModelEntry:
    modes: List[str] = field(default_factory=lambda: [constants.MODE_UNKNOWN])
    engines: List[Tuple[str, str]] = field(default_factory=list)   # (mode, engine)
    args: List[ArgSpec] = field(default_factory=list)
    descriptors: Dict[Tuple[str, str], EngineDescriptor] = field(default_factory=dict)  # (engine, mode)


class ModelRegistry:
    """
    Static lookup tables for every pluggable model.

    Per model the registry holds the mode set, the engine table and the
    argument key; per (model, engine, mode) it holds one EngineDescriptor
    with the fit spec, prediction specs, predictor encoding and the packages
    the engine needs. Lookups are pure; only the ``set_*`` calls mutate.
    """

    def __init__(self):
        self._models: Dict[str, _ModelEntry] = {}
        self.logger = logging.getLogger("model_registry")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_new_model(self, model: str) -> None:
        if not model or not isinstance(model, str):
            raise ConfigurationError("Model name must be a non-empty string.")
        if model in self._models:
            raise ConfigurationError(f"Model '{model}' is already registered.")
        self._models[model] = _ModelEntry()
        self.logger.debug(f"Registered model '{model}'")

    def set_model_mode(self, model: str, mode: str) -> None:
        entry = self._entry(model)
        if mode not in constants.ALL_MODES:
            raise ModeError(f"'{mode}' is not a known mode. Known modes: {constants.ALL_MODES}")
        if mode not in entry.modes:
            entry.modes.append(mode)

    def set_model_engine(self, model: str, mode: str, engine: str) -> None:
        entry = self._entry(model)
        if mode == constants.MODE_UNKNOWN or mode not in entry.modes:
            raise ModeError(f"Mode '{mode}' is not registered for model '{model}'.")
        if (mode, engine) not in entry.engines:
            entry.engines.append((mode, engine))
            entry.descriptors[(engine, mode)] = EngineDescriptor(model=model, engine=engine, mode=mode)

    def set_dependency(self, model: str, engine: str, pkg: str, mode: Optional[str] = None) -> None:
        for descriptor in self._descriptors_for(model, engine, mode):
            if pkg not in descriptor.dependencies:
                descriptor.dependencies.append(pkg)

    def set_model_arg(self, model: str, engine: str, canonical: str, native: str,
                      tunable: Optional[Mapping[str, Any]] = None, has_submodel: bool = False) -> None:
        entry = self._entry(model)
        if engine not in self._all_engines(entry):
            raise EngineError(f"Engine '{engine}' is not registered for model '{model}'.")
        for existing in entry.args:
            if existing.canonical == canonical and existing.engine == engine:
                if existing.native != native:
                    raise ConfigurationError(
                        f"Argument '{canonical}' is already mapped to '{existing.native}' for engine '{engine}'."
                    )
                return
        entry.args.append(ArgSpec(canonical, engine, native, dict(tunable) if tunable else None, has_submodel))

    def set_fit(self, model: str, engine: str, mode: str, fit: FitSpec) -> None:
        descriptor = self.get_descriptor(model, engine, mode)
        if descriptor.fit is not None:
            raise ConfigurationError(f"A fit module is already registered for '{model}' / '{engine}' / '{mode}'.")
        descriptor.fit = fit

    def set_pred(self, model: str, engine: str, mode: str, pred_type: str, pred: PredSpec) -> None:
        if pred_type not in constants.PRED_TYPES:
            raise ConfigurationError(f"Unknown prediction type '{pred_type}'. Expected one of {constants.PRED_TYPES}")
        if pred_type not in constants.MODE_PRED_TYPES.get(mode, []):
            raise ConfigurationError(f"Prediction type '{pred_type}' is not valid for mode '{mode}'.")
        descriptor = self.get_descriptor(model, engine, mode)
        if pred_type in descriptor.predictions:
            raise ConfigurationError(f"A '{pred_type}' prediction module already exists for '{model}' / '{engine}'.")
        descriptor.predictions[pred_type] = pred

    def set_encoding(self, model: str, engine: str, mode: str, encoding: EncodingSpec) -> None:
        self.get_descriptor(model, engine, mode).encoding = encoding

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def has_model(self, model: str) -> bool:
        return model in self._models

    def list_models(self) -> List[str]:
        return list(self._models)

    def get_modes(self, model: str) -> List[str]:
        return list(self._entry(model).modes)

    def get_engines(self, model: str, mode: Optional[str] = None) -> List[str]:
        entry = self._entry(model)
        if mode is None or mode == constants.MODE_UNKNOWN:
            return self._all_engines(entry)
        return [eng for m, eng in entry.engines if m == mode]

    def default_engine(self, model: str, mode: str) -> str:
        engines = self.get_engines(model, mode)
        if not engines:
            raise EngineError(f"No engines are registered for model '{model}' in mode '{mode}'.")
        return engines[0]

    def resolve_arg(self, model: str, canonical: str, engine: str) -> Optional[str]:
        """Native name of ``canonical`` for ``engine``, or None when not applicable."""
        for spec in self._entry(model).args:
            if spec.canonical == canonical and spec.engine == engine:
                return spec.native
        return None

    def arg_specs(self, model: str, engine: Optional[str] = None) -> List[ArgSpec]:
        return [a for a in self._entry(model).args if engine is None or a.engine == engine]

    def get_descriptor(self, model: str, engine: str, mode: str) -> EngineDescriptor:
        entry = self._entry(model)
        descriptor = entry.descriptors.get((engine, mode))
        if descriptor is None:
            raise EngineError(f"Engine '{engine}' is not registered for model '{model}' in mode '{mode}'.")
        return descriptor

    def required_pkgs(self, model: str, engine: str, mode: Optional[str] = None) -> List[str]:
        pkgs: List[str] = []
        for descriptor in self._descriptors_for(model, engine, mode):
            pkgs.extend(p for p in descriptor.dependencies if p not in pkgs)
        return pkgs

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_mode(self, model: str, mode: str, allow_unknown: bool = True) -> None:
        modes = self.get_modes(model)
        if mode not in modes:
            valid = [m for m in modes if allow_unknown or m != constants.MODE_UNKNOWN]
            raise ModeError(f"'{mode}' is not a known mode for model '{model}'. Possible modes: {valid}")
        if mode == constants.MODE_UNKNOWN and not allow_unknown:
            concrete = [m for m in modes if m != constants.MODE_UNKNOWN]
            raise ModeError(
                f"Please set the mode of the '{model}' specification before fitting. Possible modes: {concrete}"
            )

    def validate_engine(self, model: str, mode: str, engine: str) -> None:
        available = self.get_engines(model, mode)
        if engine not in available:
            where = "any mode" if mode == constants.MODE_UNKNOWN else f"mode '{mode}'"
            raise EngineError(
                f"Engine '{engine}' is not available for model '{model}' in {where}. Available engines: {available}"
            )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def engine_table(self, model: str) -> pd.DataFrame:
        """Boolean engine x mode table."""
        entry = self._entry(model)
        modes = [m for m in entry.modes if m != constants.MODE_UNKNOWN]
        engines = self._all_engines(entry)
        table = pd.DataFrame(False, index=pd.Index(engines, name="engine"), columns=modes)
        for mode, engine in entry.engines:
            table.loc[engine, mode] = True
        return table

    def arg_key(self, model: str) -> pd.DataFrame:
        """Canonical argument x engine table of native names (None when not applicable)."""
        entry = self._entry(model)
        canonical = list(dict.fromkeys(a.canonical for a in entry.args))
        engines = self._all_engines(entry)
        key = pd.DataFrame(None, index=pd.Index(canonical, name="canonical"), columns=engines, dtype=object)
        for spec in entry.args:
            key.loc[spec.canonical, spec.engine] = spec.native
        return key

    def show_model_info(self, model: str) -> str:
        entry = self._entry(model)
        lines = [f"Information for '{model}'", f" modes: {', '.join(entry.modes)}", "", " engines:"]
        for mode in entry.modes:
            engines = self.get_engines(model, mode) if mode != constants.MODE_UNKNOWN else []
            if engines:
                lines.append(f"   {mode}: {', '.join(engines)}")

        lines.extend(["", " arguments:"])
        if not entry.args:
            lines.append("   (none)")
        for engine in self._all_engines(entry):
            for spec in self.arg_specs(model, engine):
                lines.append(f"   {engine}: {spec.canonical} --> {spec.native}")

        lines.extend(["", " fit modules:"])
        for (engine, mode), descriptor in entry.descriptors.items():
            if descriptor.fit is not None:
                lines.append(f"   {engine} / {mode}: {descriptor.fit.interface} interface, "
                             f"calls {descriptor.fit.func.render()}")

        lines.extend(["", " prediction modules:"])
        for (engine, mode), descriptor in entry.descriptors.items():
            if descriptor.predictions:
                lines.append(f"   {engine} / {mode}: {', '.join(descriptor.pred_types)}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _entry(self, model: str) -> _ModelEntry:
        if model not in self._models:
            raise ConfigurationError(f"Model '{model}' is not registered. Known models: {self.list_models()}")
        return self._models[model]

    @staticmethod
    def _all_engines(entry: _ModelEntry) -> List[str]:
        return list(dict.fromkeys(engine for _, engine in entry.engines))

    def _descriptors_for(self, model: str, engine: str, mode: Optional[str]) -> List[EngineDescriptor]:
        entry = self._entry(model)
        found = [d for (eng, m), d in entry.descriptors.items()
                 if eng == engine and (mode is None or m == mode)]
        if not found:
            raise EngineError(f"Engine '{engine}' is not registered for model '{model}'.")
        return found


_DEFAULT_REGISTRY: Optional[ModelRegistry] = None


def get_registry() -> ModelRegistry:
    """Process-wide registry with the built-in models registered."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        from modules.models import register_builtin_models

        registry = ModelRegistry()
        register_builtin_models(registry)
        _DEFAULT_REGISTRY = registry
    return _DEFAULT_REGISTRY
