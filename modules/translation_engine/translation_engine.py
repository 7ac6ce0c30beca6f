import logging
from typing import Any, List, Optional, Tuple

from modules.call_template import CallTemplate, MissingArg
from modules.model_registry import EngineDescriptor, ModelRegistry
from modules.model_spec import ModelSpec, set_engine
from utils.exceptions import ConfigurationError, ProtectedArgumentError

logger = logging.getLogger("translation_engine")


def translate(spec: ModelSpec, engine: Optional[str] = None) -> ModelSpec:
    """
    Merge a specification with its engine descriptor.

    Returns a copy of ``spec`` whose ``method`` is the engine descriptor and
    whose ``fit_call`` is the deferred fit call. Nothing is imported or fit.

    Raises:
        ModeError: mode is unknown or not in the model's mode set.
        EngineError: engine is not in the engine table for the mode.
        ProtectedArgumentError: a user argument targets a protected fit argument.
    """
    registry = spec.registry
    if engine is not None:
        spec = set_engine(spec, engine, **spec.eng_args)

    registry.validate_mode(spec.model, spec.mode, allow_unknown=False)

    engine = spec.engine
    if engine is None:
        engine = registry.default_engine(spec.model, spec.mode)
        logger.info(f"Engine set to '{engine}'.")
    registry.validate_engine(spec.model, spec.mode, engine)

    descriptor = registry.get_descriptor(spec.model, engine, spec.mode)
    if descriptor.fit is None:
        raise ConfigurationError(f"No fit module is registered for '{spec.model}' with engine '{engine}' "
                                 f"in mode '{spec.mode}'.")

    fit_call = build_fit_call(spec, descriptor, registry)
    return spec.replace(engine=engine, method=descriptor, fit_call=fit_call)


def resolve_arguments(spec: ModelSpec, engine: str, registry: ModelRegistry) -> List[Tuple[str, Any]]:
    """
    Map supplied canonical arguments to native names, in argument-key order.
    Arguments the engine does not have are dropped with a warning.
    """
    supplied = spec.supplied_args
    resolved = []
    for arg in registry.arg_specs(spec.model, engine):
        if arg.canonical in supplied:
            resolved.append((arg.native, supplied[arg.canonical]))

    for canonical in supplied:
        if registry.resolve_arg(spec.model, canonical, engine) is None:
            logger.warning(
                f"The argument '{canonical}' cannot be used with engine '{engine}' "
                f"for model '{spec.model}' and will be ignored."
            )
    return resolved


def build_fit_call(spec: ModelSpec, descriptor: EngineDescriptor, registry: ModelRegistry) -> CallTemplate:
    """
    Order: protected slots, canonical arguments, engine arguments, then the
    defaults the user did not override.
    """
    fit = descriptor.fit
    main_args = resolve_arguments(spec, descriptor.engine, registry)
    eng_args = list(spec.eng_args.items())
    user_args = main_args + eng_args

    collisions = [name for name, _ in user_args if name in fit.protect]
    if collisions:
        raise ProtectedArgumentError(
            f"The following arguments cannot be set by the user for engine '{descriptor.engine}' "
            f"because they are protected: {collisions}. Protected arguments: {list(fit.protect)}"
        )

    main_names = {name for name, _ in main_args}
    duplicated = [name for name, _ in eng_args if name in main_names]
    if duplicated:
        raise ConfigurationError(
            f"Arguments {duplicated} were given both as main arguments and as engine arguments."
        )

    supplied = {name for name, _ in user_args}
    defaults = [(name, value) for name, value in fit.defaults.items() if name not in supplied]
    protected = [(name, MissingArg(name)) for name in fit.protect]

    return CallTemplate(fit.func, tuple(protected + user_args + defaults))
