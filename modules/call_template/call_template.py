import functools
import importlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from utils.exceptions import ConfigurationError, DependencyError, ModelTrainingError


@dataclass(frozen=True)
class FunctionRef:
    """
    Reference to the function a template calls.

    With a ``module`` the target is ``module.name`` and is only imported when
    the call is evaluated. Without one, ``name`` is a method looked up on the
    template's ``object`` argument.
    """
    module: Optional[str]
    name: str

    @property
    def is_method(self) -> bool:
        return self.module is None

    def resolve(self) -> Callable:
        if self.is_method:
            raise ConfigurationError(f"Method reference '{self.name}' needs a receiver to resolve.")
        try:
            target = importlib.import_module(self.module)
        except ModuleNotFoundError as e:
            raise DependencyError(f"Cannot import '{self.module}' for '{self.render()}': {e}") from e
        try:
            return functools.reduce(getattr, self.name.split("."), target)
        except AttributeError as e:
            raise ConfigurationError(f"'{self.module}' has no attribute '{self.name}'") from e

    def render(self) -> str:
        return self.name if self.is_method else f"{self.module}.{self.name}"


@dataclass(frozen=True)
class Placeholder:
    """A value the framework binds at call time, e.g. ``object.fit`` or ``new_data``."""
    path: str

    def resolve(self, env: Mapping[str, Any]) -> Any:
        root, *attrs = self.path.split(".")
        if root not in env:
            raise ConfigurationError(f"No value bound for placeholder '{root}'")
        return functools.reduce(getattr, attrs, env[root])

    def render(self) -> str:
        return self.path


@dataclass(frozen=True)
class MissingArg:
    """Protected fit slot; filled with the live data when fitting."""
    name: str

    def resolve(self, env: Mapping[str, Any]) -> Any:
        return env.get(self.name)

    def render(self) -> str:
        return "missing_arg()"


@dataclass(frozen=True)
class Deferred:
    """User argument computed from the training data (see DataDescriptors)."""
    fn: Callable[[Any], Any]
    label: Optional[str] = None

    def evaluate(self, descriptors: Any) -> Any:
        return self.fn(descriptors)

    def render(self) -> str:
        return f"deferred({self.label or getattr(self.fn, '__name__', 'fn')})"


@dataclass(frozen=True)
class TuneMarker:
    """Marks an argument whose value is chosen by a tuning step."""
    id: str = ""

    def render(self) -> str:
        return f"tune({self.id!r})" if self.id else "tune()"


def deferred(fn: Callable[[Any], Any], label: Optional[str] = None) -> Deferred:
    return Deferred(fn, label)


def tune(id: str = "") -> TuneMarker:
    return TuneMarker(id)


def render_value(value: Any) -> str:
    if isinstance(value, (Placeholder, MissingArg, Deferred, TuneMarker)):
        return value.render()
    return repr(value)


@dataclass(frozen=True)
class CallTemplate:
    """
    Immutable, printable description of a call.

    Nothing is imported or executed until ``evaluate`` is called.
    """
    func: FunctionRef
    args: Tuple[Tuple[str, Any], ...] = ()

    @property
    def arg_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.args)

    def arg_dict(self) -> Dict[str, Any]:
        return dict(self.args)

    def render(self) -> str:
        args = list(self.args)
        if self.func.is_method:
            if not args or args[0][0] != "object":
                raise ConfigurationError(f"Method call '{self.func.name}' must start with an 'object' argument.")
            receiver = render_value(args.pop(0)[1])
            head = f"{receiver}.{self.func.name}"
        else:
            head = self.func.render()
        body = ", ".join(f"{name}={render_value(value)}" for name, value in args)
        return f"{head}({body})"

    def bind(self, env: Mapping[str, Any], descriptors: Any = None) -> Dict[str, Any]:
        """Substitute live values for every placeholder, deferred and protected slot."""
        bound = {}
        for name, value in self.args:
            if isinstance(value, (Placeholder, MissingArg)):
                bound[name] = value.resolve(env)
            elif isinstance(value, TuneMarker):
                raise ModelTrainingError(
                    f"Argument '{name}' is marked with {value.render()} and has no value. "
                    "Finalize the tuning parameters before fitting."
                )
            elif isinstance(value, Deferred):
                if descriptors is None:
                    raise ConfigurationError(f"Argument '{name}' is deferred but no data descriptors are available.")
                bound[name] = value.evaluate(descriptors)
            else:
                bound[name] = value
        return bound

    def evaluate(self, env: Mapping[str, Any], descriptors: Any = None) -> Any:
        bound = self.bind(env, descriptors)
        if self.func.is_method:
            receiver = bound.pop("object")
            return getattr(receiver, self.func.name)(**bound)
        return self.func.resolve()(**bound)

    def __str__(self) -> str:
        return self.render()
