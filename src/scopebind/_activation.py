from __future__ import annotations

import inspect
import logging
import threading
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, cast, get_type_hints

from ._exceptions import InvalidRegistrationError
from ._generics import close_implementation, substitute, unwrap_optional


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._definitions import ServiceProvider

    F = TypeVar("F", bound=Callable[..., Any])


logger = logging.getLogger(__name__)

_CONSTRUCTOR_MARK = "__scopebind_constructor__"
_INTERNAL_MARK = "__scopebind_internal__"
_INIT = "__init__"
_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def constructor(func: Any) -> Any:
    """Mark a class method as an additional public constructor.

    Example:
      class Client:
          def __init__(self, host: str, port: int, settings: Settings): ...

          @constructor
          @classmethod
          def from_settings(cls, settings: Settings) -> Client: ...

    When a class has several public constructors the one with the fewest
    parameters is used.
    """
    target = func.__func__ if isinstance(func, classmethod) else func
    setattr(target, _CONSTRUCTOR_MARK, True)
    return func


def internal(init: F) -> F:
    """Hide ``__init__`` from activation; only ``@constructor`` methods remain."""
    setattr(init, _INTERNAL_MARK, True)
    return init


@dataclass(frozen=True)
class ConstructorInfo:
    """How to build one class: which callable and what it asks for."""

    name: str
    parameters: tuple[inspect.Parameter, ...]
    hints: dict[str, Any] = field(default_factory=dict)

    @property
    def arity(self) -> int:
        return sum(1 for p in self.parameters if p.kind not in _SKIPPED_KINDS)


class Activator:
    """Builds instances of classes by calling their public constructors.

    Constructor selection is computed once per class and reused.
    """

    def __init__(self) -> None:
        self._selected: dict[type, ConstructorInfo] = {}
        self._lock = threading.Lock()

    def activate(self, resolver: ServiceProvider, implementation: Any, service_type: Any) -> object:
        target, cls, bindings = close_implementation(implementation, service_type)

        if not inspect.isclass(cls):
            msg = f"Invalid service registered, service type: {service_type!r}, implementation: {implementation!r}"
            raise InvalidRegistrationError(msg)

        if inspect.isabstract(cls) or _is_protocol(cls):
            msg = (
                f"Invalid service registered, service type: {service_type!r}, "
                f"implementation {cls.__name__} is abstract and cannot be instantiated"
            )
            raise InvalidRegistrationError(msg)

        ctor = self.select_constructor(cls)
        args, kwargs = self._materialize_call(resolver, ctor, bindings)

        if ctor.name == _INIT:
            return target(*args, **kwargs)
        return getattr(target, ctor.name)(*args, **kwargs)

    def select_constructor(self, cls: type) -> ConstructorInfo:
        selected = self._selected.get(cls)
        if selected is not None:
            return selected

        constructors = public_constructors(cls)
        if not constructors:
            msg = f"Service {cls.__name__} does not have any public constructors"
            raise InvalidRegistrationError(msg)

        # min() keeps the first of equally short constructors: __init__, then
        # marked class methods in definition order
        selected = constructors[0] if len(constructors) == 1 else min(constructors, key=lambda c: c.arity)

        with self._lock:
            self._selected.setdefault(cls, selected)
        return selected

    def _materialize_call(
        self,
        resolver: ServiceProvider,
        ctor: ConstructorInfo,
        bindings: dict[Any, Any],
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for p in ctor.parameters:
            if p.kind in _SKIPPED_KINDS:
                continue

            value = None
            hint = ctor.hints.get(p.name, inspect.Parameter.empty)
            if hint is not inspect.Parameter.empty:
                value = resolver.get_service(unwrap_optional(substitute(hint, bindings)))

            if value is None and p.default is not inspect.Parameter.empty:
                value = p.default

            if p.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[p.name] = value

        return args, kwargs


def public_constructors(cls: type) -> list[ConstructorInfo]:
    """`__init__` (unless marked `@internal`) followed by `@constructor` class methods."""
    if issubclass(cls, Enum):
        return []

    constructors: list[ConstructorInfo] = []

    init = inspect.getattr_static(cls, _INIT)
    if not getattr(init, _INTERNAL_MARK, False):
        constructors.append(_init_info(cls, init))

    marked: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if isinstance(attr, classmethod) and getattr(attr.__func__, _CONSTRUCTOR_MARK, False):
                marked[name] = attr
            elif name in marked:
                # overridden by something that is no longer a constructor
                del marked[name]

    for name, method in marked.items():
        if name.startswith("_"):
            continue
        func = method.__func__
        parameters = tuple(inspect.signature(func).parameters.values())[1:]
        constructors.append(ConstructorInfo(name, parameters, _get_type_hints(cls, func)))

    return constructors


def _init_info(cls: type, init: Any) -> ConstructorInfo:
    if init is object.__init__:
        return ConstructorInfo(_INIT, ())

    try:
        sig = inspect.signature(init)
    except (TypeError, ValueError):
        # builtin initializers without introspectable signatures
        return ConstructorInfo(_INIT, ())

    parameters = tuple(sig.parameters.values())[1:]  # drop `self`
    return ConstructorInfo(_INIT, parameters, _get_type_hints(cls, init))


def _get_type_hints(cls: type, func: Any) -> dict[str, Any]:
    try:
        hints = get_type_hints(func)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    hints.pop("return", None)
    return hints


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        # concrete subclasses of a protocol are not protocols themselves
        return issubclass(tp, cast("type", Protocol)) and Protocol in tp.__bases__
