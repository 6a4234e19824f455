"""Helpers for open generics and collection requests.

A parameterized request such as ``Repository[User]`` can be served by a
registration of the open class ``Repository``; the registration's
implementation (``SqlRepository``, itself ``Generic[T]``) is then closed over
the requested arguments before activation.
"""

from __future__ import annotations

import collections.abc
import inspect
import logging
import types
import typing
from typing import Any, TypeVar, Union, get_args, get_origin

from ._exceptions import InvalidRegistrationError


logger = logging.getLogger(__name__)

_LIST_ORIGINS = frozenset(
    {
        list,
        collections.abc.Iterable,
        collections.abc.Collection,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Reversible,
    }
)

_UNION_ORIGINS: frozenset[Any] = frozenset({Union, types.UnionType})


def open_generic(service_type: Any) -> Any | None:
    """Open definition of a parameterized type, e.g. `Repo` for `Repo[int]`."""
    origin = get_origin(service_type)
    if origin is None or not get_args(service_type):
        return None
    return origin


def is_open_generic_class(cls: Any) -> bool:
    return inspect.isclass(cls) and bool(getattr(cls, "__parameters__", ()))


def collection_element(service_type: Any) -> tuple[Any, type] | None:
    """Return ``(T, container_type)`` when `service_type` asks for many `T`."""
    origin = get_origin(service_type)
    args = get_args(service_type)
    if origin in _LIST_ORIGINS and len(args) == 1:
        return args[0], list
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
        return args[0], tuple
    return None


def unwrap_optional(hint: Any) -> Any:
    """`X | None` -> `X`; any other hint is returned unchanged."""
    if get_origin(hint) not in _UNION_ORIGINS:
        return hint
    members = [arg for arg in get_args(hint) if arg is not type(None)]
    if len(members) == 1:
        return members[0]
    return hint


def close_implementation(implementation: Any, service_type: Any) -> tuple[Any, type, dict[TypeVar, Any]]:
    """Resolve what to call, which class to inspect and the type variable bindings.

    - ``Repo[int]`` (already closed): call it as is, inspect ``Repo``,
      bind ``Repo``'s parameters positionally.
    - ``SqlRepo`` (open) requested as ``Repo[int]``: call ``SqlRepo[int]``.
    - anything else is returned untouched with no bindings.
    """
    origin = get_origin(implementation)
    if inspect.isclass(origin):
        parameters = getattr(origin, "__parameters__", ())
        return implementation, origin, dict(zip(parameters, get_args(implementation)))

    requested_args = get_args(service_type)
    if not is_open_generic_class(implementation) or not requested_args:
        return implementation, implementation, {}

    bindings = _bind_from_bases(implementation, get_origin(service_type), requested_args)
    parameters = implementation.__parameters__
    unbound = [p for p in parameters if p not in bindings]
    if unbound:
        names = ", ".join(str(p) for p in unbound)
        msg = (
            f"Cannot close {implementation.__name__} for {service_type!r}: "
            f"type variable(s) {names} are not bound by the requested arguments."
        )
        raise InvalidRegistrationError(msg)

    closed = implementation[tuple(bindings[p] for p in parameters)]
    logger.debug("closed %s over %r -> %r", implementation.__name__, service_type, closed)
    return closed, implementation, bindings


def substitute(hint: Any, bindings: dict[TypeVar, Any]) -> Any:
    """Replace type variables in `hint` using `bindings`."""
    if not bindings:
        return hint
    if isinstance(hint, TypeVar):
        return bindings.get(hint, hint)
    parameters = getattr(hint, "__parameters__", ())
    if not parameters:
        return hint
    try:
        return hint[tuple(bindings.get(p, p) for p in parameters)]
    except TypeError:
        logger.debug("cannot substitute type variables in %r", hint)
        return hint


def _bind_from_bases(implementation: type, service_origin: Any, requested_args: tuple[Any, ...]) -> dict[TypeVar, Any]:
    # `class SqlRepo(Repo[T])` requested as `Repo[int]` binds T -> int through
    # the declared base; otherwise fall back to positional binding.
    for base in typing.cast("tuple[Any, ...]", implementation.__dict__.get("__orig_bases__", ())):
        if get_origin(base) is not service_origin:
            continue
        bindings: dict[TypeVar, Any] = {}
        for template, concrete in zip(get_args(base), requested_args):
            if isinstance(template, TypeVar):
                bindings[template] = concrete
        return bindings

    parameters = implementation.__parameters__
    if len(parameters) == len(requested_args):
        return dict(zip(parameters, requested_args))
    return {}
