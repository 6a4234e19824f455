from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, runtime_checkable


if TYPE_CHECKING:
    from collections.abc import Callable


class Lifetime(Enum):
    SINGLETON = "singleton"
    SCOPED = "scoped"
    TRANSIENT = "transient"


@runtime_checkable
class Disposable(Protocol):
    """Anything the container should release when its owner is disposed."""

    def dispose(self) -> None: ...


@runtime_checkable
class ServiceProvider(Protocol):
    """The "give me an instance for this type" capability.

    Proxy factories and other collaborators only need this much of a
    container.
    """

    def get_service(self, service_type: Any) -> Any: ...


class ServiceKey(NamedTuple):
    """Identity of a cached instance: requested type plus implementation."""

    service_type: Any
    implementation: Any


@dataclass(frozen=True, eq=False)
class ServiceDefinition:
    """Immutable description of how to produce an instance for a type.

    At resolution time ``instance`` wins over ``factory``, which wins over
    constructor activation of ``implementation_type`` (or ``service_type``
    itself when no implementation is given).
    """

    service_type: Any
    implementation_type: type | None = None
    instance: object | None = None
    factory: Callable[[Any], object] | None = None
    lifetime: Lifetime = Lifetime.SINGLETON

    def __post_init__(self) -> None:
        if self.service_type is None:
            msg = "`service_type` is required."
            raise ValueError(msg)
        if self.factory is not None and not callable(self.factory):
            msg = f"`factory` must be callable, got {self.factory!r}."
            raise TypeError(msg)

    @classmethod
    def singleton(
        cls,
        service_type: Any,
        implementation_type: type | None = None,
        *,
        factory: Callable[[Any], object] | None = None,
    ) -> ServiceDefinition:
        return cls(service_type, implementation_type, factory=factory, lifetime=Lifetime.SINGLETON)

    @classmethod
    def scoped(
        cls,
        service_type: Any,
        implementation_type: type | None = None,
        *,
        factory: Callable[[Any], object] | None = None,
    ) -> ServiceDefinition:
        return cls(service_type, implementation_type, factory=factory, lifetime=Lifetime.SCOPED)

    @classmethod
    def transient(
        cls,
        service_type: Any,
        implementation_type: type | None = None,
        *,
        factory: Callable[[Any], object] | None = None,
    ) -> ServiceDefinition:
        return cls(service_type, implementation_type, factory=factory, lifetime=Lifetime.TRANSIENT)

    @classmethod
    def from_instance(cls, service_type: Any, instance: object) -> ServiceDefinition:
        """Register a pre-built instance (always singleton)."""
        if instance is None:
            msg = "`instance` is required."
            raise ValueError(msg)
        return cls(service_type, instance=instance, lifetime=Lifetime.SINGLETON)

    def implementation_key(self, service_type: Any) -> Any:
        """The effective implementation used to key cached instances.

        Instance definitions key on the definition itself, so registering a
        new instance always replaces one that was already resolved.
        """
        if self.instance is not None:
            return self
        if self.implementation_type is not None:
            return self.implementation_type
        if self.factory is not None:
            return self.factory
        return service_type

    def cache_key(self, service_type: Any) -> ServiceKey:
        return ServiceKey(service_type, self.implementation_key(service_type))
