from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._activation import Activator
from ._cache import DisposableTracker, InstanceCache, dispose_all
from ._definitions import Lifetime, ServiceDefinition
from ._exceptions import (
    ContainerDisposedError,
    ScopedServiceFromRootError,
    ServiceNotRegisteredError,
)
from ._generics import collection_element, open_generic
from ._registry import ServiceRegistry


if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    T = TypeVar("T")


logger = logging.getLogger(__name__)


class Container:
    """DI container with singleton, scoped and transient lifetimes.

    - register definitions (implementation type, factory or instance)
    - resolve with constructor injection
    - scopes share registrations and singletons with the root, but own their
      scoped instances and the transient disposables they created.

    Example:
      container = Container()
      container.register(Clock, SystemClock)
      container.register(UnitOfWork, SqlUnitOfWork, lifetime=Lifetime.SCOPED)
      with container.create_scope() as scope:
          uow = scope.get_required_service(UnitOfWork)

    """

    def __init__(self) -> None:
        self._root: Container = self
        self._registry = ServiceRegistry()
        self._singletons = InstanceCache()
        self._activator = Activator()
        self._scoped: InstanceCache | None = None
        self._transient_disposables = DisposableTracker()
        self._disposed = False
        self._dispose_lock = threading.Lock()

    @property
    def is_root(self) -> bool:
        return self._root is self

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def __enter__(self) -> Container:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()

    def __repr__(self) -> str:
        kind = "root" if self.is_root else "scope"
        state = ", disposed" if self._disposed else ""
        return f"<{type(self).__name__} {kind}, {len(self._registry)} definition(s){state}>"

    # registration

    def add(self, definition: ServiceDefinition) -> None:
        """Append `definition`; a later definition for the same type wins.

        Silently ignored once this container is disposed.
        """
        if definition is None:
            msg = "`definition` is required."
            raise ValueError(msg)
        if self._disposed:
            return
        self._registry.add(definition)
        logger.debug("registered %r (%s)", definition.service_type, definition.lifetime.value)

    def register(
        self,
        service_type: Any,
        implementation_type: type | None = None,
        *,
        factory: Callable[[Container], object] | None = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Register a concrete type or a factory for a service type.

        Example:
          container.register(IFoo, FooImpl)
          container.register(Db, factory=create_db, lifetime=Lifetime.SCOPED)
          container.register(Repository, SqlRepository)  # open generics

        """
        if implementation_type is not None and factory is not None:
            msg = "Provide either `implementation_type` or `factory`, not both."
            raise ValueError(msg)

        self.add(ServiceDefinition(service_type, implementation_type, factory=factory, lifetime=lifetime))

    def register_instance(self, service_type: Any, instance: object) -> None:
        """Register a pre-built instance (always singleton)."""
        self.add(ServiceDefinition.from_instance(service_type, instance))

    def create_scope(self) -> Scope:
        """Create a child scope sharing registrations and singletons."""
        self._ensure_usable("create a scope from")
        scope = Scope(self, _from_parent=True)
        logger.debug("created scope %#x from %r", id(scope), self)
        return scope

    # resolution

    @overload
    def get_service(self, service_type: type[T]) -> T | None: ...

    @overload
    def get_service(self, service_type: Any) -> Any: ...

    def get_service(self, service_type: Any) -> Any:
        """Resolve `service_type`, or return None when nothing provides it.

        - a direct definition (last registered wins);
        - else the open generic definition of a parameterized request;
        - else, for ``list[T]``/``Sequence[T]``/..., every definition of ``T``.
        """
        if service_type is None:
            msg = "`service_type` is required."
            raise ValueError(msg)
        self._ensure_usable(f"resolve {service_type!r} from")

        definition = self._registry.find_last(service_type)
        if definition is None:
            generic = open_generic(service_type)
            if generic is not None:
                definition = self._registry.find_last(generic)

        if definition is None:
            element = collection_element(service_type)
            if element is None:
                return None
            element_type, collection_type = element
            return collection_type(self._resolve_all(element_type))

        return self._resolve(service_type, definition)

    @overload
    def get_required_service(self, service_type: type[T]) -> T: ...

    @overload
    def get_required_service(self, service_type: Any) -> Any: ...

    def get_required_service(self, service_type: Any) -> Any:
        instance = self.get_service(service_type)
        if instance is None:
            msg = f"No service registered for {service_type!r}"
            raise ServiceNotRegisteredError(msg)
        return instance

    def get_services(self, service_type: type[T]) -> list[T]:
        """Every registered `service_type`, in registration order."""
        return self.get_service(list[service_type])  # type: ignore[valid-type]

    def _resolve_all(self, element_type: Any) -> list[object]:
        candidates = [element_type]
        generic = open_generic(element_type)
        if generic is not None:
            candidates.append(generic)

        instances: list[object] = []
        for definition in self._registry.find_all(*candidates):
            instance = self._resolve(element_type, definition)
            if instance is not None:
                instances.append(instance)
        return instances

    def _resolve(self, service_type: Any, definition: ServiceDefinition) -> object:
        lifetime = definition.lifetime

        if lifetime is Lifetime.SINGLETON:
            return self._singletons.get_or_create(
                definition.cache_key(service_type),
                lambda: self._activate(service_type, definition),
            )

        if lifetime is Lifetime.SCOPED:
            if self._scoped is None:
                msg = f"Cannot resolve scoped service {service_type!r} from the root container, create a scope first"
                raise ScopedServiceFromRootError(msg)
            return self._scoped.get_or_create(
                definition.cache_key(service_type),
                lambda: self._activate(service_type, definition),
            )

        instance = self._activate(service_type, definition)
        self._transient_disposables.track(instance)
        return instance

    def _activate(self, service_type: Any, definition: ServiceDefinition) -> object:
        if definition.instance is not None:
            return definition.instance

        if definition.factory is not None:
            return definition.factory(self)

        implementation = definition.implementation_type or service_type
        return self._activator.activate(self, implementation, service_type)

    def _ensure_usable(self, action: str) -> None:
        if self._disposed:
            msg = f"Cannot {action} a disposed container"
            raise ContainerDisposedError(msg)
        if self._root._disposed:
            msg = f"Cannot {action} a scope whose root container is disposed"
            raise ContainerDisposedError(msg)

    # disposal

    def dispose(self) -> None:
        """Release owned disposables; safe to call more than once.

        The root releases singletons and its own transients, a scope its
        scoped instances and its own transients. A resolution already in
        flight when disposal starts may still publish an instance after the
        caches are drained; that instance is not released.
        """
        if self._disposed:
            return

        with self._dispose_lock:
            if self._disposed:
                return
            self._disposed = True

            owned = self._singletons if self._scoped is None else self._scoped
            instances = owned.drain()
            instances.extend(self._transient_disposables.drain())

        logger.debug("disposing %r", self)
        dispose_all(instances, owner=repr(self))


class Scope(Container):
    """A child container created by `Container.create_scope()`.

    Shares the registrations and singletons of its root, owns its scoped
    instances and the transient disposables resolved through it. Disposing a
    scope never touches singletons.
    """

    def __init__(self, parent: Container, *, _from_parent: bool = False) -> None:
        if not _from_parent:
            msg = "Scope instances must be created via Container.create_scope()"
            raise RuntimeError(msg)
        self._root = parent._root
        self._registry = parent._registry
        self._singletons = parent._singletons
        self._activator = parent._activator
        self._scoped = InstanceCache()
        self._transient_disposables = DisposableTracker()
        self._disposed = False
        self._dispose_lock = threading.Lock()
