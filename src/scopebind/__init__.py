"""Scoped dependency injection container.

This package provides a small dependency injection container for Python,
resolving types through constructor injection with singleton, scoped and
transient lifetimes, open generic registrations and collection requests.

Exports:
- `Container`: root container; register definitions and resolve services.
- `Scope`: child container from `Container.create_scope()`, owning its scoped
  instances and the transient disposables it created.
- `ServiceDefinition`: immutable registration record.
- `Lifetime`: singleton, scoped or transient.
- `constructor` / `internal`: mark which constructors activation may use.
- `Disposable` / `ServiceProvider`: protocols the container produces and consumes.
"""

from ._activation import constructor, internal
from ._container import Container, Scope
from ._definitions import Disposable, Lifetime, ServiceDefinition, ServiceKey, ServiceProvider
from ._exceptions import (
    ContainerDisposedError,
    InvalidRegistrationError,
    InvalidStateError,
    ScopebindError,
    ScopedServiceFromRootError,
    ServiceNotRegisteredError,
)


__all__ = [
    "Container",
    "ContainerDisposedError",
    "Disposable",
    "InvalidRegistrationError",
    "InvalidStateError",
    "Lifetime",
    "Scope",
    "ScopebindError",
    "ScopedServiceFromRootError",
    "ServiceDefinition",
    "ServiceKey",
    "ServiceNotRegisteredError",
    "ServiceProvider",
    "constructor",
    "internal",
]
