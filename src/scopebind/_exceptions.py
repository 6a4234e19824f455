class ScopebindError(RuntimeError):
    """Base class for every failure raised by the container itself.

    Errors raised by user constructors or factories are never wrapped; they
    reach the caller of ``get_service`` unchanged.
    """


class InvalidStateError(ScopebindError):
    """The container cannot serve the request in its current state."""


class ContainerDisposedError(InvalidStateError):
    """Raised when resolving from (or scoping off) a disposed container.

    Also raised by a scope whose root container has already been disposed.
    """


class ScopedServiceFromRootError(InvalidStateError):
    """Raised when a ``Lifetime.SCOPED`` service is requested from the root.

    Typical fix is resolving through ``container.create_scope()``.
    """


class InvalidRegistrationError(ScopebindError):
    """The effective implementation of a definition cannot be activated.

    Raised for abstract classes, protocols, non-class implementations and
    classes without any public constructor.
    """


class ServiceNotRegisteredError(ScopebindError):
    """Raised by ``get_required_service`` when nothing provides the type."""
