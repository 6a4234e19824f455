from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._definitions import ServiceDefinition


class ServiceRegistry:
    """Append-only list of definitions shared by a root and all its scopes.

    Appends are serialized; lookups scan a length snapshot without locking,
    so a reader never sees a half-added definition and never blocks a writer.
    """

    def __init__(self) -> None:
        self._definitions: list[ServiceDefinition] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[ServiceDefinition]:
        definitions = self._definitions
        for index in range(len(definitions)):
            yield definitions[index]

    def add(self, definition: ServiceDefinition) -> None:
        with self._lock:
            self._definitions.append(definition)

    def find_last(self, service_type: Any) -> ServiceDefinition | None:
        """Most recently added definition for `service_type` (last wins)."""
        definitions = self._definitions
        for index in range(len(definitions) - 1, -1, -1):
            definition = definitions[index]
            if _same_token(definition.service_type, service_type):
                return definition
        return None

    def find_all(self, *service_types: Any) -> list[ServiceDefinition]:
        """Every definition matching any of `service_types`, in registration order."""
        return [
            definition
            for definition in self
            if any(_same_token(definition.service_type, service_type) for service_type in service_types)
        ]


def _same_token(registered: Any, requested: Any) -> bool:
    return registered is requested or registered == requested
