from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from ._definitions import Disposable


if TYPE_CHECKING:
    from collections.abc import Callable, Hashable


logger = logging.getLogger(__name__)

_MISSING = object()


class InstanceCache:
    """Key -> instance map with atomic get-or-create.

    Construction for a key runs under that key's lock, so concurrent first
    requests build exactly one instance and every caller gets the same one.
    Locks are re-entrant; a dependency cycle recurses instead of deadlocking.
    """

    def __init__(self) -> None:
        self._instances: dict[Hashable, object] = {}
        self._key_locks: dict[Hashable, threading.RLock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._instances

    def get_or_create(self, key: Hashable, factory: Callable[[], object]) -> object:
        instance = self._instances.get(key, _MISSING)
        if instance is not _MISSING:
            return instance

        with self._lock_for(key):
            instance = self._instances.get(key, _MISSING)
            if instance is _MISSING:
                instance = factory()
                with self._lock:
                    self._instances[key] = instance
        return instance

    def drain(self) -> list[object]:
        """Remove and return every cached instance, oldest first."""
        with self._lock:
            instances = list(self._instances.values())
            self._instances.clear()
            self._key_locks.clear()
        return instances

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.RLock()
            return lock


class DisposableTracker:
    """Transient instances a container has to release on disposal."""

    def __init__(self) -> None:
        self._instances: list[Disposable] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._instances)

    def track(self, instance: object) -> bool:
        if not is_disposable(instance):
            return False
        with self._lock:
            self._instances.append(instance)
        return True

    def drain(self) -> list[object]:
        with self._lock:
            instances: list[object] = list(self._instances)
            self._instances.clear()
        return instances


def is_disposable(instance: object) -> bool:
    # classes expose `dispose` as an unbound function; only instances count
    if isinstance(instance, type) or not isinstance(instance, Disposable):
        return False
    return callable(getattr(instance, "dispose", None))


def dispose_all(instances: list[Any], owner: str) -> None:
    """Release `instances` newest first, each object once.

    Every instance is attempted; the first failure is re-raised afterwards.
    """
    seen: set[int] = set()
    first_error: BaseException | None = None

    for instance in reversed(instances):
        if id(instance) in seen or not is_disposable(instance):
            continue
        seen.add(id(instance))
        try:
            instance.dispose()
        except Exception as exc:
            logger.exception("failed to dispose %s owned by %s", type(instance).__name__, owner)
            if first_error is None:
                first_error = exc

    logger.debug("%s released %d disposable(s)", owner, len(seen))

    if first_error is not None:
        raise first_error
