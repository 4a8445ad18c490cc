"""
Concurrency utilities.

Provides a `synchronized` decorator that acquires an instance `_lock` if present,
and `KeyedLocks`, a registry of re-entrant locks sharded by key (one per device
id) so that work for different devices runs independently while work for the
same device is serialised.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Callable


def synchronized(func: Callable) -> Callable:
    """Decorator that acquires `self._lock` if present on the instance.

    If no `_lock` attribute exists on `self`, the function is executed
    without locking.
    """

    @wraps(func)
    def _wrapped(*args, **kwargs):
        self = args[0] if args else None
        lock = getattr(self, "_lock", None)
        if lock is None:
            return func(*args, **kwargs)
        with lock:
            return func(*args, **kwargs)

    return _wrapped


class KeyedLocks:
    """Lazily created ``RLock`` per key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    @synchronized
    def get(self, key: Hashable) -> threading.RLock:
        lock = self._locks.get(key)
        if lock is None:
            lock = threading.RLock()
            self._locks[key] = lock
        return lock

    @synchronized
    def discard(self, key: Hashable) -> None:
        self._locks.pop(key, None)

    @synchronized
    def keys(self) -> list[Hashable]:
        return list(self._locks)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self.get(key)
        with lock:
            yield
