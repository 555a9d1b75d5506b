"""
Concurrency utilities.

Provides a `synchronized` decorator that acquires an instance `_lock` if
present, and `KeyedLocks`, a registry of lazily created per-key locks used to
give each entity (e.g. a sensor) its own exclusion scope.
"""

from __future__ import annotations

import threading
from functools import wraps
from typing import Callable, Hashable


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
    """Per-key locks created on first use.

    The registry lock is only held while looking up or creating an entry,
    never while the returned per-key lock is held by a caller.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def get(self, key: Hashable) -> threading.Lock:
        """Return (or create) the lock for ``key``."""
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def discard(self, key: Hashable) -> None:
        """Forget the lock for ``key`` (callers still holding it are unaffected)."""
        with self._registry_lock:
            self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
