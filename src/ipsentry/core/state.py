# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""In-process containers for per-subject derived state.

:class:`SubjectStateMap` is an LRU-bounded mapping from subject id to the
engine's derived record (threat score, risk assessment).  It uses an
``OrderedDict`` so that touching a subject moves it to the most-recently-used
end; inserting past ``max_size`` evicts the least recently touched subject.

:class:`KeyedLock` hands out one lock per subject so that the
read-modify-write of a subject's record is atomic even when engines are
driven from worker threads.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

# Default maximum number of tracked subjects before eviction kicks in.
_DEFAULT_MAX_SUBJECTS = 10_000


class SubjectStateMap(Generic[K, V]):
    """LRU mapping of subject id to derived state.

    Args:
        max_size: Maximum number of subjects.  When exceeded the least
            recently touched subject is evicted.
    """

    def __init__(self, max_size: int = _DEFAULT_MAX_SUBJECTS) -> None:
        self._store: OrderedDict[K, V] = OrderedDict()
        self._max_size = max_size
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        with self._lock:
            value = self._store.get(key)
            if value is not None:
                self._store.move_to_end(key)
            return value

    def set(self, key: K, value: V) -> None:
        with self._lock:
            if key in self._store:
                self._store.move_to_end(key)
            self._store[key] = value
            while len(self._store) > self._max_size:
                self._store.popitem(last=False)

    def values(self) -> list[V]:
        with self._lock:
            return list(self._store.values())

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class KeyedLock(Generic[K]):
    """Per-key mutual exclusion."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[K, threading.Lock] = {}

    def _lock_for(self, key: K) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: K) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield
