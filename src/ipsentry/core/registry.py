# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Priority-ordered in-memory registry for rule-like configuration models."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T", bound=BaseModel)


class PriorityRegistry(Generic[T]):
    """Holds models keyed by ``id``.

    When *ordered* is true the list is re-sorted ascending by ``priority``
    after every mutation (stable, so equal priorities keep insertion order).
    """

    def __init__(self, items: Iterable[T] = (), *, ordered: bool = True) -> None:
        self._ordered = ordered
        self._lock = threading.Lock()
        self._items: list[T] = []
        for item in items:
            self.add(item)

    def _resort(self) -> None:
        if self._ordered:
            self._items.sort(key=lambda item: item.priority)  # type: ignore[attr-defined]

    def add(self, item: T) -> None:
        """Insert *item*, replacing any entry with the same id."""
        with self._lock:
            self._items = [i for i in self._items if i.id != item.id]  # type: ignore[attr-defined]
            self._items.append(item)
            self._resort()

    def update(self, item_id: str, changes: dict[str, Any]) -> T | None:
        """Apply *changes* to the entry with *item_id*; ``None`` if absent.

        The merged values are re-validated, so an invalid change raises
        :class:`pydantic.ValidationError` and leaves the entry untouched.
        """
        with self._lock:
            for index, existing in enumerate(self._items):
                if existing.id == item_id:  # type: ignore[attr-defined]
                    merged = type(existing).model_validate({**existing.model_dump(), **changes})
                    self._items[index] = merged
                    self._resort()
                    return merged
        return None

    def delete(self, item_id: str) -> bool:
        with self._lock:
            before = len(self._items)
            self._items = [i for i in self._items if i.id != item_id]  # type: ignore[attr-defined]
            return len(self._items) != before

    def get(self, item_id: str) -> T | None:
        with self._lock:
            for item in self._items:
                if item.id == item_id:  # type: ignore[attr-defined]
                    return item
        return None

    def get_all(self) -> list[T]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
