"""
Fixed-capacity point buffer with tail retention.

Storage is a preallocated slot list addressed by a moving head index; eviction
only advances the head, so nothing is copied or reallocated while capturing.
"""
from __future__ import annotations

from typing import Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class PointBuffer(Generic[T]):
    def __init__(self, capacity: int = 50000, retain: int = 40000) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if not 0 < retain < capacity:
            raise ValueError("retain must be between 0 and capacity (exclusive)")
        self.capacity = int(capacity)
        self.retain = int(retain)
        self._slots: List[Optional[T]] = [None] * self.capacity
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        for i in range(self._size):
            yield self._slots[(self._head + i) % self.capacity]  # type: ignore[misc]

    def append(self, item: T) -> None:
        if self._size == self.capacity:
            self._evict(self.capacity - self.retain)
        self._slots[(self._head + self._size) % self.capacity] = item
        self._size += 1

    def _evict(self, count: int) -> None:
        # Oldest first; release references so evicted points can be collected
        for i in range(count):
            self._slots[(self._head + i) % self.capacity] = None
        self._head = (self._head + count) % self.capacity
        self._size -= count

    def snapshot(self) -> Tuple[T, ...]:
        return tuple(self)

    def clear(self) -> None:
        self._slots = [None] * self.capacity
        self._head = 0
        self._size = 0
