"""Min-priority queue used by the shortest-path search."""

from __future__ import annotations

import heapq
import itertools
from typing import Generic, TypeVar

T = TypeVar("T")


class MinPriorityQueue(Generic[T]):
    """Binary heap keyed on priority.

    Entries with equal priority pop in insertion order: every push takes the
    next value of a monotonically increasing counter, and the heap compares
    ``(priority, counter)`` so items themselves are never compared.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[float, int, T]] = []
        self._counter = itertools.count()

    def push(self, item: T, priority: float) -> None:
        heapq.heappush(self._heap, (priority, next(self._counter), item))

    def pop(self) -> tuple[T, float]:
        if not self._heap:
            raise IndexError("pop from empty priority queue")
        priority, _, item = heapq.heappop(self._heap)
        return item, priority

    def peek(self) -> tuple[T, float]:
        if not self._heap:
            raise IndexError("peek at empty priority queue")
        priority, _, item = self._heap[0]
        return item, priority

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
