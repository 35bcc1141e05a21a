"""Minimum priority queue over resolver states."""

from __future__ import annotations

import heapq
import itertools
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class PriorityQueue(Generic[T]):
    """Binary heap keyed by lexicographically compared tuples.

    Lower keys pop first. Items pushed with equal keys pop in insertion
    order, which keeps the search deterministic. The queue is unbounded.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[Any, int, T]] = []
        self._counter = itertools.count()

    def push(self, item: T, key: Any) -> None:
        heapq.heappush(self._heap, (key, next(self._counter), item))

    def pop(self) -> T:
        """Remove and return the item with the lowest key.

        Raises:
            IndexError: If the queue is empty.
        """
        if not self._heap:
            raise IndexError("pop from an empty priority queue")
        return heapq.heappop(self._heap)[2]

    def peek_key(self) -> Any:
        if not self._heap:
            raise IndexError("peek into an empty priority queue")
        return self._heap[0][0]

    def empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
