"""Bounded first/last window capture buffer.

Retains the first ``first_capacity`` chunks ever added and the most recent
``last_capacity`` chunks after that.  Chunks arriving once the first window
is full go to the last window only; anything pushed out of the last window
is gone for good.  Memory is bounded by chunk count, not stream length.

    capacities (2, 2), add a b c d e  ->  first = [a, b], last = [d, e]

No internal locking.  Callers sharing one buffer across threads must
serialize add() against snapshot().
"""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

DEFAULT_CAPTURE_FIRST = 0
DEFAULT_CAPTURE_LAST = 1024


def window_sizes(*sizes: int) -> tuple[int, int]:
    """Map the (), (last,) and (first, last) shapes onto (first, last)."""
    if len(sizes) == 0:
        return DEFAULT_CAPTURE_FIRST, DEFAULT_CAPTURE_LAST
    if len(sizes) == 1:
        return DEFAULT_CAPTURE_FIRST, sizes[0]
    if len(sizes) == 2:
        return sizes[0], sizes[1]
    raise TypeError(f"expected at most 2 capture sizes, got {len(sizes)}")


class DualWindowBuffer(Generic[T]):
    """Fixed-capacity container keeping the first and last chunks seen."""

    def __init__(self, first_capacity: int = DEFAULT_CAPTURE_FIRST,
                 last_capacity: int = DEFAULT_CAPTURE_LAST,
                 copy: Callable[[Any], T] = bytes):
        if first_capacity < 0:
            raise ValueError(f"first_capacity must be >= 0, got {first_capacity}")
        if last_capacity < 0:
            raise ValueError(f"last_capacity must be >= 0, got {last_capacity}")

        self._first_capacity = int(first_capacity)
        self._last_capacity = int(last_capacity)
        self._copy = copy
        self._first: list[T] = []
        self._last: deque[T] = deque(maxlen=self._last_capacity)
        self._seen = 0

    @property
    def first_capacity(self) -> int:
        return self._first_capacity

    @property
    def last_capacity(self) -> int:
        return self._last_capacity

    @property
    def first(self) -> tuple[T, ...]:
        return tuple(self._first)

    @property
    def last(self) -> tuple[T, ...]:
        return tuple(self._last)

    @property
    def seen(self) -> int:
        """Number of non-empty chunks ever added, retained or not."""
        return self._seen

    def add(self, chunk: Any) -> None:
        """Store a private copy of *chunk*.  Empty chunks are ignored."""
        if len(chunk) == 0:
            return

        item = self._copy(chunk)
        self._seen += 1

        if len(self._first) < self._first_capacity:
            self._first.append(item)
        elif self._last_capacity > 0:
            # deque(maxlen) evicts the oldest entry on overflow
            self._last.append(item)

    def snapshot(self) -> tuple[tuple[T, ...], tuple[T, ...]]:
        """Return (first, last) windows in arrival order."""
        return tuple(self._first), tuple(self._last)

    def __len__(self) -> int:
        return len(self._first) + len(self._last)

    def __repr__(self) -> str:
        return (f"DualWindowBuffer(first={len(self._first)}/{self._first_capacity}, "
                f"last={len(self._last)}/{self._last_capacity}, seen={self._seen})")
