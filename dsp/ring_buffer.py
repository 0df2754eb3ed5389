"""
dsp/ring_buffer.py — Fixed-capacity overwrite-oldest storage
=============================================================
One generic bounded ring is reused for raw samples, confirmed peaks and
RR intervals.  All slots are allocated up front and pre-filled, so the
buffer never grows and a write is O(1).

Overwrite-on-full is the accepted lossy policy: once `capacity` items have
been written, each new item silently replaces the oldest one.
"""

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """
    Bounded FIFO ring.

    Parameters
    ----------
    capacity : int   Number of slots (> 0).
    fill     : T     Value used to pre-fill every slot (and on `clear()`).
    """

    def __init__(self, capacity: int, fill: T):
        if capacity <= 0:
            raise ValueError(f"RingBuffer capacity must be positive, got {capacity}.")
        self._capacity = capacity
        self._fill = fill
        self._slots: list[T] = [fill] * capacity
        self._head = 0          # next slot to write
        self._written = 0       # total items ever appended since last clear

    # ── Writing ──────────────────────────────────────────────────────────────

    def append(self, item: T) -> int:
        """Store `item`, overwriting the oldest slot when full.  Returns its slot index."""
        slot = self._head
        self._slots[slot] = item
        self._head = (self._head + 1) % self._capacity
        self._written += 1
        return slot

    def clear(self) -> None:
        """Re-fill every slot and zero the counters (no reallocation)."""
        for i in range(self._capacity):
            self._slots[i] = self._fill
        self._head = 0
        self._written = 0

    # ── Reading ──────────────────────────────────────────────────────────────

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def total_written(self) -> int:
        """Items appended since the last clear, including overwritten ones."""
        return self._written

    @property
    def head(self) -> int:
        """Slot index the next append will use."""
        return self._head

    def __len__(self) -> int:
        return min(self._written, self._capacity)

    def latest(self, n: int | None = None) -> list[T]:
        """
        Return up to `n` most recent items, oldest-first.

        With `n=None` every live item is returned.
        """
        size = len(self)
        if n is None or n > size:
            n = size
        if n <= 0:
            return []
        start = (self._head - n) % self._capacity
        return [self._slots[(start + i) % self._capacity] for i in range(n)]

    def last(self) -> T | None:
        """Most recent item, or None when empty."""
        if self._written == 0:
            return None
        return self._slots[(self._head - 1) % self._capacity]

    def slots(self) -> list[T]:
        """Every slot in storage order, including pre-filled ones."""
        return list(self._slots)

    def __iter__(self) -> Iterator[T]:
        return iter(self.latest())

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self._capacity}, size={len(self)})"
