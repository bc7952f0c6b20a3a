"""
Bounded history of aggregate snapshots for plotting, stability and export.
Uses a circular buffer so long sessions never grow memory without bound.
"""
from collections import deque
from dataclasses import dataclass
from typing import Tuple

import config


@dataclass(frozen=True)
class LogEntry:
    """One immutable snapshot of the totals and per-channel processed values."""
    total_x: float
    total_y: float
    processed_values: Tuple[float, ...]

    @classmethod
    def from_aggregate(cls, agg):
        return cls(float(agg.total_x), float(agg.total_y), tuple(float(v) for v in agg.processed_values))


class LogBuffer:
    """
    Insertion-ordered LogEntry buffer with a fixed capacity.
    Appending beyond capacity evicts the oldest entry (FIFO).
    """

    def __init__(self, capacity=config.DEFAULT_LOG_BUFFER_SIZE):
        """
        Initialize the buffer.

        Args:
            capacity: Maximum number of entries kept (must be >= 1)
        """
        self._entries = deque(maxlen=self._validate(capacity))

    @staticmethod
    def _validate(capacity):
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"Log buffer capacity must be at least 1, got {capacity}")
        return capacity

    @property
    def capacity(self):
        return self._entries.maxlen

    def set_capacity(self, capacity):
        """Change the bound, dropping the oldest entries immediately if over."""
        capacity = self._validate(capacity)
        if capacity != self._entries.maxlen:
            # deque(iterable, maxlen) keeps the newest items
            self._entries = deque(self._entries, maxlen=capacity)

    def append(self, entry):
        if not isinstance(entry, LogEntry):
            raise TypeError(f"Expected LogEntry, got {type(entry).__name__}")
        self._entries.append(entry)

    def entries(self):
        """All entries, oldest first, as an immutable tuple."""
        return tuple(self._entries)

    def recent(self, count):
        """The newest `count` entries, oldest first."""
        if count <= 0:
            return ()
        entries = self.entries()
        return entries[-count:]

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
