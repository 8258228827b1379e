"""Byte-stream FIFO with a fixed capacity and backpressure accounting."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Optional

DEFAULT_FIFO_DEPTH = 4096


@dataclass
class FIFOStats:
    """Flow-control counters for a DataFabric."""

    backpressure_events: int = 0
    total_bytes_written: int = 0
    total_bytes_dropped: int = 0
    total_bytes_read: int = 0
    max_depth_reached: int = 0


class DataFabric:
    """A bounded queue of byte chunks between a producer and the order book.

    Writes that would exceed the capacity are refused whole and counted as
    backpressure; nothing is ever split or partially accepted.
    """

    def __init__(self, max_depth: int = DEFAULT_FIFO_DEPTH) -> None:
        if max_depth <= 0:
            raise ValueError("max_depth must be positive")
        self.max_depth_bytes = max_depth
        self._fifo: deque[bytes] = deque()
        self._depth = 0
        self.stats = FIFOStats()

    def write_chunk(self, chunk: bytes) -> bool:
        """Queue a chunk; return False (and drop it) if it does not fit."""
        data = bytes(chunk)
        size = len(data)
        if self._depth + size > self.max_depth_bytes:
            self.stats.backpressure_events += 1
            self.stats.total_bytes_dropped += size
            return False
        self._fifo.append(data)
        self._depth += size
        self.stats.total_bytes_written += size
        self.stats.max_depth_reached = max(self.stats.max_depth_reached, self._depth)
        return True

    def read_chunk(self) -> Optional[bytes]:
        """Take the oldest chunk off the queue, or return None if it is empty."""
        if not self._fifo:
            return None
        data = self._fifo.popleft()
        self._depth -= len(data)
        self.stats.total_bytes_read += len(data)
        return data

    def __iter__(self):
        """Drain the queue, yielding chunks oldest first."""
        while (chunk := self.read_chunk()) is not None:
            yield chunk

    def is_empty(self) -> bool:
        return not self._fifo

    def is_full(self) -> bool:
        return self._depth >= self.max_depth_bytes

    def depth_bytes(self) -> int:
        return self._depth

    def available_bytes(self) -> int:
        return self.max_depth_bytes - self._depth

    def utilization(self) -> float:
        """Fraction of the capacity currently occupied."""
        return self._depth / self.max_depth_bytes

    def reset_stats(self) -> None:
        self.stats = FIFOStats()