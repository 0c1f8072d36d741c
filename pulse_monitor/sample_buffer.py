"""
Time-windowed store of intensity samples.

Values and timestamps live in two parallel deques that always have the same
length; insertion order is chronological order.  Old samples are dropped
from the front once they fall outside the retention window, measured
against the newest timestamp rather than the wall clock.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque

import numpy as np

from pulse_monitor.config import BUFFER_RETENTION_MS


@dataclass(frozen=True)
class Sample:
    """One frame's intensity reading and its acquisition time in milliseconds."""

    value: float
    timestamp_ms: float


class SampleBuffer:
    """
    Ordered ``(value, timestamp)`` store with eviction by age.

    Parameters
    ----------
    retention_ms:
        Samples more than this many milliseconds older than the reference
        timestamp passed to :meth:`evict_stale` are discarded.
    """

    def __init__(self, retention_ms: float = BUFFER_RETENTION_MS) -> None:
        self._retention_ms = retention_ms
        self._values: Deque[float] = deque()
        self._timestamps: Deque[float] = deque()

    def append(self, value: float, timestamp_ms: float) -> None:
        self._values.append(float(value))
        self._timestamps.append(float(timestamp_ms))

    def evict_stale(self, reference_ms: float) -> int:
        """Pop samples older than the retention window; return how many went."""
        evicted = 0
        while self._timestamps and reference_ms - self._timestamps[0] > self._retention_ms:
            self._values.popleft()
            self._timestamps.popleft()
            evicted += 1
        return evicted

    def size(self) -> int:
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def reset(self) -> None:
        """Drop every buffered sample."""
        self._values.clear()
        self._timestamps.clear()

    def values(self) -> np.ndarray:
        return np.array(self._values, dtype=np.float64)

    def timestamps(self) -> np.ndarray:
        return np.array(self._timestamps, dtype=np.float64)

    @property
    def retention_ms(self) -> float:
        return self._retention_ms
