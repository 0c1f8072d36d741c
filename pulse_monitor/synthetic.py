"""
Synthetic PPG source.

Produces a sinusoidal intensity series at a chosen heart rate, optionally
with Gaussian noise, for demos without a camera and for tests.
"""

from __future__ import annotations

from typing import Iterator, Optional

import numpy as np

from pulse_monitor.config import FPS
from pulse_monitor.sample_buffer import Sample


def synthetic_samples(
    bpm: float = 72.0,
    fps: float = FPS,
    duration_s: float = 15.0,
    baseline: float = 100.0,
    amplitude: float = 5.0,
    noise: float = 0.0,
    start_ms: float = 0.0,
    seed: Optional[int] = None,
) -> Iterator[Sample]:
    """
    Yield ``int(fps * duration_s)`` samples of ``baseline + amplitude·sin(2π·f·t)``.

    Timestamps start at *start_ms* and advance by ``1000 / fps`` ms.
    *noise* is the standard deviation of additive Gaussian noise.
    """
    n = int(fps * duration_s)
    t = np.arange(n) / fps
    values = baseline + amplitude * np.sin(2 * np.pi * (bpm / 60.0) * t)
    if noise > 0:
        rng = np.random.default_rng(seed)
        values = values + rng.normal(0.0, noise, n)

    for ti, val in zip(t, values):
        yield Sample(value=float(val), timestamp_ms=start_ms + float(ti) * 1000.0)
