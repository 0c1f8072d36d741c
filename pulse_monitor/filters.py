"""
Signal filters for the PPG pipeline.

Every function is pure: it never mutates its input and (apart from
:func:`find_peaks`) returns a float64 array of the same length, so an index
into any stage's output is also an index into the raw sample buffer.

The "band-pass" here is a lagged difference followed by a short moving
average.  It is not a spectral filter and is kept that way on purpose: the
BPM gate and the peak spacing are tuned against this exact response.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
from scipy.signal import lfilter

from pulse_monitor.config import (
    BANDPASS_HIGH_CUT,
    BANDPASS_LOW_CUT,
    MOVING_AVERAGE_WINDOW,
)


def moving_average(series: Sequence[float], window_size: int) -> np.ndarray:
    """
    Causal moving average with a shrinking window at the start.

    ``out[i]`` is the mean of ``series[max(0, i - window_size + 1) .. i]``.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")
    x = np.asarray(series, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    sums = lfilter(np.ones(window_size), [1.0], x)
    counts = np.minimum(np.arange(1, x.size + 1), window_size)
    return sums / counts


def detrend(series: Sequence[float]) -> np.ndarray:
    """Subtract the least-squares line fitted against the sample index."""
    y = np.array(series, dtype=np.float64)
    n = y.size
    if n <= 1:
        return y

    x = np.arange(n, dtype=np.float64)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = np.dot(x, y)
    sum_xx = np.dot(x, x)

    # Closed form keeps a constant series exactly flat (no lstsq round-off).
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return y - (slope * x + intercept)


def normalize(series: Sequence[float]) -> np.ndarray:
    """Zero mean, unit (population) standard deviation.  Constant input → zeros."""
    y = np.asarray(series, dtype=np.float64)
    if y.size == 0:
        return y.copy()
    std = y.std()
    if std == 0:
        return np.zeros_like(y)
    return (y - y.mean()) / std


def bandpass_filter(
    series: Sequence[float],
    low_cut_size: int,
    high_cut_size: int,
) -> np.ndarray:
    """
    Two-stage difference/average band-pass.

    Parameters
    ----------
    low_cut_size:
        Lag of the high-pass stage: each element has the value
        ``low_cut_size`` positions behind it subtracted.  The first
        ``low_cut_size`` elements pass through unchanged.
    high_cut_size:
        Window of the low-pass :func:`moving_average` applied afterwards.
    """
    if low_cut_size < 1:
        raise ValueError(f"low_cut_size must be >= 1, got {low_cut_size}")
    x = np.asarray(series, dtype=np.float64)
    high_passed = x.copy()
    high_passed[low_cut_size:] = x[low_cut_size:] - x[:-low_cut_size]
    return moving_average(high_passed, high_cut_size)


def find_peaks(
    series: Sequence[float],
    min_height: Optional[float] = None,
    min_distance: Optional[int] = None,
) -> List[int]:
    """
    Return indices of strict local maxima.

    Flat plateaus never qualify.  With *min_height* a peak must strictly
    exceed it.  With *min_distance*, a candidate closer than that to the
    last accepted peak replaces it only when strictly taller; otherwise the
    candidate is dropped (earliest wins a tie).
    """
    x = np.asarray(series, dtype=np.float64)
    if x.size < 3:
        return []

    mid = x[1:-1]
    candidates = np.flatnonzero((x[:-2] < mid) & (x[2:] < mid)) + 1
    if min_height is not None:
        candidates = candidates[x[candidates] > min_height]

    peaks: List[int] = []
    for idx in candidates:
        i = int(idx)
        if min_distance is None or not peaks or i - peaks[-1] >= min_distance:
            peaks.append(i)
        elif x[i] > x[peaks[-1]]:
            peaks[-1] = i
    return peaks


def process_signal(
    series: Sequence[float],
    ma_window: int = MOVING_AVERAGE_WINDOW,
    low_cut: int = BANDPASS_LOW_CUT,
    high_cut: int = BANDPASS_HIGH_CUT,
) -> np.ndarray:
    """Moving average → detrend → band-pass → normalize, in that order."""
    smoothed = moving_average(series, ma_window)
    flattened = detrend(smoothed)
    banded = bandpass_filter(flattened, low_cut, high_cut)
    return normalize(banded)
