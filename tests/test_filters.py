"""
Unit tests for the filter library.
Run with:  pytest tests/test_filters.py
"""

from __future__ import annotations

import numpy as np
import pytest

from pulse_monitor.filters import (
    bandpass_filter,
    detrend,
    find_peaks,
    moving_average,
    normalize,
    process_signal,
)


class TestMovingAverage:

    def test_shrinking_window_at_start(self):
        out = moving_average([1, 2, 3, 4, 5], 2)
        np.testing.assert_allclose(out, [1.0, 1.5, 2.5, 3.5, 4.5])

    def test_length_preserved(self):
        rng = np.random.default_rng(0)
        for n in (1, 2, 7, 100):
            for w in (1, 3, 5, 200):
                assert len(moving_average(rng.normal(size=n), w)) == n

    def test_window_of_one_is_identity(self):
        data = [3.0, -1.0, 4.0, 1.5]
        np.testing.assert_allclose(moving_average(data, 1), data)

    def test_window_longer_than_series(self):
        np.testing.assert_allclose(moving_average([2, 4, 6], 10), [2.0, 3.0, 4.0])

    def test_empty(self):
        assert len(moving_average([], 5)) == 0

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            moving_average([1, 2, 3], 0)

    def test_input_not_mutated(self):
        data = np.array([1.0, 5.0, 2.0])
        moving_average(data, 2)
        np.testing.assert_array_equal(data, [1.0, 5.0, 2.0])


class TestDetrend:

    def test_linear_series_becomes_zero(self):
        line = 3.0 * np.arange(50) + 7.0
        np.testing.assert_allclose(detrend(line), np.zeros(50), atol=1e-9)

    def test_constant_series_is_exactly_zero(self):
        out = detrend(np.full(120, 100.0))
        assert np.all(out == 0.0)

    def test_short_series_returned_unchanged(self):
        np.testing.assert_array_equal(detrend([5.0]), [5.0])
        assert len(detrend([])) == 0

    def test_removes_trend_but_keeps_oscillation(self):
        n = np.arange(200)
        wave = np.sin(2 * np.pi * n / 25)
        out = detrend(wave + 0.5 * n)
        assert abs(out.mean()) < 1e-9
        assert out.max() > 0.8


class TestNormalize:

    def test_constant_gives_zeros(self):
        out = normalize([4.0] * 10)
        assert len(out) == 10
        assert np.all(out == 0.0)

    def test_zero_mean_unit_std(self):
        rng = np.random.default_rng(1)
        out = normalize(rng.normal(50.0, 3.0, 500))
        assert abs(out.mean()) < 1e-9
        assert abs(out.std() - 1.0) < 1e-9

    def test_empty(self):
        assert len(normalize([])) == 0


class TestBandpassFilter:

    def test_lagged_difference_passes_head_through(self):
        data = np.arange(10, dtype=float)
        out = bandpass_filter(data, 3, 1)
        np.testing.assert_allclose(out, [0, 1, 2, 3, 3, 3, 3, 3, 3, 3])

    def test_low_pass_stage_is_moving_average(self):
        data = np.array([0, 0, 6, 0, 0, 0], dtype=float)
        # lag longer than the series: only the smoothing stage applies
        np.testing.assert_allclose(bandpass_filter(data, 10, 3), moving_average(data, 3))

    def test_length_preserved(self):
        assert len(bandpass_filter(np.ones(37), 10, 3)) == 37

    def test_invalid_lag(self):
        with pytest.raises(ValueError):
            bandpass_filter([1, 2, 3], 0, 3)


class TestFindPeaks:

    def test_single_peak(self):
        assert find_peaks([1, 3, 1]) == [1]

    def test_monotonic_has_no_peaks(self):
        assert find_peaks(list(range(20))) == []
        assert find_peaks(list(range(20, 0, -1))) == []

    def test_too_short(self):
        assert find_peaks([1, 3]) == []
        assert find_peaks([]) == []

    def test_plateau_never_qualifies(self):
        assert find_peaks([1, 3, 3, 1]) == []

    def test_min_height_is_strict(self):
        assert find_peaks([0, 2, 0, 5, 0], min_height=2) == [3]

    def test_equal_peaks_in_exclusion_zone_keep_earliest(self):
        assert find_peaks([1, 3, 1, 3, 1], min_distance=3) == [1]

    def test_taller_peak_replaces_previous(self):
        assert find_peaks([0, 2, 0, 5, 0], min_distance=3) == [3]

    def test_replacement_moves_the_exclusion_zone(self):
        assert find_peaks([0, 1, 0, 2, 0, 3, 0], min_distance=3) == [5]

    def test_peaks_far_enough_apart_are_kept(self):
        assert find_peaks([0, 2, 0, 0, 0, 3, 0], min_distance=3) == [1, 5]


class TestProcessSignal:

    def test_length_preserved(self):
        rng = np.random.default_rng(2)
        assert len(process_signal(rng.normal(100, 2, 200))) == 200

    def test_output_is_normalised(self):
        t = np.arange(300) / 30.0
        out = process_signal(100 + 5 * np.sin(2 * np.pi * 1.2 * t))
        assert abs(out.mean()) < 1e-9
        assert abs(out.std() - 1.0) < 1e-9
