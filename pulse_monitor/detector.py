"""
Heartbeat detector.

Algorithm
---------
1. Append each incoming intensity sample (and its timestamp) to a rolling
   buffer holding the last 10 seconds of data.
2. Once at least ``min_frames`` samples are buffered, run the filter
   pipeline: moving average → linear detrend → difference/average
   band-pass → z-score normalisation.
3. Locate local maxima in the filtered waveform, at least
   ``min_peak_distance`` samples apart.
4. Convert the mean spacing between consecutive peaks, measured on the
   *original* buffer timestamps, into beats per minute.
5. Keep the estimate only when it falls inside the plausible BPM range;
   otherwise the previous estimate stays in place.
6. If the latest peak sits at the very end of the buffer, notify the
   registered beat callback.

None of the "nothing to report" paths raise.  :meth:`HeartbeatDetector.process_frame`
returns a :class:`FrameOutcome` saying which path was taken.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, List, Optional, Sequence

import numpy as np

from pulse_monitor.config import (
    BANDPASS_HIGH_CUT,
    BANDPASS_LOW_CUT,
    BUFFER_RETENTION_MS,
    MAX_VALID_BPM,
    MIN_FRAMES,
    MIN_PEAK_DISTANCE,
    MIN_VALID_BPM,
    MOVING_AVERAGE_WINDOW,
    RECENT_PEAK_WINDOW,
)
from pulse_monitor.filters import find_peaks, process_signal
from pulse_monitor.sample_buffer import Sample, SampleBuffer

logger = logging.getLogger(__name__)

BeatCallback = Callable[[], None]


class DetectorState(enum.Enum):
    EMPTY = "empty"          # no samples, no BPM
    MEASURING = "measuring"  # buffer filling, no BPM yet
    STABLE = "stable"        # BPM present (sticky)


class FrameOutcome(enum.Enum):
    """What a single :meth:`HeartbeatDetector.process_frame` call did."""

    INSUFFICIENT_DATA = "insufficient_data"
    INSUFFICIENT_PEAKS = "insufficient_peaks"
    DEGENERATE_TIMING = "degenerate_timing"
    OUT_OF_RANGE_BPM = "out_of_range_bpm"
    UPDATED = "updated"


def bpm_from_peaks(
    peak_indices: Sequence[int],
    timestamps: Sequence[float],
) -> Optional[float]:
    """
    Beats per minute from the mean interval between consecutive peaks.

    Intervals are taken from *timestamps* (milliseconds) at the peak
    indices.  Non-positive intervals are ignored; returns ``None`` when
    fewer than two peaks are given or no positive interval remains.
    """
    if len(peak_indices) < 2:
        return None
    ts = np.asarray(timestamps, dtype=np.float64)[np.asarray(peak_indices, dtype=int)]
    diffs = np.diff(ts)
    valid = diffs[diffs > 0]
    if valid.size == 0:
        return None
    return float(60_000.0 / valid.mean())


class HeartbeatDetector:
    """
    Rolling PPG beat detector with a sticky BPM estimate.

    One instance per detection session.  All calls are expected from a
    single thread: frames are processed one at a time and the beat callback
    runs synchronously inside :meth:`process_frame`.

    Parameters
    ----------
    min_frames:
        Buffered samples required before the pipeline runs (default 100).
    retention_ms:
        Age, relative to the newest sample, after which samples are evicted
        (default 10 000 ms).
    ma_window:
        Moving-average window of the smoothing stage (default 5).
    bandpass_low_cut, bandpass_high_cut:
        Lag and smoothing window of the band-pass stage (default 10 / 3).
    min_peak_distance:
        Minimum spacing, in samples, between accepted peaks (default 10).
    min_bpm, max_bpm:
        Inclusive range an estimate must fall in to be stored
        (default 40 – 200).
    recent_peak_window:
        A beat event fires when the newest peak is closer than this many
        samples to the end of the buffer (default 5).
    """

    def __init__(
        self,
        min_frames: int = MIN_FRAMES,
        retention_ms: float = BUFFER_RETENTION_MS,
        ma_window: int = MOVING_AVERAGE_WINDOW,
        bandpass_low_cut: int = BANDPASS_LOW_CUT,
        bandpass_high_cut: int = BANDPASS_HIGH_CUT,
        min_peak_distance: int = MIN_PEAK_DISTANCE,
        min_bpm: float = MIN_VALID_BPM,
        max_bpm: float = MAX_VALID_BPM,
        recent_peak_window: int = RECENT_PEAK_WINDOW,
    ) -> None:
        self.min_frames = min_frames
        self.ma_window = ma_window
        self.bandpass_low_cut = bandpass_low_cut
        self.bandpass_high_cut = bandpass_high_cut
        self.min_peak_distance = min_peak_distance
        self.min_bpm = min_bpm
        self.max_bpm = max_bpm
        self.recent_peak_window = recent_peak_window

        self._buffer = SampleBuffer(retention_ms=retention_ms)
        self._last_bpm: Optional[float] = None
        self._last_peaks: List[int] = []
        self._on_beat: Optional[BeatCallback] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_frame(self, sample: Sample) -> FrameOutcome:
        """
        Ingest one sample and, once enough data is buffered, update the BPM.

        Returns the :class:`FrameOutcome` of this cycle.  The beat callback
        may be invoked (at most once) before this method returns.
        """
        self._buffer.append(sample.value, sample.timestamp_ms)
        self._buffer.evict_stale(sample.timestamp_ms)

        if len(self._buffer) < self.min_frames:
            return FrameOutcome.INSUFFICIENT_DATA

        filtered = self._filter(self._buffer.values())
        peaks = find_peaks(filtered, min_distance=self.min_peak_distance)
        self._last_peaks = peaks

        if len(peaks) < 2:
            logger.debug("Only %d peak(s) in %d samples – skipping.", len(peaks), len(filtered))
            return FrameOutcome.INSUFFICIENT_PEAKS

        outcome = self._update_bpm(peaks)

        if len(filtered) - peaks[-1] < self.recent_peak_window and self._on_beat is not None:
            self._on_beat()

        return outcome

    def get_bpm(self) -> Optional[float]:
        """Last valid BPM estimate, or ``None`` if none was ever computed."""
        return self._last_bpm

    def reset(self) -> None:
        """Clear the buffer and the estimate.  The beat callback is kept."""
        self._buffer.reset()
        self._last_bpm = None
        self._last_peaks = []
        logger.info("Detector reset.")

    def set_beat_callback(self, callback: Optional[BeatCallback]) -> None:
        """Register the single beat callback (``None`` removes it)."""
        self._on_beat = callback

    def is_valid_bpm(self, bpm: float) -> bool:
        return self.min_bpm <= bpm <= self.max_bpm

    @property
    def state(self) -> DetectorState:
        if self._last_bpm is not None:
            return DetectorState.STABLE
        if len(self._buffer):
            return DetectorState.MEASURING
        return DetectorState.EMPTY

    @property
    def buffer_fill_ratio(self) -> float:
        """Warm-up progress towards ``min_frames`` (0 – 1)."""
        return min(1.0, len(self._buffer) / self.min_frames)

    @property
    def last_peaks(self) -> List[int]:
        """Peak indices found by the most recent pipeline run."""
        return list(self._last_peaks)

    def get_buffer(self) -> np.ndarray:
        """Copy of the raw buffered intensity values (for debugging)."""
        return self._buffer.values()

    def get_filtered_signal(self) -> np.ndarray:
        """
        Return the current filtered PPG waveform (for plotting).
        Returns an empty array if there is insufficient data.
        """
        if len(self._buffer) < self.min_frames:
            return np.array([])
        return self._filter(self._buffer.values())

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _filter(self, values: np.ndarray) -> np.ndarray:
        return process_signal(
            values,
            ma_window=self.ma_window,
            low_cut=self.bandpass_low_cut,
            high_cut=self.bandpass_high_cut,
        )

    def _update_bpm(self, peaks: List[int]) -> FrameOutcome:
        bpm = bpm_from_peaks(peaks, self._buffer.timestamps())
        if bpm is None:
            logger.debug("No positive interval between %d peaks – skipping.", len(peaks))
            return FrameOutcome.DEGENERATE_TIMING

        if not self.is_valid_bpm(bpm):
            logger.debug(
                "Discarding %.1f BPM (outside %.0f – %.0f).", bpm, self.min_bpm, self.max_bpm
            )
            return FrameOutcome.OUT_OF_RANGE_BPM

        if self._last_bpm is None:
            logger.info("First BPM estimate: %.1f", bpm)
        self._last_bpm = bpm
        return FrameOutcome.UPDATED
