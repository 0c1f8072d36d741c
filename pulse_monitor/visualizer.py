"""
Real-time overlay.

Draws onto each camera frame:
  • the sampled region of interest,
  • the heart-rate readout ("Detecting..." until the first estimate),
  • a warm-up bar while the detector buffer fills,
  • a scrolling strip of the filtered PPG waveform,
  • a pulse indicator that swells on every beat event.
"""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from pulse_monitor.config import RESOLUTION, ROI_FRACTION
from pulse_monitor.intensity import Roi, center_roi

# Colour palette (BGR)
_GREEN  = (0, 220,  80)
_RED    = (0,  50, 220)
_YELLOW = (0, 210, 210)
_WHITE  = (255, 255, 255)
_BLACK  = (0, 0, 0)
_CYAN   = (220, 200,  0)
_DARK   = (30, 30, 30)

PULSE_RISE_MS = 150.0
PULSE_FALL_MS = 150.0
PULSE_PEAK_SCALE = 1.3


class Visualizer:
    """
    Draws the heartbeat UI onto OpenCV frames in-place.

    Parameters
    ----------
    resolution:
        (width, height) of the video frame.
    waveform_height:
        Pixel height of the waveform strip at the bottom of the frame.
    roi_fraction:
        Fraction of each frame side covered by the sampled region.
    indicator_radius:
        Resting radius of the pulse indicator in pixels.
    """

    def __init__(
        self,
        resolution: Tuple[int, int] = RESOLUTION,
        waveform_height: int = 80,
        roi_fraction: float = ROI_FRACTION,
        indicator_radius: int = 25,
    ) -> None:
        self.w, self.h = resolution
        self.waveform_height = waveform_height
        self.indicator_radius = indicator_radius
        self.roi: Roi = center_roi(self.w, self.h, roi_fraction)

        self._last_beat_ms: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_roi(self) -> Roi:
        """Return (x, y, w, h) of the region of interest."""
        return self.roi

    def pulse(self, timestamp_ms: float) -> None:
        """Start the pulse animation; meant to be the detector's beat callback."""
        self._last_beat_ms = timestamp_ms

    def pulse_scale(self, now_ms: float) -> float:
        """Indicator scale at *now_ms*: 1 → 1.3 over 150 ms, back to 1 over 150 ms."""
        if self._last_beat_ms is None:
            return 1.0
        dt = now_ms - self._last_beat_ms
        if dt < 0 or dt >= PULSE_RISE_MS + PULSE_FALL_MS:
            return 1.0
        if dt < PULSE_RISE_MS:
            return 1.0 + (PULSE_PEAK_SCALE - 1.0) * dt / PULSE_RISE_MS
        return PULSE_PEAK_SCALE - (PULSE_PEAK_SCALE - 1.0) * (dt - PULSE_RISE_MS) / PULSE_FALL_MS

    def reset(self) -> None:
        self._last_beat_ms = None

    def draw(
        self,
        frame: np.ndarray,
        bpm: Optional[float],
        buffer_fill: float,
        now_ms: float,
        detecting: bool = True,
        filtered_signal: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Annotate *frame* in-place and return it.

        Parameters
        ----------
        bpm:
            Current estimate, or *None* before the first one.
        buffer_fill:
            Detector warm-up progress (0 – 1).
        now_ms:
            Current time on the same clock as the beat timestamps.
        detecting:
            Whether detection is running; when *False* only the status is drawn.
        filtered_signal:
            Optional 1-D filtered PPG waveform to plot.
        """
        x, y, rw, rh = self.roi
        color = _GREEN if detecting else _YELLOW
        cv2.rectangle(frame, (x, y), (x + rw, y + rh), color, 2)
        cv2.putText(
            frame, "Cover the lens" if not detecting else "Scanning...",
            (x, y - 8), cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1, cv2.LINE_AA,
        )

        self._draw_status(frame, bpm, detecting)
        if not detecting:
            return frame

        if buffer_fill < 1.0:
            self._draw_fill_bar(frame, buffer_fill)
        if filtered_signal is not None and len(filtered_signal) > 1:
            self._draw_waveform(frame, filtered_signal)
        self._draw_indicator(frame, self.pulse_scale(now_ms))
        return frame

    # ------------------------------------------------------------------
    # Private drawing helpers
    # ------------------------------------------------------------------

    def _draw_status(self, frame: np.ndarray, bpm: Optional[float], detecting: bool) -> None:
        if not detecting:
            text, col, scale = "Detection stopped", _YELLOW, 0.7
        elif bpm is None:
            text, col, scale = "Detecting...", _YELLOW, 0.7
        else:
            text, col, scale = f"{round(bpm)} BPM", _GREEN, 1.6

        thickness = 3 if scale > 1 else 2
        cv2.putText(
            frame, text, (16, 52), cv2.FONT_HERSHEY_SIMPLEX, scale, _BLACK,
            thickness + 2, cv2.LINE_AA,
        )
        cv2.putText(
            frame, text, (16, 52), cv2.FONT_HERSHEY_SIMPLEX, scale, col,
            thickness, cv2.LINE_AA,
        )

    def _draw_fill_bar(self, frame: np.ndarray, fill: float) -> None:
        bar_w = int((self.w - 32) * min(max(fill, 0.0), 1.0))
        y0, y1 = self.h - self.waveform_height - 12, self.h - self.waveform_height - 4
        cv2.rectangle(frame, (16, y0), (self.w - 16, y1), _DARK, -1)
        cv2.rectangle(frame, (16, y0), (16 + bar_w, y1), _CYAN, -1)
        cv2.putText(
            frame, "warming up",
            (16, y0 - 2), cv2.FONT_HERSHEY_SIMPLEX, 0.35, _CYAN, 1, cv2.LINE_AA,
        )

    def _draw_waveform(self, frame: np.ndarray, signal: np.ndarray) -> None:
        panel_top = self.h - self.waveform_height
        cv2.rectangle(frame, (0, panel_top), (self.w, self.h), _DARK, -1)

        sig = np.asarray(signal, dtype=np.float64)[-self.w:]
        mn, mx = sig.min(), sig.max()
        rng = mx - mn if mx != mn else 1.0
        norm = (sig - mn) / rng

        margin = 6
        plot_h = self.waveform_height - 2 * margin
        xs = np.linspace(0, self.w - 1, len(norm)).astype(np.int32)
        ys = (panel_top + margin + (1.0 - norm) * plot_h).astype(np.int32)
        pts = np.column_stack([xs, ys])
        cv2.polylines(frame, [pts[:, None, :]], False, _GREEN, 1, cv2.LINE_AA)

        cv2.putText(
            frame, "PPG",
            (4, panel_top + 14), cv2.FONT_HERSHEY_SIMPLEX, 0.4, _WHITE, 1, cv2.LINE_AA,
        )

    def _draw_indicator(self, frame: np.ndarray, scale: float) -> None:
        center = (self.w // 2, self.h - self.waveform_height - 40)
        cv2.circle(frame, center, int(self.indicator_radius * scale), _RED, -1, cv2.LINE_AA)
