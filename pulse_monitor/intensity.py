"""
Per-frame intensity extraction.

With a fingertip pressed on the lens the frame turns a near-uniform red whose
brightness dips slightly each time a pulse of blood passes.  The mean red
level over the centre of the frame is the raw PPG sample fed to the
detector.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from pulse_monitor.config import RED_CHANNEL, ROI_FRACTION
from pulse_monitor.sample_buffer import Sample

Roi = Tuple[int, int, int, int]   # x, y, w, h


def center_roi(width: int, height: int, fraction: float = ROI_FRACTION) -> Roi:
    """Return ``(x, y, w, h)`` of a centred rectangle covering *fraction* of each side."""
    roi_w = int(width * fraction)
    roi_h = int(height * fraction)
    return (width - roi_w) // 2, (height - roi_h) // 2, roi_w, roi_h


def channel_mean(
    frame: np.ndarray,
    channel: int = RED_CHANNEL,
    roi: Optional[Roi] = None,
) -> float:
    """
    Mean intensity of one colour channel inside *roi*.

    Parameters
    ----------
    frame:
        BGR image array (H × W × 3, uint8) or a single-channel image.
    channel:
        Channel index to average (default: red in BGR order).
    roi:
        ``(x, y, w, h)`` region; defaults to the centre 50 % of the frame.
    """
    h, w = frame.shape[:2]
    x, y, rw, rh = roi if roi is not None else center_roi(w, h)
    patch = frame[y:y + rh, x:x + rw]
    if patch.size == 0:
        return 0.0
    if patch.ndim == 3:
        patch = patch[:, :, channel]
    return float(np.mean(patch))


def extract_sample(
    frame: np.ndarray,
    timestamp_ms: float,
    roi: Optional[Roi] = None,
    channel: int = RED_CHANNEL,
) -> Sample:
    return Sample(value=channel_mean(frame, channel=channel, roi=roi), timestamp_ms=timestamp_ms)
