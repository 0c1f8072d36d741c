"""
Camera frame source.

Wraps OpenCV ``VideoCapture`` and yields BGR frames together with a
millisecond acquisition timestamp taken from a monotonic clock, which is
what the detector's sample buffer is keyed on.
"""

from __future__ import annotations

import logging
import time
from typing import Generator, Tuple

import cv2
import numpy as np

from pulse_monitor.config import FPS, MAX_NULL_FRAMES, RESOLUTION

logger = logging.getLogger(__name__)


def now_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


class Camera:
    """
    Timestamped frame source backed by ``cv2.VideoCapture``.

    Parameters
    ----------
    resolution:
        (width, height) requested from the device.
    fps:
        Target frame rate.  Actual rate may differ; the timestamps, not
        this value, drive the BPM computation.
    flip_horizontal:
        Mirror the image left-to-right.
    camera_index:
        OpenCV device index.
    """

    def __init__(
        self,
        resolution: Tuple[int, int] = RESOLUTION,
        fps: int = FPS,
        flip_horizontal: bool = False,
        camera_index: int = 0,
    ) -> None:
        self.resolution = resolution
        self.fps = fps
        self.flip_horizontal = flip_horizontal
        self.camera_index = camera_index

        self._cap: "cv2.VideoCapture | None" = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            raise RuntimeError(
                f"Cannot open video capture device index={self.camera_index}"
            )
        w, h = self.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        self._cap = cap
        logger.info(
            "Camera opened – index=%d resolution=%s fps=%d",
            self.camera_index, self.resolution, self.fps,
        )

    def close(self) -> None:
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        logger.info("Camera closed.")

    def __enter__(self) -> "Camera":
        self.open()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    # ------------------------------------------------------------------
    # Frame acquisition
    # ------------------------------------------------------------------

    def read_frame(self) -> Tuple[np.ndarray | None, float]:
        """
        Capture a single frame.

        Returns
        -------
        (frame, timestamp_ms)
            BGR image (H × W × 3, uint8) or *None* on failure, and the
            monotonic time at which the read completed.
        """
        if self._cap is None:
            raise RuntimeError("Camera is not open.  Call open() first.")

        ok, frame = self._cap.read()
        ts = now_ms()
        if not ok:
            logger.warning("VideoCapture.read() returned False.")
            return None, ts
        if self.flip_horizontal:
            frame = cv2.flip(frame, 1)
        return frame, ts

    def frames(self) -> Generator[Tuple[np.ndarray, float], None, None]:
        """
        Yield ``(frame, timestamp_ms)`` until the camera is closed or
        ``MAX_NULL_FRAMES`` consecutive reads fail.

        Usage::

            with Camera() as cam:
                for frame, ts in cam.frames():
                    detector.process_frame(extract_sample(frame, ts))
        """
        null_streak = 0
        while self._cap is not None:
            frame, ts = self.read_frame()
            if frame is None:
                null_streak += 1
                if null_streak >= MAX_NULL_FRAMES:
                    logger.error(
                        "Camera returned %d consecutive empty frames – aborting.",
                        null_streak,
                    )
                    break
                continue
            null_streak = 0
            yield frame, ts
