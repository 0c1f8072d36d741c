"""
Unit tests for the camera frame source (OpenCV capture replaced by a fake).
Run with:  pytest tests/test_camera.py
"""

from __future__ import annotations

import numpy as np
import pytest

import pulse_monitor.camera as camera_mod
from pulse_monitor.camera import Camera


class FakeCapture:
    """Stand-in for cv2.VideoCapture returning scripted reads."""

    def __init__(self, reads, opened=True):
        self._reads = list(reads)
        self._opened = opened
        self.released = False
        self.props = {}

    def isOpened(self):
        return self._opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        if not self._reads:
            return False, None
        frame = self._reads.pop(0)
        return frame is not None, frame

    def release(self):
        self.released = True


def _install(monkeypatch, capture):
    monkeypatch.setattr(camera_mod.cv2, "VideoCapture", lambda index: capture)


class TestCamera:

    def test_read_requires_open(self):
        with pytest.raises(RuntimeError):
            Camera().read_frame()

    def test_open_failure_raises(self, monkeypatch):
        _install(monkeypatch, FakeCapture([], opened=False))
        with pytest.raises(RuntimeError):
            Camera().open()

    def test_frames_are_timestamped_in_order(self, monkeypatch):
        frames = [np.full((4, 4, 3), i, dtype=np.uint8) for i in range(3)]
        cap = FakeCapture(frames)
        _install(monkeypatch, cap)

        with Camera() as cam:
            got = []
            for frame, ts in cam.frames():
                got.append((int(frame[0, 0, 0]), ts))
                if len(got) == 3:
                    break

        assert [v for v, _ in got] == [0, 1, 2]
        stamps = [ts for _, ts in got]
        assert stamps == sorted(stamps)
        assert cap.released

    def test_frames_abort_after_consecutive_failures(self, monkeypatch):
        good = np.zeros((4, 4, 3), dtype=np.uint8)
        _install(monkeypatch, FakeCapture([good] + [None] * 20))

        with Camera() as cam:
            got = list(cam.frames())
        assert len(got) == 1

    def test_flip_horizontal(self, monkeypatch):
        frame = np.zeros((2, 2, 3), dtype=np.uint8)
        frame[:, 0] = 255
        _install(monkeypatch, FakeCapture([frame]))

        with Camera(flip_horizontal=True) as cam:
            flipped, _ = cam.read_frame()
        assert flipped[0, 1, 0] == 255
        assert flipped[0, 0, 0] == 0
