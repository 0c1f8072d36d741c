#!/usr/bin/env python3
"""
Pulse Monitor – main entry point.

Usage
-----
    python main.py [OPTIONS]

Options
-------
    --resolution WxH     Camera resolution (default: 640x480)
    --fps INT            Target frame rate  (default: 30)
    --camera-index INT   OpenCV camera index (default: 0)
    --no-flip            Disable horizontal mirror
    --save PATH          Save annotated video to file (optional)
    --headless           Run without display window (log BPM to stdout)
    --synthetic BPM      Feed a synthetic pulse at BPM instead of the camera
    --duration FLOAT     Length of the synthetic run in seconds (default: 20)
    --verbose            Debug logging

Keyboard shortcuts (when a window is open)
------------------------------------------
    q / ESC  – quit
    space    – stop / restart detection (stopping resets the detector)
    r        – reset the detector
    s        – save a single annotated frame as PNG
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import cv2

from pulse_monitor.camera import Camera, now_ms
from pulse_monitor.detector import HeartbeatDetector
from pulse_monitor.intensity import extract_sample
from pulse_monitor.synthetic import synthetic_samples
from pulse_monitor.visualizer import Visualizer

logger = logging.getLogger("pulse_monitor")

WINDOW_NAME = "Pulse Monitor"
BPM_POLL_MS = 1000.0


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fingertip heartbeat monitor (camera PPG)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--resolution", default="640x480",
                        help="Camera resolution, e.g. 640x480")
    parser.add_argument("--fps", type=int, default=30,
                        help="Target capture frame rate")
    parser.add_argument("--camera-index", type=int, default=0,
                        help="OpenCV VideoCapture index")
    parser.add_argument("--no-flip", action="store_true",
                        help="Disable horizontal image flip")
    parser.add_argument("--save", type=Path, default=None,
                        help="Save annotated video to this file path")
    parser.add_argument("--headless", action="store_true",
                        help="No display window; log BPM to stdout only")
    parser.add_argument("--synthetic", type=float, default=None, metavar="BPM",
                        help="Drive the detector with a synthetic pulse instead of the camera")
    parser.add_argument("--duration", type=float, default=20.0,
                        help="Synthetic run length in seconds")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable debug logging")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------

def run_synthetic(args: argparse.Namespace) -> int:
    detector = HeartbeatDetector()
    beats = 0

    def on_beat() -> None:
        nonlocal beats
        beats += 1

    detector.set_beat_callback(on_beat)

    next_poll = 0.0
    for sample in synthetic_samples(bpm=args.synthetic, fps=args.fps,
                                    duration_s=args.duration, noise=0.1, seed=0):
        detector.process_frame(sample)
        if sample.timestamp_ms >= next_poll:
            _report(sample.timestamp_ms / 1000.0, detector.get_bpm(), beats)
            next_poll += BPM_POLL_MS

    bpm = detector.get_bpm()
    if bpm is None:
        logger.warning("No BPM estimate after %.1f s of synthetic signal.", args.duration)
        return 1
    logger.info("Final estimate %.1f BPM (target %.1f), %d beat events.", bpm, args.synthetic, beats)
    return 0


def run(args: argparse.Namespace) -> int:
    try:
        res_w, res_h = (int(v) for v in args.resolution.lower().split("x"))
    except ValueError:
        logger.error("Invalid --resolution format.  Use WxH, e.g. 640x480.")
        return 1

    resolution = (res_w, res_h)

    camera = Camera(
        resolution=resolution,
        fps=args.fps,
        flip_horizontal=not args.no_flip,
        camera_index=args.camera_index,
    )
    detector = HeartbeatDetector()
    vis = Visualizer(resolution=resolution)
    detector.set_beat_callback(lambda: vis.pulse(now_ms()))

    writer: cv2.VideoWriter | None = None
    if args.save:
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        writer = cv2.VideoWriter(str(args.save), fourcc, args.fps, resolution)
        logger.info("Saving video to %s", args.save)

    logger.info("Starting pulse monitor.  Press 'q' or ESC to quit.")

    if not args.headless:
        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(WINDOW_NAME, res_w, res_h)

    detecting = True
    next_poll = 0.0
    start = now_ms()

    try:
        with camera:
            for frame, ts in camera.frames():
                if detecting:
                    detector.process_frame(extract_sample(frame, ts, roi=vis.get_roi()))

                annotated = vis.draw(
                    frame,
                    bpm=detector.get_bpm(),
                    buffer_fill=detector.buffer_fill_ratio,
                    now_ms=ts,
                    detecting=detecting,
                    filtered_signal=detector.get_filtered_signal() if detecting else None,
                )

                if writer is not None:
                    writer.write(annotated)

                if args.headless and ts >= next_poll:
                    _report((ts - start) / 1000.0, detector.get_bpm(), None)
                    next_poll = ts + BPM_POLL_MS

                if not args.headless:
                    cv2.imshow(WINDOW_NAME, annotated)
                    key = cv2.waitKey(1) & 0xFF
                    if key in (ord("q"), 27):          # q or ESC
                        logger.info("Quit requested by user.")
                        break
                    elif key == ord(" "):
                        if detecting:
                            detector.reset()
                            vis.reset()
                        detecting = not detecting
                        logger.info("Detection %s.", "started" if detecting else "stopped")
                    elif key == ord("r"):
                        detector.reset()
                        vis.reset()
                    elif key == ord("s"):
                        fname = f"snapshot_{int(time.time())}.png"
                        cv2.imwrite(fname, annotated)
                        logger.info("Saved snapshot: %s", fname)

    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        if writer is not None:
            writer.release()
        if not args.headless:
            cv2.destroyAllWindows()

    return 0


def _report(elapsed_s: float, bpm: float | None, beats: int | None) -> None:
    suffix = f"  beats={beats}" if beats is not None else ""
    if bpm is not None:
        print(f"[{elapsed_s:6.1f}s] BPM={bpm:.1f}{suffix}")
    else:
        print(f"[{elapsed_s:6.1f}s] Detecting…{suffix}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
    )
    if args.synthetic is not None:
        return run_synthetic(args)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
