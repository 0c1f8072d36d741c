"""
Pulse Monitor — camera-based heartbeat detection.
Cover the camera with a fingertip; the system tracks the mean red-channel
intensity of each frame, filters it into a photoplethysmography (PPG)
waveform, counts peaks and reports BPM plus a per-beat event.
"""

__version__ = "0.1.0"
__author__ = "pulse_monitor"
