"""Tuning constants shared by the detector, the CLI and the collaborators."""

# ==================== SAMPLE BUFFER ====================
BUFFER_RETENTION_MS = 10_000   # Samples older than this (vs. newest timestamp) are evicted
MIN_FRAMES = 100               # Buffered samples required before the pipeline runs

# ==================== FILTER PIPELINE ====================
MOVING_AVERAGE_WINDOW = 5      # Causal smoothing window (samples)
BANDPASS_LOW_CUT = 10          # Lag of the high-pass difference stage (samples)
BANDPASS_HIGH_CUT = 3          # Window of the low-pass smoothing stage (samples)
MIN_PEAK_DISTANCE = 10         # Exclusion zone between accepted peaks (samples)

# ==================== BPM GATE ====================
MIN_VALID_BPM = 40.0           # Lowest plausible heart rate (beats per minute)
MAX_VALID_BPM = 200.0          # Highest plausible heart rate (beats per minute)
RECENT_PEAK_WINDOW = 5         # A peak this close to the buffer end fires a beat event

# ==================== REGION OF INTEREST ====================
ROI_FRACTION = 0.5             # Centre square covering the middle 50 % of the frame
RED_CHANNEL = 2                # Channel index of red in OpenCV BGR frames

# ==================== VIDEO CAPTURE ====================
FPS = 30                       # Default capture rate
RESOLUTION = (640, 480)        # Default capture size (width, height)
MAX_NULL_FRAMES = 10           # Consecutive failed reads before capture aborts
