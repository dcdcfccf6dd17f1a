"""
Default thresholds for the metrics engine.

Every value here can be overridden from the matching section of
config/config.yaml.
"""

# Pointer
MIN_PATH_SAMPLES = 2
MIN_OVERSHOOT_SAMPLES = 3
MIN_VELOCITY_SAMPLES = 2

# Keyboard
MIN_KEYBOARD_EVENTS = 3
MIN_KEYDOWNS = 5
MIN_INTERVALS = 3
MIN_PAUSE_INTERVALS = 5
INTERVAL_PERCENTILE = 0.95
INTERVAL_CUTOFF_MULTIPLIER = 1.5
PAUSE_MULTIPLIER = 3.0
MIN_PAUSE_MS = 1000.0
DEEP_PAUSE_MS = 5000.0
MIN_HOLD_MS = 20.0
MAX_HOLD_MS = 1000.0
MIN_HOLDS = 5
IQR_MULTIPLIER = 1.5
MIN_CONTENT_CHARS = 3
IMMEDIATE_CORRECTION_WINDOW = 3
FLUENCY_SPEED_NORM = 5.0  # chars/sec treated as full speed
FLUENCY_WEIGHTS = {
    'speed': 0.4,
    'rhythm': 0.4,
    'correction': 0.2,
}

CONTENT_KEYS = frozenset({'Space', 'Enter'})
CORRECTION_KEYS = frozenset({'Backspace', 'Delete'})

# Engine
DEFAULT_MAX_WORKERS = 1
GLOBAL_SCOPE = 'global'
