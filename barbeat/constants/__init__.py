"""Constants for barbeat.

This package contains:

- ``barbeat.constants.pitch`` - Pitch-class values and the MIDI note range
- ``barbeat.constants.velocity`` - Velocity defaults and bounds

Interpreter defaults that hold for every notation string are defined here.
All time values are in **musical beats** (the time signature's
denominator unit) unless stated otherwise.
"""

# Meter used when a caller gives no beats-per-bar or time signature.
DEFAULT_TIME_SIG_NUMERATOR = 4
DEFAULT_TIME_SIG_DENOMINATOR = 4

# Host environments measure time in quarter notes.
HOST_BEAT_UNIT = 4

DEFAULT_DURATION = 1.0
DEFAULT_PROBABILITY = 1.0

MIN_PROBABILITY = 0.0
MAX_PROBABILITY = 1.0

# Shortest duration a modulation may leave behind.
MIN_DURATION = 0.001

# Two events closer than this (in beats) share a time position.
TIME_EPSILON = 0.001

# Repeat patterns generating more positions than this log a warning.
REPEAT_WARNING_THRESHOLD = 100
