"""MIDI velocity constants.

Velocity is the MIDI attack strength (0-127). A velocity of 0 is legal in the
notation language, where it marks an earlier note for deletion; modulated
velocities never drop below ``MIN_AUDIBLE_VELOCITY``.
"""

# Primary default
DEFAULT_VELOCITY = 100          # Every pitch until a v<n> element says otherwise

# Modulation clamp
MIN_AUDIBLE_VELOCITY = 1

# MIDI standard range
MIN_VELOCITY = 0
MAX_VELOCITY = 127
