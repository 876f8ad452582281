"""Periodic waveforms, ramps and noise for modulation expressions.

Every waveform maps a position (musical beats from the clip start) to a
value in [-1, 1]:

    phase = ((position / period) mod 1 + phase_offset) mod 1

    "cos"     cos(2π·phase) - starts at +1.
    "tri"     1 - 4·phase up to phase 0.5, then -3 + 4·phase.
    "saw"     1 - 2·phase - falls from +1 to -1 each period.
    "square"  +1 while phase < pulse_width, else -1.

``ramp`` interpolates linearly from a start to an end value across a time
range, optionally repeating ``speed`` times. ``noise`` draws a fresh
uniform sample in [-1, 1] from the generator it is given.
"""

import math
import random
import typing


def phase_at (position: float, period: float, phase_offset: float = 0.0) -> float:

	"""Return the phase (0 to 1) of ``position`` within a cycle of ``period`` beats."""

	if period <= 0:
		raise ValueError(f"Waveform period must be positive, got {period:g}")

	return ((position / period) % 1.0 + phase_offset) % 1.0


def cos (position: float, period: float, phase_offset: float = 0.0) -> float:
	"""Cosine wave, +1 at phase 0."""
	return math.cos(2 * math.pi * phase_at(position, period, phase_offset))


def tri (position: float, period: float, phase_offset: float = 0.0) -> float:
	"""Triangle wave, +1 at phase 0, -1 at phase 0.5."""
	phase = phase_at(position, period, phase_offset)
	if phase <= 0.5:
		return 1.0 - 4.0 * phase
	return -3.0 + 4.0 * phase


def saw (position: float, period: float, phase_offset: float = 0.0) -> float:
	"""Falling sawtooth, +1 at phase 0."""
	return 1.0 - 2.0 * phase_at(position, period, phase_offset)


def square (position: float, period: float, phase_offset: float = 0.0, pulse_width: float = 0.5) -> float:
	"""Square wave, +1 for the first ``pulse_width`` of each cycle."""
	return 1.0 if phase_at(position, period, phase_offset) < pulse_width else -1.0


def ramp (position: float, range_start: float, range_duration: float, start: float, end: float, speed: float = 1.0) -> float:

	"""
	Linear ramp from ``start`` to ``end`` across a time range.

	With ``speed`` above 1 the ramp restarts ``speed`` times within the range.
	A zero-length range returns ``start``.
	"""

	if range_duration <= 0:
		return start

	phase = ((position - range_start) / range_duration * speed) % 1.0

	return start + (end - start) * phase


def noise (rng: random.Random) -> float:
	"""Uniform sample in [-1, 1]."""
	return rng.uniform(-1.0, 1.0)


Waveform = typing.Callable[..., float]

# Waveforms taking (position, period[, phase_offset[, pulse_width]]).
WAVEFORMS: typing.Dict[str, Waveform] = {
	"cos":    cos,
	"tri":    tri,
	"saw":    saw,
	"square": square,
}
