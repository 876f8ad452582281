"""Conversions between bar|beat coordinates and a linear beat axis.

Bars and beats are 1-based (``1|1`` is the start of the clip). Positions on
the linear axis start at 0.

Two beat units are in play:

- **musical beats** count the time signature's denominator unit, so a 6/8
  bar holds six of them.
- **host beats** are quarter notes, the unit note events are stored in.

``host = musical * 4 / denominator``.
"""

import dataclasses
import math
import typing

import barbeat.constants
import barbeat.errors


@dataclasses.dataclass(frozen=True)
class Meter:

	"""
	A time signature.
	"""

	numerator: int = barbeat.constants.DEFAULT_TIME_SIG_NUMERATOR
	denominator: int = barbeat.constants.DEFAULT_TIME_SIG_DENOMINATOR

	@property
	def beats_per_bar (self) -> int:
		return self.numerator

	def to_host (self, musical_beats: float) -> float:
		return musical_to_host(musical_beats, self.denominator)

	def to_musical (self, host_beats: float) -> float:
		return host_to_musical(host_beats, self.denominator)


def resolve_meter (
	beats_per_bar: typing.Optional[int] = None,
	time_sig_numerator: typing.Optional[int] = None,
	time_sig_denominator: typing.Optional[int] = None,
) -> Meter:

	"""
	Work out the governing meter from the options a caller supplied.

	- Nothing given: 4/4.
	- ``beats_per_bar`` alone: ``beats_per_bar``/4.
	- Numerator and denominator: that time signature. They must be given
	  together and, when ``beats_per_bar`` is also given, agree with it.

	Raises:
		DomainError: For a missing half of a time signature, non-positive
			values, a denominator that is not a power of two, or a
			``beats_per_bar`` that disagrees with the numerator.
	"""

	if (time_sig_numerator is None) != (time_sig_denominator is None):
		raise barbeat.errors.DomainError("Inconsistent time signature: numerator and denominator must be given together")

	if time_sig_numerator is None or time_sig_denominator is None:

		if beats_per_bar is None:
			return Meter()

		if beats_per_bar <= 0:
			raise barbeat.errors.DomainError(f"beats per bar must be positive, got {beats_per_bar}")

		return Meter(numerator=beats_per_bar)

	if time_sig_numerator <= 0 or time_sig_denominator <= 0:
		raise barbeat.errors.DomainError(f"Inconsistent time signature {time_sig_numerator}/{time_sig_denominator}: values must be positive")

	if time_sig_denominator & (time_sig_denominator - 1):
		raise barbeat.errors.DomainError(f"Inconsistent time signature {time_sig_numerator}/{time_sig_denominator}: denominator must be a power of two")

	if beats_per_bar is not None and beats_per_bar != time_sig_numerator:
		raise barbeat.errors.DomainError(
			f"Inconsistent time signature: beats per bar {beats_per_bar} does not match {time_sig_numerator}/{time_sig_denominator}"
		)

	return Meter(numerator=time_sig_numerator, denominator=time_sig_denominator)


def bar_start (bar: int, beats_per_bar: float) -> float:

	"""Return the musical beat at which a 1-based bar begins."""

	return (bar - 1) * beats_per_bar


def bar_beat_to_beats (bar: int, beat: float, beats_per_bar: float) -> float:

	"""
	Convert a 1-based (bar, beat) pair to musical beats from the clip start.

	Example:
		```python
		bar_beat_to_beats(1, 1, 4)    # → 0.0
		bar_beat_to_beats(2, 1.5, 4)  # → 4.5
		```
	"""

	return bar_start(bar, beats_per_bar) + (beat - 1)


def beats_to_bar_beat (beats: float, beats_per_bar: float) -> typing.Tuple[int, float]:

	"""
	Convert musical beats from the clip start to a 1-based (bar, beat) pair.

	Positions within ``TIME_EPSILON`` of a bar line snap onto it, so floating
	point drift does not push a note into the previous bar.
	"""

	bar_index = math.floor((beats + barbeat.constants.TIME_EPSILON / 2) / beats_per_bar)
	beat = beats - bar_index * beats_per_bar + 1

	if beat < 1:
		beat = 1.0

	return bar_index + 1, beat


def bar_of (beats: float, beats_per_bar: float) -> int:

	"""Return the 1-based bar containing a musical beat position."""

	return beats_to_bar_beat(beats, beats_per_bar)[0]


def bars_beats_to_duration (bars: int, beats: float, beats_per_bar: float) -> float:

	"""Convert a ``bars:beats`` length (as in ``t1:2``) to musical beats."""

	return bars * beats_per_bar + beats


def musical_to_host (musical_beats: float, denominator: int) -> float:

	"""Convert musical beats to host (quarter-note) beats."""

	return musical_beats * barbeat.constants.HOST_BEAT_UNIT / denominator


def host_to_musical (host_beats: float, denominator: int) -> float:

	"""Convert host (quarter-note) beats to musical beats."""

	return host_beats * denominator / barbeat.constants.HOST_BEAT_UNIT
