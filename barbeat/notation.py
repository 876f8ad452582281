"""Parser for the bar|beat note notation.

A notation string is a flat list of elements separated by whitespace or
comments. Parameters set the defaults for the pitches that follow, pitches
collect into a chord, and a time position emits the chord::

    v90 t0.5 C3 E3 G3 1|1        // C major triad, bar 1 beat 1
    |3                           // again on beat 3 of the same bar
    v100 t1 C1 2|1x4             // four kicks through bar 2
    @3-4=1-2                     // bars 1-2 merged into bars 3-4

This module only turns text into :data:`Element` values; the meaning of a
sequence of elements lives in :mod:`barbeat.interpreter`.

**Elements:**

- ``@clear`` - forget the bar history used by copies.
- ``@<bars>[=<bars>]`` - copy bars; ``<bars>`` is ``n`` or ``n-m``. With no
  source the bar before the destination is copied.
- ``[<bar>]|<beat>[,<beat>...]`` - time positions. A beat is a number or a
  repeat ``<start>x<times>[@<step>]``.
- ``p<number>`` - probability (0-1).
- ``v<int>`` / ``v<min>-<max>`` - velocity or velocity range (0-127).
- ``t<number>`` / ``t<bars>:<beats>`` - duration.
- ``C3``, ``F#-1``, ``Bb4`` - pitches, with C3 = 60.

Numbers may be written ``3``, ``1.5``, ``.5``, ``3/4`` or ``1+1/2``.
"""

import dataclasses
import re
import typing

import barbeat.constants
import barbeat.constants.velocity
import barbeat.errors
import barbeat.scanner
import barbeat.time_utils


@dataclasses.dataclass(frozen=True)
class ClearBuffer:

	"""``@clear``: drop the per-bar history used by bar copies."""

	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


@dataclasses.dataclass(frozen=True)
class BarRange:

	"""An inclusive range of 1-based bars. A single bar has ``start == end``."""

	start: int
	end: int

	@property
	def is_single (self) -> bool:
		return self.start == self.end

	def bars (self) -> typing.List[int]:
		return list(range(self.start, self.end + 1))


@dataclasses.dataclass(frozen=True)
class BarCopy:

	"""
	``@dest=source``: merge notes from source bar(s) into destination bar(s).

	``source`` is None when the text names no source, meaning the bar before
	``destination.start``.
	"""

	destination: BarRange
	source: typing.Optional[BarRange] = None
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


@dataclasses.dataclass(frozen=True)
class RepeatPattern:

	"""``<start>x<times>[@<step>]``: ``times`` beats from ``start``, ``step`` apart.

	A ``step`` of None means "the current duration", resolved by the interpreter.
	"""

	start: float
	times: int
	step: typing.Optional[float] = None


@dataclasses.dataclass(frozen=True)
class TimePosition:

	"""A 1-based bar|beat position. ``bar`` is None when the text omits it."""

	bar: typing.Optional[int]
	beat: typing.Union[float, RepeatPattern]
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


@dataclasses.dataclass(frozen=True)
class Probability:

	value: float
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


@dataclasses.dataclass(frozen=True)
class VelocityRange:

	minimum: int
	maximum: int
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


@dataclasses.dataclass(frozen=True)
class Velocity:

	value: int
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


@dataclasses.dataclass(frozen=True)
class Duration:

	"""A duration in musical beats (``t1:2`` is already folded to beats)."""

	value: float
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


@dataclasses.dataclass(frozen=True)
class Pitch:

	midi_value: int
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


Element = typing.Union[ClearBuffer, BarCopy, TimePosition, Probability, VelocityRange, Velocity, Duration, Pitch]


# What may start an element, for error messages.
ELEMENT_EXPECTATIONS: typing.Tuple[str, ...] = (
	'"@clear"',
	"bar copy",
	"time position",
	"probability",
	"velocity",
	"duration",
	"pitch",
)

_SEPARATOR_EXPECTATIONS: typing.Tuple[str, ...] = ("whitespace", "comment", "end of input")

_CLEAR = re.compile(r"@clear")
_BARS_BEATS = re.compile(r"\d+:")
_RANGE_DASH = re.compile(r"-(?=\d)")
_PITCH_START = re.compile(r"[A-G]")


def parse (notation: str, beats_per_bar: float = barbeat.constants.DEFAULT_TIME_SIG_NUMERATOR) -> typing.List[Element]:

	"""
	Parse a notation string into a list of elements.

	Parameters:
		notation: The notation text.
		beats_per_bar: Used to fold ``t<bars>:<beats>`` durations into beats.

	Returns:
		The elements in textual order. A time position listing several beats
		(``1|1,3``) yields one :class:`TimePosition` per beat.

	Raises:
		GrammarError: The text does not match the grammar.
		DomainError: A value is outside its legal range.

	Example:
		```python
		parse("v80 C3 1|1")
		# [Velocity(80), Pitch(60), TimePosition(bar=1, beat=1.0)]
		```
	"""

	scanner = barbeat.scanner.Scanner(notation)
	elements: typing.List[Element] = []

	scanner.skip_separators()

	while not scanner.at_end():

		elements.extend(_parse_element(scanner, beats_per_bar))

		if not scanner.at_boundary():
			raise scanner.error(_SEPARATOR_EXPECTATIONS)

		scanner.skip_separators()

	return elements


def _parse_element (scanner: barbeat.scanner.Scanner, beats_per_bar: float) -> typing.List[Element]:

	"""Dispatch on the first character of an element."""

	line, column = scanner.location()
	char = scanner.text[scanner.pos]

	if char == "@":
		return [_parse_bar_command(scanner, line, column)]

	if char.isdigit() or char == "|":
		return _parse_time_positions(scanner, line, column)

	if char == "p":
		return [_parse_probability(scanner, line, column)]

	if char == "v":
		return [_parse_velocity(scanner, line, column)]

	if char == "t":
		return [_parse_duration(scanner, beats_per_bar, line, column)]

	if scanner.check(_PITCH_START):
		return [Pitch(scanner.read_pitch(), line, column)]

	raise scanner.error(ELEMENT_EXPECTATIONS)


def _parse_bar_command (scanner: barbeat.scanner.Scanner, line: int, column: int) -> Element:

	"""``@clear`` or a bar copy."""

	if scanner.match(_CLEAR):
		return ClearBuffer(line, column)

	scanner.literal("@")

	if not scanner.check(barbeat.scanner.INTEGER):
		raise scanner.error(('"clear"', "bar number"))

	destination = _parse_bar_range(scanner)
	source = None

	if scanner.literal("="):
		source = _parse_bar_range(scanner)

	return BarCopy(destination, source, line, column)


def _parse_bar_range (scanner: barbeat.scanner.Scanner) -> BarRange:

	start_pos = scanner.pos
	start = _read_bar_number(scanner)
	end = start

	if scanner.match(_RANGE_DASH):
		end = _read_bar_number(scanner)

	if end < start:
		raise scanner.domain_error(f"Bar range {start}-{end} ends before it starts", start_pos)

	return BarRange(start, end)


def _read_bar_number (scanner: barbeat.scanner.Scanner) -> int:

	pos = scanner.pos
	bar = scanner.read_integer("bar number")

	if bar < 1:
		raise scanner.domain_error(f"Bar numbers start at 1, got {bar}", pos)

	return bar


def _parse_time_positions (scanner: barbeat.scanner.Scanner, line: int, column: int) -> typing.List[Element]:

	"""``[bar]|beat[,beat...]``"""

	bar: typing.Optional[int] = None

	if scanner.check(barbeat.scanner.INTEGER):
		bar = _read_bar_number(scanner)

	if not scanner.literal("|"):
		raise scanner.error(('"|"',))

	positions: typing.List[Element] = [TimePosition(bar, _parse_beat_spec(scanner), line, column)]

	while scanner.literal(","):
		positions.append(TimePosition(bar, _parse_beat_spec(scanner), line, column))

	return positions


def _parse_beat_spec (scanner: barbeat.scanner.Scanner) -> typing.Union[float, RepeatPattern]:

	"""A beat number, or a repeat pattern ``start x times [@ step]``."""

	pos = scanner.pos
	beat = scanner.read_number("beat")

	if beat < 1:
		raise scanner.domain_error(f"Beats start at 1, got {beat:g}", pos)

	if not scanner.literal("x"):
		return beat

	pos = scanner.pos
	times = scanner.read_integer("repeat count")

	if times < 1:
		raise scanner.domain_error(f"Repeat count must be at least 1, got {times}", pos)

	step: typing.Optional[float] = None

	if scanner.literal("@"):
		pos = scanner.pos
		step = scanner.read_number("repeat step")

		if step == 0:
			raise scanner.domain_error("Repeat step cannot be 0", pos)

	return RepeatPattern(beat, times, step)


def _parse_probability (scanner: barbeat.scanner.Scanner, line: int, column: int) -> Probability:

	scanner.literal("p")
	pos = scanner.pos
	value = scanner.read_number("probability")

	if not barbeat.constants.MIN_PROBABILITY <= value <= barbeat.constants.MAX_PROBABILITY:
		raise scanner.domain_error(f"Probability {value:g} is outside the range 0-1", pos)

	return Probability(value, line, column)


def _parse_velocity (scanner: barbeat.scanner.Scanner, line: int, column: int) -> Element:

	"""``v<int>`` or ``v<min>-<max>``."""

	scanner.literal("v")
	pos = scanner.pos
	low = _check_velocity(scanner, scanner.read_integer("velocity"), pos)

	if not scanner.literal("-"):
		return Velocity(low, line, column)

	high_pos = scanner.pos
	high = _check_velocity(scanner, scanner.read_integer("velocity"), high_pos)

	if low > high:
		raise scanner.domain_error(f"Velocity range {low}-{high} has its minimum above its maximum", pos)

	return VelocityRange(low, high, line, column)


def _check_velocity (scanner: barbeat.scanner.Scanner, value: int, pos: int) -> int:

	if not barbeat.constants.velocity.MIN_VELOCITY <= value <= barbeat.constants.velocity.MAX_VELOCITY:
		raise scanner.domain_error(f"Velocity {value} is outside the range 0-127", pos)

	return value


def _parse_duration (scanner: barbeat.scanner.Scanner, beats_per_bar: float, line: int, column: int) -> Duration:

	"""``t<beats>`` or ``t<bars>:<beats>``."""

	scanner.literal("t")
	pos = scanner.pos

	if scanner.check(_BARS_BEATS):
		bars = scanner.read_integer("bars")
		scanner.literal(":")
		beats = scanner.read_number("beats")
		value = barbeat.time_utils.bars_beats_to_duration(bars, beats, beats_per_bar)
	else:
		value = scanner.read_number("duration")

	if value <= 0:
		raise scanner.domain_error(f"Duration must be positive, got {value:g}", pos)

	return Duration(value, line, column)
