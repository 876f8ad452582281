"""Write note events back out as bar|beat notation.

The output is meant to be read and edited by people, so it only writes what
changed: a ``v``, ``t`` or ``p`` element appears when the value differs from
the one in effect, and a time position drops its bar (``|3``) while it stays
in the same bar. Each bar starts on a new line.

Compiling the text with :func:`barbeat.interpreter.interpret_notation`
gives back the same events (times within 0.001 beats, velocities rounded),
although not necessarily in the same order.
"""

import itertools
import typing

import barbeat.constants
import barbeat.constants.pitch
import barbeat.constants.velocity
import barbeat.errors
import barbeat.note
import barbeat.time_utils


_DECIMALS = 4


def _format_number (value: float) -> str:

	"""Return ``value`` with up to four decimals and no trailing zeros."""

	text = f"{value:.{_DECIMALS}f}".rstrip("0").rstrip(".")

	return "0" if text in ("", "-0") else text


def _chord_key (note: barbeat.note.NoteEvent, meter: barbeat.time_utils.Meter) -> typing.Tuple[float, int, int, float, float]:

	"""Everything that must match for notes to share one chord."""

	# v0 would delete a note, and a range maximum must stay a legal velocity.
	velocity = min(max(int(round(note.velocity)), barbeat.constants.velocity.MIN_AUDIBLE_VELOCITY), barbeat.constants.velocity.MAX_VELOCITY)
	deviation = min(max(int(round(note.velocity_deviation)), 0), barbeat.constants.velocity.MAX_VELOCITY - velocity)

	return (
		round(meter.to_musical(note.start_time), _DECIMALS),
		velocity,
		deviation,
		max(round(meter.to_musical(note.duration), _DECIMALS), 10 ** -_DECIMALS),
		round(note.probability, _DECIMALS),
	)


def format_notation (
	notes: typing.Iterable[barbeat.note.NoteEvent],
	beats_per_bar: typing.Optional[int] = None,
	time_sig_numerator: typing.Optional[int] = None,
	time_sig_denominator: typing.Optional[int] = None,
) -> str:

	"""
	Format note events as notation text.

	Parameters:
		notes: Events with times in host beats.
		beats_per_bar: Bar length in musical beats (default 4).
		time_sig_numerator: Time signature numerator; needs the denominator.
		time_sig_denominator: Time signature denominator; needs the numerator.

	Returns:
		Notation text, one line per bar. An empty input gives ``""``.

	Raises:
		DomainError: A note starts before the clip, or the meter options
			disagree.

	Example:
		```python
		format_notation([NoteEvent(pitch=60, start_time=0.0, duration=0.5)])
		# 't0.5 C3 1|1'
		```
	"""

	meter = barbeat.time_utils.resolve_meter(beats_per_bar, time_sig_numerator, time_sig_denominator)

	# The chord key leads with the start time, so this also orders chords in time.
	ordered = sorted(notes, key=lambda n: (_chord_key(n, meter), n.pitch))

	if not ordered:
		return ""

	earliest = min(n.start_time for n in ordered)

	if earliest < -barbeat.constants.TIME_EPSILON / 2:
		raise barbeat.errors.DomainError(f"Cannot write a note starting before the clip (start {earliest:g})")

	velocity = int(barbeat.constants.velocity.DEFAULT_VELOCITY)
	deviation = 0
	duration = round(barbeat.constants.DEFAULT_DURATION, _DECIMALS)
	probability = round(barbeat.constants.DEFAULT_PROBABILITY, _DECIMALS)

	lines: typing.List[typing.List[str]] = []
	current_bar: typing.Optional[int] = None

	for key, chord in itertools.groupby(ordered, key=lambda n: _chord_key(n, meter)):

		start, chord_velocity, chord_deviation, chord_duration, chord_probability = key
		group = list(chord)

		tokens: typing.List[str] = []

		if (chord_velocity, chord_deviation) != (velocity, deviation):
			if chord_deviation:
				tokens.append(f"v{chord_velocity}-{chord_velocity + chord_deviation}")
			else:
				tokens.append(f"v{chord_velocity}")
			velocity, deviation = chord_velocity, chord_deviation

		if chord_duration != duration:
			tokens.append(f"t{_format_number(chord_duration)}")
			duration = chord_duration

		if chord_probability != probability:
			tokens.append(f"p{_format_number(chord_probability)}")
			probability = chord_probability

		tokens.extend(barbeat.constants.pitch.midi_to_pitch_name(n.pitch) for n in group)

		bar, beat = barbeat.time_utils.beats_to_bar_beat(max(start, 0.0), meter.beats_per_bar)

		if bar != current_bar:
			lines.append([])
			tokens.append(f"{bar}|{_format_number(beat)}")
			current_bar = bar
		else:
			tokens.append(f"|{_format_number(beat)}")

		lines[-1].extend(tokens)

	return "\n".join(" ".join(line) for line in lines)
