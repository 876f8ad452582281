import pytest

import barbeat.errors
import barbeat.formatter
import barbeat.interpreter
import barbeat.note


def _note (pitch: int, start: float, duration: float = 1.0, **kwargs) -> barbeat.note.NoteEvent:
	return barbeat.note.NoteEvent(pitch=pitch, start_time=start, duration=duration, **kwargs)


def test_empty_input () -> None:

	"""No notes format as an empty string."""

	assert barbeat.formatter.format_notation([]) == ""


def test_defaults_are_not_written () -> None:

	"""A note with every default needs only its pitch and position."""

	assert barbeat.formatter.format_notation([_note(60, 0.0)]) == "C3 1|1"


def test_changed_duration_is_written () -> None:

	"""t appears when the duration differs from the one in effect."""

	assert barbeat.formatter.format_notation([_note(60, 0.0, 0.5)]) == "t0.5 C3 1|1"


def test_chord_pitches_are_sorted () -> None:

	"""Notes sharing a start and parameters form one chord, low to high."""

	notes = [_note(67, 0.0), _note(60, 0.0), _note(64, 0.0)]

	assert barbeat.formatter.format_notation(notes) == "C3 E3 G3 1|1"


def test_bar_written_only_when_it_changes () -> None:

	"""Positions in the same bar drop the bar, and each bar starts a line."""

	notes = [_note(60, 4.0), _note(60, 0.0), _note(60, 2.0)]

	assert barbeat.formatter.format_notation(notes) == "C3 1|1 C3 |3\nC3 2|1"


def test_only_changed_parameters_are_written () -> None:

	"""v, t and p are written when they change and not repeated after."""

	notes = [
		_note(60, 0.0, velocity=80),
		_note(62, 1.0, velocity=80),
		_note(64, 2.0, 0.5, velocity=80, probability=0.5),
	]

	assert barbeat.formatter.format_notation(notes) == "v80 C3 1|1 D3 |2 t0.5 p0.5 E3 |3"


def test_velocity_deviation_written_as_range () -> None:

	"""A velocity deviation becomes a v<min>-<max> range."""

	notes = [_note(60, 0.0, velocity=80, velocity_deviation=20)]

	assert barbeat.formatter.format_notation(notes) == "v80-100 C3 1|1"


def test_different_parameters_split_a_chord () -> None:

	"""Notes at the same time with different velocities are written separately."""

	notes = [_note(60, 0.0, velocity=100), _note(64, 0.0, velocity=80)]

	assert barbeat.formatter.format_notation(notes) == "v80 E3 1|1 v100 C3 |1"


def test_fractional_values_use_four_decimals () -> None:

	"""Numbers are written with at most four decimals."""

	notes = [_note(60, 1.0 / 3.0, 1.0 / 3.0)]

	assert barbeat.formatter.format_notation(notes) == "t0.3333 C3 1|1.3333"


def test_time_signature_is_respected () -> None:

	"""Host beats are written back as musical beats of the meter."""

	notes = [_note(60, 3.0, 0.5)]

	text = barbeat.formatter.format_notation(notes, time_sig_numerator=6, time_sig_denominator=8)

	assert text == "C3 2|1"


def test_negative_start_is_rejected () -> None:

	"""Notes before the clip cannot be written."""

	with pytest.raises(barbeat.errors.DomainError):
		barbeat.formatter.format_notation([_note(60, -1.0)])


def _summary (notes: list) -> list:

	return sorted(
		(n.pitch, round(n.start_time, 3), round(n.duration, 3), round(n.velocity), round(n.velocity_deviation), round(n.probability, 3))
		for n in notes
	)


@pytest.mark.parametrize("text, options", [
	("v90 t0.5 C3 E3 1|1 |3 v70-90 p0.5 G3 2|1.5 t1:0 C1 3|1x2@2", {}),
	("t1/3 C1 1|1x6@1/3 v110 D1 2|2 |4 @3-4=1-2", {}),
	("t0.5 C3 1|1 E3 1|2.5 G3 2|1 |4", {"time_sig_numerator": 6, "time_sig_denominator": 8}),
	("v64 C-2 G8 1|1 p0.1 F#4 3|3", {"beats_per_bar": 3}),
])
def test_round_trip (text: str, options: dict) -> None:

	"""Formatting and compiling again reproduces the events."""

	notes = barbeat.interpreter.interpret_notation(text, **options)

	formatted = barbeat.formatter.format_notation(notes, **options)
	again = barbeat.interpreter.interpret_notation(formatted, **options)

	assert _summary(again) == _summary(notes)


def test_round_trip_of_hand_built_events () -> None:

	"""Arbitrary event lists survive a round trip within the tolerance."""

	notes = [
		_note(72, 7.25, 0.125, velocity=33.4),
		_note(36, 0.0, 2.0, probability=0.75),
		_note(38, 0.0, 2.0, probability=0.75),
		_note(60, 12.0004, 1.0),
	]

	again = barbeat.interpreter.interpret_notation(barbeat.formatter.format_notation(notes))

	assert _summary(again) == _summary(notes)
