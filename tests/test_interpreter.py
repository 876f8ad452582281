import logging

import pytest

import barbeat
import barbeat.config
import barbeat.errors
import barbeat.interpreter
import barbeat.note


def _starts (notes: list) -> list:
	return [(n.pitch, n.start_time) for n in notes]


def test_single_note_defaults () -> None:

	"""C3 1|1 gives one event with every default."""

	notes = barbeat.interpreter.interpret_notation("C3 1|1")

	assert len(notes) == 1

	note = notes[0]

	assert note.pitch == 60
	assert note.start_time == 0.0
	assert note.duration == 1.0
	assert note.velocity == 100
	assert note.probability == 1.0
	assert note.velocity_deviation == 0.0


def test_repeat_pattern_uses_duration_as_step () -> None:

	"""t1 C1 1|1x4 places four notes one beat apart."""

	notes = barbeat.interpreter.interpret_notation("t1 C1 1|1x4")

	assert [n.start_time for n in notes] == [0.0, 1.0, 2.0, 3.0]
	assert {n.pitch for n in notes} == {36}
	assert {n.duration for n in notes} == {1.0}


def test_repeat_pattern_with_explicit_step () -> None:

	"""The @step overrides the duration."""

	notes = barbeat.interpreter.interpret_notation("t0.25 F#1 2|1x4@1/2")

	assert [n.start_time for n in notes] == pytest.approx([4.0, 4.5, 5.0, 5.5])
	assert {n.duration for n in notes} == {0.25}


def test_v0_deletes_earlier_note () -> None:

	"""C3 D3 1|1 v0 C3 1|1 leaves only the D3."""

	notes = barbeat.interpreter.interpret_notation("C3 D3 1|1 v0 C3 1|1")

	assert _starts(notes) == [(62, 0.0)]


def test_v0_deletes_within_tolerance_only () -> None:

	"""A v0 note well away from the original deletes nothing but itself."""

	near = barbeat.interpreter.interpret_notation("C3 1|1 v0 C3 1|1.0005")
	far = barbeat.interpreter.interpret_notation("C3 1|1 v0 C3 1|1.5")

	assert near == []
	assert _starts(far) == [(60, 0.0)]


def test_apply_deletions_removes_nearest_earlier_only () -> None:

	"""One v0 event removes a single matching event, the latest one."""

	first = barbeat.note.NoteEvent(60, 0.0, 1.0, velocity=90)
	second = barbeat.note.NoteEvent(60, 0.0, 1.0, velocity=80)
	delete = barbeat.note.NoteEvent(60, 0.0, 1.0, velocity=0)

	assert barbeat.interpreter.apply_deletions([first, second, delete]) == [first]


def test_merge_copy_keeps_destination_notes () -> None:

	"""C1 1|1 @2=1 D1 2|1 gives the original, the copy and the manual note."""

	notes = barbeat.interpreter.interpret_notation("C1 1|1 @2=1 D1 2|1", beats_per_bar=4)

	assert _starts(notes) == [(36, 0.0), (36, 4.0), (38, 4.0)]


def test_velocity_out_of_range_aborts () -> None:

	"""v200 fails naming the velocity range."""

	with pytest.raises(barbeat.errors.DomainError, match="0-127"):
		barbeat.interpreter.interpret_notation("v200 C3 1|1")


def test_grammar_error_aborts () -> None:

	"""A grammar violation anywhere produces no events at all."""

	with pytest.raises(barbeat.errors.GrammarError):
		barbeat.interpreter.interpret_notation("C3 1|1 ?")


def test_blank_text_gives_no_events () -> None:

	"""Empty or whitespace-only text is not an error."""

	assert barbeat.interpreter.interpret_notation("") == []
	assert barbeat.interpreter.interpret_notation("  \n // nothing") == []


def test_meter_is_checked_before_blank_text () -> None:

	"""An inconsistent meter fails even with nothing to compile."""

	with pytest.raises(barbeat.errors.DomainError):
		barbeat.interpreter.interpret_notation("", time_sig_numerator=4)


def test_chord_and_emitted_reuse () -> None:

	"""A placed chord is placed again by following time positions."""

	notes = barbeat.interpreter.interpret_notation("C3 E3 1|1 |2 |3")

	assert _starts(notes) == [(60, 0.0), (64, 0.0), (60, 1.0), (64, 1.0), (60, 2.0), (64, 2.0)]


def test_omitted_bar_reuses_current_bar () -> None:

	"""|beat stays in the last bar, or bar 1 before any bar is given."""

	assert _starts(barbeat.interpreter.interpret_notation("C3 |3")) == [(60, 2.0)]
	assert _starts(barbeat.interpreter.interpret_notation("C3 2|1 |3")) == [(60, 4.0), (60, 6.0)]


def test_parameters_carry_forward () -> None:

	"""Parameters stay in effect for later pitches."""

	notes = barbeat.interpreter.interpret_notation("v80 t0.5 p0.5 C3 1|1 D3 1|2")

	assert [(n.velocity, n.duration, n.probability) for n in notes] == [(80, 0.5, 0.5), (80, 0.5, 0.5)]


def test_late_binding_before_time_position () -> None:

	"""A parameter written after the pitches still applies to them."""

	notes = barbeat.interpreter.interpret_notation("C3 v70 1|1")

	assert notes[0].velocity == 70


def test_late_binding_on_emitted_chord () -> None:

	"""Changing a parameter between reuses affects only later placements."""

	notes = barbeat.interpreter.interpret_notation("C3 1|1 v80 |2")

	assert [n.velocity for n in notes] == [100, 80]


def test_velocity_range_sets_deviation () -> None:

	"""v80-100 means velocity 80 with 20 of deviation, and v resets it."""

	notes = barbeat.interpreter.interpret_notation("v80-100 C3 1|1 v90 D3 1|2")

	assert (notes[0].velocity, notes[0].velocity_deviation) == (80, 20.0)
	assert (notes[1].velocity, notes[1].velocity_deviation) == (90, 0.0)


def test_time_signature_converts_to_host_beats () -> None:

	"""In 6/8 a bar is six eighth notes, stored as three quarter notes."""

	notes = barbeat.interpreter.interpret_notation("C3 2|1 |4", time_sig_numerator=6, time_sig_denominator=8)

	assert [n.start_time for n in notes] == pytest.approx([3.0, 4.5])
	assert notes[0].duration == pytest.approx(0.5)


def test_beats_per_bar_option () -> None:

	"""beats_per_bar changes the bar length in quarter notes."""

	notes = barbeat.interpreter.interpret_notation("C3 2|1", beats_per_bar=3)

	assert notes[0].start_time == 3.0


def test_bar_duration_uses_meter () -> None:

	"""t1:0 lasts one whole bar of the governing meter."""

	notes = barbeat.interpreter.interpret_notation("t1:0 C3 1|1", beats_per_bar=3)

	assert notes[0].duration == 3.0


def test_copy_previous_bar () -> None:

	"""@2 copies bar 1 into bar 2."""

	notes = barbeat.interpreter.interpret_notation("C1 1|1 |3 @2")

	assert _starts(notes) == [(36, 0.0), (36, 2.0), (36, 4.0), (36, 6.0)]


def test_copy_to_first_bar_warns_and_continues (caplog: pytest.LogCaptureFixture) -> None:

	"""@1 has nothing before it to copy, so it is skipped and the rest still runs."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C3 1|1 @1 D3 1|2")

	assert _starts(notes) == [(60, 0.0), (62, 1.0)]
	assert "has no previous bar" in caplog.text


def test_copy_single_source_into_range () -> None:

	"""One source bar fills every destination bar."""

	notes = barbeat.interpreter.interpret_notation("C1 1|1 @2-3=1")

	assert _starts(notes) == [(36, 0.0), (36, 4.0), (36, 8.0)]


def test_copy_source_range_into_single_destination () -> None:

	"""A source range with one destination bar copies a block of bars."""

	notes = barbeat.interpreter.interpret_notation("C1 1|1 D1 2|1 @3=1-2")

	assert _starts(notes) == [(36, 0.0), (38, 4.0), (36, 8.0), (38, 12.0)]


def test_copy_round_robin () -> None:

	"""Source bars cycle across a longer destination range."""

	notes = barbeat.interpreter.interpret_notation("C1 1|1 D1 2|1 @3-5=1-2")

	assert _starts(notes)[2:] == [(36, 8.0), (38, 12.0), (36, 16.0)]


def test_copy_reads_bars_as_they_were () -> None:

	"""Copies made by one element are not themselves copied by it."""

	notes = barbeat.interpreter.interpret_notation("C1 1|1 D1 2|1 @2-3=1-2")

	assert _starts(notes) == [(36, 0.0), (38, 4.0), (36, 4.0), (38, 8.0)]


def test_copied_notes_can_be_copied_again () -> None:

	"""A later copy sees notes copied by an earlier one."""

	notes = barbeat.interpreter.interpret_notation("C1 1|1 @2 @3")

	assert _starts(notes) == [(36, 0.0), (36, 4.0), (36, 8.0)]


def test_copy_keeps_parameters () -> None:

	"""Copied notes keep velocity, duration and probability."""

	notes = barbeat.interpreter.interpret_notation("v60 t0.5 p0.25 C1 1|2 @2")

	copy = notes[1]

	assert (copy.start_time, copy.velocity, copy.duration, copy.probability) == (5.0, 60, 0.5, 0.25)


def test_copy_onto_itself_is_skipped (caplog: pytest.LogCaptureFixture) -> None:

	"""@1=1 does nothing and says so."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C1 1|1 @1=1")

	assert len(notes) == 1
	assert "onto itself" in caplog.text


def test_copy_from_empty_bar_warns (caplog: pytest.LogCaptureFixture) -> None:

	"""Copying an empty bar warns and adds nothing."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C1 1|1 @3=2")

	assert len(notes) == 1
	assert "has no notes" in caplog.text


def test_clear_forgets_bar_history (caplog: pytest.LogCaptureFixture) -> None:

	"""After @clear there is nothing left to copy, but emitted notes remain."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C1 1|1 @clear @2")

	assert _starts(notes) == [(36, 0.0)]
	assert "has no notes" in caplog.text


def test_unflushed_pitches_before_copy_warn (caplog: pytest.LogCaptureFixture) -> None:

	"""Pitches never placed before a copy are discarded with a warning."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C1 1|1 E1 @2")

	assert _starts(notes) == [(36, 0.0), (36, 4.0)]
	assert "never placed: 40" in caplog.text


def test_unflushed_pitches_before_clear_warn (caplog: pytest.LogCaptureFixture) -> None:

	"""@clear also discards buffered pitches."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		barbeat.interpreter.interpret_notation("C1 @clear")

	assert "@clear" in caplog.text


def test_time_position_without_pitches_warns (caplog: pytest.LogCaptureFixture) -> None:

	"""A time position with nothing buffered places nothing."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("1|1 v80")

	assert notes == []
	assert "has no pitches to place" in caplog.text


def test_pitches_never_placed_warn (caplog: pytest.LogCaptureFixture) -> None:

	"""Trailing pitches without a time position are reported."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C3 1|1 E3 G3")

	assert len(notes) == 1
	assert "never placed: 64, 67" in caplog.text


def test_parameter_after_last_emission_warns (caplog: pytest.LogCaptureFixture) -> None:

	"""A trailing parameter change has no effect and is reported."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		barbeat.interpreter.interpret_notation("C3 1|1 v80")

	assert "after the last time position" in caplog.text


def test_parameter_between_chord_pitches_warns (caplog: pytest.LogCaptureFixture) -> None:

	"""A change between pitches of one chord applies to the whole chord."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C3 v80 E3 1|1")

	assert [n.velocity for n in notes] == [80, 80]
	assert "earlier pitches of the same chord" in caplog.text


def test_clean_notation_logs_no_warnings (caplog: pytest.LogCaptureFixture) -> None:

	"""Ordinary notation compiles silently."""

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		barbeat.interpreter.interpret_notation("v90 C3 E3 1|1 |3 D3 2|1 @3-4=1-2")

	assert caplog.records == []


def test_large_repeat_warns_but_runs (caplog: pytest.LogCaptureFixture) -> None:

	"""Repeat counts above the threshold are advisory only."""

	settings = barbeat.config.Settings(repeat_warning_threshold=3)

	with caplog.at_level(logging.WARNING, logger="barbeat.interpreter"):
		notes = barbeat.interpreter.interpret_notation("C1 1|1x4@1/4", settings=settings)

	assert len(notes) == 4
	assert "generates 4 positions" in caplog.text


def test_settings_change_defaults () -> None:

	"""Default velocity, duration and probability come from the settings."""

	settings = barbeat.config.Settings(default_velocity=90, default_duration=0.5, default_probability=0.5)

	note = barbeat.interpreter.interpret_notation("C3 1|1", settings=settings)[0]

	assert (note.velocity, note.duration, note.probability) == (90, 0.5, 0.5)


def test_package_exports () -> None:

	"""The main entry points are available from the package."""

	assert barbeat.interpret_notation is barbeat.interpreter.interpret_notation
	assert barbeat.NoteEvent is barbeat.note.NoteEvent
	assert issubclass(barbeat.GrammarError, barbeat.BarbeatError)
