import pathlib

import mido
import pytest

import barbeat.interpreter
import barbeat.midi
import barbeat.note


def _messages (mid: mido.MidiFile) -> list:
	return [m for m in mid.tracks[0] if not m.is_meta]


def test_file_layout () -> None:

	"""One track with time signature and tempo meta messages up front."""

	mid = barbeat.midi.to_midi_file([], 6, 8, bpm=90)

	assert mid.type == 1
	assert mid.ticks_per_beat == 480
	assert len(mid.tracks) == 1

	time_signature, tempo = mid.tracks[0][0], mid.tracks[0][1]

	assert (time_signature.type, time_signature.numerator, time_signature.denominator) == ("time_signature", 6, 8)
	assert tempo.type == "set_tempo"
	assert tempo.tempo == mido.bpm2tempo(90)


def test_note_messages () -> None:

	"""Notes become on/off pairs with delta times in ticks."""

	notes = [
		barbeat.note.NoteEvent(60, 0.0, 1.0),
		barbeat.note.NoteEvent(64, 1.0, 0.5, velocity=200),
	]

	messages = _messages(barbeat.midi.to_midi_file(notes))

	assert [(m.type, m.note, m.velocity, m.time) for m in messages] == [
		("note_on", 60, 100, 0),
		("note_off", 60, 0, 480),
		("note_on", 64, 127, 0),
		("note_off", 64, 0, 240),
	]


def test_velocity_and_start_are_clamped () -> None:

	"""Velocities stay audible and early notes move to the start."""

	notes = [barbeat.note.NoteEvent(60, -0.5, 1.0, velocity=0.2)]

	on, off = _messages(barbeat.midi.to_midi_file(notes))

	assert (on.velocity, on.time) == (1, 0)
	assert off.time == 240


def test_channel () -> None:

	"""Messages go out on the requested channel."""

	messages = _messages(barbeat.midi.to_midi_file([barbeat.note.NoteEvent(36, 0.0, 1.0)], channel=9))

	assert {m.channel for m in messages} == {9}


@pytest.mark.parametrize("options", [
	{"ticks_per_beat": 0},
	{"bpm": 0},
	{"channel": 16},
])
def test_invalid_options (options: dict) -> None:

	"""Bad export options raise ValueError."""

	with pytest.raises(ValueError):
		barbeat.midi.to_midi_file([], **options)


def test_save_and_reload (tmp_path: pathlib.Path) -> None:

	"""A saved file reloads with the same notes."""

	notes = barbeat.interpreter.interpret_notation("t0.5 C1 1|1x4 E3 G3 2|1")
	path = tmp_path / "clip.mid"

	barbeat.midi.save_midi_file(notes, str(path))

	reloaded = mido.MidiFile(str(path))
	note_ons = [m for m in reloaded.tracks[0] if m.type == "note_on" and m.velocity > 0]

	assert sorted(m.note for m in note_ons) == sorted(n.pitch for n in notes)
