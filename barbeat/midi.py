"""Export note events to a Standard MIDI File.

Host beats are quarter notes, which is what a MIDI file's ``ticks_per_beat``
counts, so times convert directly regardless of the time signature.
Probability and velocity deviation have no MIDI equivalent and are not
written; every event becomes a plain note on/off pair.
"""

import logging
import typing

import mido

import barbeat.constants
import barbeat.constants.velocity
import barbeat.note


logger = logging.getLogger(__name__)


DEFAULT_BPM = 120
DEFAULT_TICKS_PER_BEAT = 480


def to_midi_file (
	notes: typing.Iterable[barbeat.note.NoteEvent],
	time_sig_numerator: int = barbeat.constants.DEFAULT_TIME_SIG_NUMERATOR,
	time_sig_denominator: int = barbeat.constants.DEFAULT_TIME_SIG_DENOMINATOR,
	bpm: float = DEFAULT_BPM,
	ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT,
	channel: int = 0,
) -> mido.MidiFile:

	"""
	Build a type 1 MIDI file holding one track.

	The track starts with time signature and tempo meta messages. Velocities
	are rounded and clamped to 1-127 and notes starting before the clip are
	moved to tick 0.
	"""

	if ticks_per_beat <= 0:
		raise ValueError(f"ticks_per_beat must be positive, got {ticks_per_beat}")

	if bpm <= 0:
		raise ValueError(f"bpm must be positive, got {bpm}")

	if not 0 <= channel <= 15:
		raise ValueError(f"MIDI channel must be 0-15, got {channel}")

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = ticks_per_beat

	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage("time_signature", numerator=time_sig_numerator, denominator=time_sig_denominator, time=0))
	track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))

	# (tick, order, message) - note offs sort before note ons at the same tick.
	timeline: typing.List[typing.Tuple[int, int, mido.Message]] = []

	for note in notes:

		start_tick = max(0, int(round(note.start_time * ticks_per_beat)))
		end_tick = max(start_tick + 1, int(round(note.end_time * ticks_per_beat)))

		velocity = int(round(note.velocity))
		velocity = min(max(velocity, barbeat.constants.velocity.MIN_AUDIBLE_VELOCITY), barbeat.constants.velocity.MAX_VELOCITY)

		timeline.append((start_tick, 1, mido.Message("note_on", channel=channel, note=note.pitch, velocity=velocity)))
		timeline.append((end_tick, 0, mido.Message("note_off", channel=channel, note=note.pitch, velocity=0)))

	timeline.sort(key=lambda item: (item[0], item[1]))

	last_tick = 0

	for tick, _, message in timeline:
		message.time = tick - last_tick
		track.append(message)
		last_tick = tick

	track.append(mido.MetaMessage("end_of_track", time=0))

	return mid


def save_midi_file (
	notes: typing.Iterable[barbeat.note.NoteEvent],
	filename: str,
	time_sig_numerator: int = barbeat.constants.DEFAULT_TIME_SIG_NUMERATOR,
	time_sig_denominator: int = barbeat.constants.DEFAULT_TIME_SIG_DENOMINATOR,
	bpm: float = DEFAULT_BPM,
	ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT,
	channel: int = 0,
) -> None:

	"""Write ``notes`` to ``filename`` as a MIDI file."""

	notes = list(notes)

	mid = to_midi_file(notes, time_sig_numerator, time_sig_denominator, bpm, ticks_per_beat, channel)

	logger.info(f"Saving {len(notes)} notes to {filename}")

	mid.save(filename)
