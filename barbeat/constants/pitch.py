"""Pitch-class values and MIDI note bounds.

Pitch names are written ``<Letter>[#|b]<Octave>``. The octave is signed and
C3 = 60 (the Ableton/Yamaha convention), so::

    midi = (octave + 2) * 12 + PITCH_CLASS_VALUES[name]

``Cb`` and ``B#`` are kept as -1 and 12 so that ``Cb3`` is B2 (59) and
``B#3`` is C4 (72), exactly as written.
"""

import typing


PITCH_CLASS_VALUES: typing.Mapping[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"E#": 5,
	"Fb": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
	"B#": 12,
	"Cb": -1,
}

# Names used when writing pitches back out (sharps only).
PC_TO_NOTE_NAME: typing.Tuple[str, ...] = (
	"C",
	"C#",
	"D",
	"D#",
	"E",
	"F",
	"F#",
	"G",
	"G#",
	"A",
	"A#",
	"B",
)

OCTAVE_OFFSET = 2

MIN_PITCH = 0
MAX_PITCH = 127


def pitch_to_midi (name: str, octave: int) -> int:

	"""Return the MIDI number for a pitch-class name and signed octave.

	No range check is made here; callers validate against
	``MIN_PITCH``/``MAX_PITCH`` so they can report where the pitch was written.

	Example:
		```python
		pitch_to_midi("C", 3)    # → 60
		pitch_to_midi("F#", -1)  # → 18
		```
	"""

	if name not in PITCH_CLASS_VALUES:
		raise ValueError(f"Unknown pitch class {name!r}")

	return (octave + OCTAVE_OFFSET) * 12 + PITCH_CLASS_VALUES[name]


def midi_to_pitch_name (midi: int) -> str:

	"""Return the sharp-spelled name of a MIDI note, e.g. 61 → ``"C#3"``."""

	octave = midi // 12 - OCTAVE_OFFSET
	return f"{PC_TO_NOTE_NAME[midi % 12]}{octave}"
