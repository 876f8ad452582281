import logging

import barbeat
import barbeat.midi

logging.basicConfig(level=logging.INFO)

TIME_SIG_NUMERATOR = 3
TIME_SIG_DENOMINATOR = 4

# Bass on one, chord on two and three, four bars of I-IV-V-I.
notation = """
t1 v90 C2 1|1  v70 E3 G3 C4 1|2 |3
v90 F1 2|1     v70 F3 A3 C4 2|2 |3
v90 G1 3|1     v70 D3 G3 B3 3|2 |3
@4=1
"""

# Swell over the whole clip, and play the chord stabs slightly short.
modulation = """
velocity += ramp(-20, 20)
E3-C4 duration = note.duration * 0.8
"""

notes = barbeat.interpret_notation(notation, time_sig_numerator=TIME_SIG_NUMERATOR, time_sig_denominator=TIME_SIG_DENOMINATOR)
barbeat.apply_modulations(notes, modulation, TIME_SIG_NUMERATOR, TIME_SIG_DENOMINATOR)

for note in notes:
	print(note.to_dict())

if __name__ == "__main__":
	barbeat.midi.save_midi_file(notes, "waltz_chords.mid", TIME_SIG_NUMERATOR, TIME_SIG_DENOMINATOR, bpm=84)
