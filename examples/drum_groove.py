import logging

import barbeat
import barbeat.midi

logging.basicConfig(level=logging.INFO)

# GM drum map: C1 kick, D1 snare, F#1 closed hat, A#1 open hat.
NOTATION = """
v110 t0.25 C1 1|1 |3 |3+1/2
v100 D1 1|2 |4
v60-90 t1/8 F#1 1|1x8@1/2
v0 F#1 1|4+1/2                // make room for the open hat
v80 A#1 1|4+1/2
@2-4                          // copy bar 1 into bars 2 to 4
v120 D1 4|4+1/2               // fill
"""

# Accent the downbeats and let the hats breathe across the phrase.
MODULATION = """
C1 velocity += 10 * cos(1:0)
F#1 velocity += 15 * tri(1, 0.5)
timing += 0.01 + 0.01 * noise()
"""

notes = barbeat.interpret_notation(NOTATION)
barbeat.apply_modulations(notes, MODULATION, settings=barbeat.Settings(seed=1))

print(barbeat.format_notation(notes))

if __name__ == "__main__":
	barbeat.midi.save_midi_file(notes, "drum_groove.mid", bpm=96, channel=9)
