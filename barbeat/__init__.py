"""
barbeat - text languages for writing and shaping MIDI note data.

barbeat compiles two small languages into plain note events (pitch, start,
duration, velocity, probability, velocity deviation) that any host can
play: a DAW clip, a sequencer, or a MIDI file.

- **bar|beat notation.** Pitches are buffered and placed at time positions,
  parameters carry forward until changed::

      v100 t0.5 C1 1|1 |2 |3 |4      // four kicks
      v80 C3 E3 G3 1|1               // a chord
      F#1 2|1x8@1/2                  // eight hats, every half beat
      @3-4=1-2                       // copy bars 1-2 into bars 3-4

- **Modulation expressions.** Per-note adjustments scoped by pitch and
  time, built from waveforms, ramps, noise and note properties::

      velocity += 20 * cos(1:0)
      C1-C2 timing += 0.02 * noise()
      1|1-4|4 probability = ramp(0.5, 1)

- **Back to text.** ``format_notation()`` writes events as compact
  notation, only spelling out what changed.

Quick start::

    import barbeat

    notes = barbeat.interpret_notation("C3 E3 G3 1|1 |3")
    barbeat.apply_modulations(notes, "velocity = 60 + 40 * tri(2)")
    print(barbeat.format_notation(notes))

Package-level exports: ``interpret_notation``, ``apply_modulations``,
``format_notation``, ``NoteEvent``, ``Settings`` and the error classes.
"""

import barbeat.config
import barbeat.errors
import barbeat.formatter
import barbeat.interpreter
import barbeat.modulator
import barbeat.note


interpret_notation = barbeat.interpreter.interpret_notation
apply_modulations = barbeat.modulator.apply_modulations
format_notation = barbeat.formatter.format_notation
NoteEvent = barbeat.note.NoteEvent
Settings = barbeat.config.Settings
BarbeatError = barbeat.errors.BarbeatError
GrammarError = barbeat.errors.GrammarError
DomainError = barbeat.errors.DomainError
EvaluationError = barbeat.errors.EvaluationError
