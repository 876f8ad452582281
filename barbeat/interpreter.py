"""Single-pass interpreter turning notation elements into note events.

The interpreter walks the parsed elements once, left to right, carrying the
current velocity, duration and probability forward ("implicit parameter
inheritance") and a buffer of pitches waiting for a time position.

The pitch buffer is an explicit tagged state:

- :class:`Idle` - nothing buffered (start of input, after ``@clear`` or a
  bar copy).
- :class:`Collecting` - an open chord that has not been placed yet.
- :class:`Emitted` - the last chord, already placed and still reusable:
  ``C3 1|1 |2 |3`` places the same C3 three times.

Parameters are late-bound: a ``v``/``t``/``p`` written after pitches but
before their time position still applies to them.

After the pass, every event with velocity 0 deletes the nearest earlier
event of the same pitch at (almost) the same time and is dropped itself, so
``v0`` can undo a note written earlier in the same string.
"""

import dataclasses
import logging
import typing

import barbeat.config
import barbeat.constants
import barbeat.notation
import barbeat.note
import barbeat.time_utils


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class PendingPitch:

	"""A buffered pitch together with the parameters it will be placed with."""

	pitch: int
	velocity: float
	velocity_deviation: float
	duration: float
	probability: float


@dataclasses.dataclass
class Idle:

	"""No pitches are buffered."""


@dataclasses.dataclass
class Collecting:

	"""Pitches gathered since the last time position, not yet placed."""

	pitches: typing.List[PendingPitch]
	changed_since_last_pitch: bool = False


@dataclasses.dataclass
class Emitted:

	"""The chord placed by the last time position, reusable by the next one."""

	pitches: typing.List[PendingPitch]
	changed_after_emission: bool = False


BufferState = typing.Union[Idle, Collecting, Emitted]


def _where (element: typing.Any) -> str:
	return f"at line {element.line}, column {element.column}"


class Interpreter:

	"""
	Interpreter state for one notation-to-events call.

	Build a fresh instance per call; :meth:`run` may only be called once.
	"""

	def __init__ (self, meter: barbeat.time_utils.Meter, settings: barbeat.config.Settings = barbeat.config.DEFAULT_SETTINGS) -> None:

		self.meter = meter
		self.settings = settings

		self.bar = 1
		self.beat = 1.0
		self.has_explicit_bar = False

		self.velocity: float = settings.default_velocity
		self.velocity_deviation = 0.0
		self.duration = settings.default_duration
		self.probability = settings.default_probability

		self.buffer: BufferState = Idle()

		self.notes_by_bar: typing.Dict[int, typing.List[barbeat.note.NoteEvent]] = {}
		self.events: typing.List[barbeat.note.NoteEvent] = []

		self._handlers: typing.Dict[type, typing.Callable[[typing.Any], None]] = {
			barbeat.notation.Pitch: self._on_pitch,
			barbeat.notation.Velocity: self._on_velocity,
			barbeat.notation.VelocityRange: self._on_velocity_range,
			barbeat.notation.Duration: self._on_duration,
			barbeat.notation.Probability: self._on_probability,
			barbeat.notation.TimePosition: self._on_time_position,
			barbeat.notation.BarCopy: self._on_bar_copy,
			barbeat.notation.ClearBuffer: self._on_clear,
		}


	def run (self, elements: typing.Sequence[barbeat.notation.Element]) -> typing.List[barbeat.note.NoteEvent]:

		"""Interpret the elements and return the final event list."""

		for element in elements:
			self._handlers[type(element)](element)

		self._finish()

		return apply_deletions(self.events, self.settings.deletion_tolerance)


	# ─── Pitches and parameters ───────────────────────────────────────────


	def _on_pitch (self, element: barbeat.notation.Pitch) -> None:

		pending = PendingPitch(
			pitch = element.midi_value,
			velocity = self.velocity,
			velocity_deviation = self.velocity_deviation,
			duration = self.duration,
			probability = self.probability
		)

		if isinstance(self.buffer, Collecting):

			if self.buffer.changed_since_last_pitch:
				logger.warning(
					f"Parameter change before the pitch {_where(element)} also applies to the "
					f"earlier pitches of the same chord"
				)

			self.buffer.pitches.append(pending)
			self.buffer.changed_since_last_pitch = False

		else:
			self.buffer = Collecting([pending])


	def _on_velocity (self, element: barbeat.notation.Velocity) -> None:

		self.velocity = element.value
		self.velocity_deviation = 0.0
		self._update_buffered(velocity=self.velocity, velocity_deviation=0.0)


	def _on_velocity_range (self, element: barbeat.notation.VelocityRange) -> None:

		# The host randomises within [velocity, velocity + deviation].
		self.velocity = element.minimum
		self.velocity_deviation = float(element.maximum - element.minimum)
		self._update_buffered(velocity=self.velocity, velocity_deviation=self.velocity_deviation)


	def _on_duration (self, element: barbeat.notation.Duration) -> None:

		self.duration = element.value
		self._update_buffered(duration=self.duration)


	def _on_probability (self, element: barbeat.notation.Probability) -> None:

		self.probability = element.value
		self._update_buffered(probability=self.probability)


	def _update_buffered (self, **changes: float) -> None:

		"""Late binding: apply a parameter change to every buffered pitch."""

		buffer = self.buffer

		if isinstance(buffer, Idle):
			return

		for pending in buffer.pitches:
			for name, value in changes.items():
				setattr(pending, name, value)

		if isinstance(buffer, Collecting):
			buffer.changed_since_last_pitch = True
		else:
			buffer.changed_after_emission = True


	# ─── Time positions ───────────────────────────────────────────────────


	def _on_time_position (self, element: barbeat.notation.TimePosition) -> None:

		buffer = self.buffer

		if isinstance(buffer, Idle):
			logger.warning(f"Time position {_where(element)} has no pitches to place")
			return

		if element.bar is not None:
			bar = element.bar
		else:
			if not self.has_explicit_bar:
				logger.debug(f"Time position {_where(element)} omits the bar before any bar was given; using bar {self.bar}")
			bar = self.bar

		beats = self._resolve_beats(element)

		for beat in beats:
			for pending in buffer.pitches:
				self._emit(pending, bar, beat)

		self.buffer = Emitted(buffer.pitches)

		self.bar = bar
		self.beat = beats[-1]
		self.has_explicit_bar = self.has_explicit_bar or element.bar is not None


	def _resolve_beats (self, element: barbeat.notation.TimePosition) -> typing.List[float]:

		"""Expand a single beat or repeat pattern to the beats it stands for."""

		if not isinstance(element.beat, barbeat.notation.RepeatPattern):
			return [element.beat]

		pattern = element.beat
		step = pattern.step if pattern.step is not None else self.duration

		if pattern.times > self.settings.repeat_warning_threshold:
			logger.warning(
				f"Repeat pattern {_where(element)} generates {pattern.times} positions "
				f"(more than {self.settings.repeat_warning_threshold})"
			)

		return [pattern.start + i * step for i in range(pattern.times)]


	def _emit (self, pending: PendingPitch, bar: int, beat: float) -> None:

		musical_start = barbeat.time_utils.bar_beat_to_beats(bar, beat, self.meter.beats_per_bar)

		event = barbeat.note.NoteEvent(
			pitch = pending.pitch,
			start_time = self.meter.to_host(musical_start),
			duration = self.meter.to_host(pending.duration),
			velocity = pending.velocity,
			probability = pending.probability,
			velocity_deviation = pending.velocity_deviation
		)

		self._record(event, barbeat.time_utils.bar_of(musical_start, self.meter.beats_per_bar))


	def _record (self, event: barbeat.note.NoteEvent, bar: int) -> None:

		self.events.append(event)
		self.notes_by_bar.setdefault(bar, []).append(event)


	# ─── Bar copies and clearing ──────────────────────────────────────────


	def _on_bar_copy (self, element: barbeat.notation.BarCopy) -> None:

		self._warn_unflushed(element, "bar copy")

		pairs = self._copy_pairs(element)

		# Copy from the bars as they were before this element.
		snapshot = {source: list(self.notes_by_bar.get(source, [])) for _, source in pairs}

		for destination, source in pairs:

			if destination == source:
				logger.warning(f"Bar copy {_where(element)} skips copying bar {source} onto itself")
				continue

			notes = snapshot[source]

			if not notes:
				logger.warning(f"Bar copy {_where(element)}: source bar {source} has no notes")
				continue

			offset = self.meter.to_host(
				barbeat.time_utils.bar_start(destination, self.meter.beats_per_bar)
				- barbeat.time_utils.bar_start(source, self.meter.beats_per_bar)
			)

			for note in notes:
				self._record(dataclasses.replace(note, start_time=note.start_time + offset), destination)

		self.buffer = Idle()


	def _copy_pairs (self, element: barbeat.notation.BarCopy) -> typing.List[typing.Tuple[int, int]]:

		"""
		Return (destination, source) bar pairs in copy order.

		- No source: the bar before the destination, into every destination bar.
		- Single source: into every destination bar.
		- Source range, single destination: a block of the same length
		  starting at the destination.
		- Both ranges: source bars cycle round-robin across the destinations.
		"""

		destination = element.destination
		source = element.source

		if source is None:

			previous = destination.start - 1

			if previous < 1:
				logger.warning(f"Bar copy {_where(element)}: bar {destination.start} has no previous bar to copy from")
				return []

			return [(bar, previous) for bar in destination.bars()]

		if source.is_single:
			return [(bar, source.start) for bar in destination.bars()]

		source_bars = source.bars()

		if destination.is_single:
			return [(destination.start + i, bar) for i, bar in enumerate(source_bars)]

		return [(bar, source_bars[i % len(source_bars)]) for i, bar in enumerate(destination.bars())]


	def _on_clear (self, element: barbeat.notation.ClearBuffer) -> None:

		self._warn_unflushed(element, "@clear")
		self.notes_by_bar.clear()
		self.buffer = Idle()


	def _warn_unflushed (self, element: typing.Any, what: str) -> None:

		if isinstance(self.buffer, Collecting):
			pitches = ", ".join(str(p.pitch) for p in self.buffer.pitches)
			logger.warning(f"{what} {_where(element)} discards pitches that were never placed: {pitches}")


	def _finish (self) -> None:

		if isinstance(self.buffer, Collecting):
			pitches = ", ".join(str(p.pitch) for p in self.buffer.pitches)
			logger.warning(f"Pitches at the end of the notation were never placed: {pitches}")

		elif isinstance(self.buffer, Emitted) and self.buffer.changed_after_emission:
			logger.warning("Parameter changes after the last time position have no effect")


def apply_deletions (events: typing.List[barbeat.note.NoteEvent], tolerance: float = barbeat.constants.TIME_EPSILON) -> typing.List[barbeat.note.NoteEvent]:

	"""
	Resolve v0 deletions.

	Each event with velocity exactly 0 removes the nearest earlier surviving
	event of the same pitch starting within ``tolerance`` beats of it, and is
	itself left out of the result.
	"""

	kept: typing.List[barbeat.note.NoteEvent] = []

	for event in events:

		if event.velocity != 0:
			kept.append(event)
			continue

		for index in range(len(kept) - 1, -1, -1):
			candidate = kept[index]
			if candidate.pitch == event.pitch and abs(candidate.start_time - event.start_time) <= tolerance:
				del kept[index]
				break
		else:
			logger.debug(f"v0 note {event.pitch} at {event.start_time:g} had nothing to delete")

	return kept


def interpret_notation (
	text: str,
	beats_per_bar: typing.Optional[int] = None,
	time_sig_numerator: typing.Optional[int] = None,
	time_sig_denominator: typing.Optional[int] = None,
	settings: typing.Optional[barbeat.config.Settings] = None,
) -> typing.List[barbeat.note.NoteEvent]:

	"""
	Compile notation text into an ordered list of note events.

	Parameters:
		text: The notation.
		beats_per_bar: Bar length in musical beats (default 4).
		time_sig_numerator: Time signature numerator; needs the denominator.
		time_sig_denominator: Time signature denominator; needs the numerator.
		settings: Defaults and advisory thresholds.

	Returns:
		Events in emission order, times and durations in host beats.

	Raises:
		GrammarError: The text does not match the grammar.
		DomainError: A value is out of range or the meter options disagree.

	Example:
		```python
		interpret_notation("t1 C1 1|1x4")
		# four C1 events at 0, 1, 2 and 3
		```
	"""

	meter = barbeat.time_utils.resolve_meter(beats_per_bar, time_sig_numerator, time_sig_denominator)

	if not text or not text.strip():
		return []

	elements = barbeat.notation.parse(text, meter.beats_per_bar)

	return Interpreter(meter, settings or barbeat.config.DEFAULT_SETTINGS).run(elements)
