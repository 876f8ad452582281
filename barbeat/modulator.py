"""Apply modulation text to a batch of note events.

For every note the assignments run in textual order:

1. The assignment is skipped when the note's pitch is outside the *active*
   pitch range: the assignment's own range or, when it has none, the range
   in effect for the assignment before it. A range therefore stays in force
   until another assignment names a new one, across parameters::

       C1-C2 velocity += 10
       timing += 0.1          // still only C1-C2

2. It is skipped when it names a time range that does not contain the note.
3. Its expression is evaluated against the note. A failure (unknown
   variable, division by zero, ...) is logged and only drops this
   assignment for this note.
4. Per parameter the last surviving assignment wins; values are not
   accumulated across assignments.

The winning values are then applied: velocity is clamped to 1-127, timing
is not clamped, duration has a floor of 0.001 beats and probability is
clamped to 0-1.

Expressions see time in musical beats: ``note.start``, ``note.duration``,
waveform positions and the values assigned to ``timing``/``duration``.
"""

import dataclasses
import logging
import random
import typing

import barbeat.config
import barbeat.constants
import barbeat.constants.velocity
import barbeat.errors
import barbeat.modulation
import barbeat.note
import barbeat.time_utils
import barbeat.waveforms


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class NoteContext:

	"""
	What an expression may know about the note it is evaluated for.
	"""

	position: float					# musical beats from the clip start
	pitch: int
	bar: int
	beat: float
	meter: barbeat.time_utils.Meter
	clip_start: float
	clip_end: float
	variables: typing.Mapping[str, float]


def build_context (note: barbeat.note.NoteEvent, meter: barbeat.time_utils.Meter, clip_start: float, clip_end: float) -> NoteContext:

	"""Derive a note's evaluation context. Unset (None) properties are left out."""

	position = meter.to_musical(note.start_time)
	bar, beat = barbeat.time_utils.beats_to_bar_beat(position, meter.beats_per_bar)

	values: typing.Dict[str, typing.Optional[float]] = {
		"pitch": note.pitch,
		"start": position,
		"velocity": note.velocity,
		"velocityDeviation": note.velocity_deviation,
		"duration": meter.to_musical(note.duration) if note.duration is not None else None,
		"probability": note.probability,
	}

	return NoteContext(
		position = position,
		pitch = note.pitch,
		bar = bar,
		beat = beat,
		meter = meter,
		clip_start = clip_start,
		clip_end = clip_end,
		variables = {name: float(value) for name, value in values.items() if value is not None}
	)


class ExpressionEvaluator:

	"""
	Evaluates expressions for one note and one assignment.

	``range_start``/``range_end`` bound ``ramp()``: the assignment's time
	range when it has one, otherwise the whole clip.
	"""

	def __init__ (self, context: NoteContext, rng: random.Random, range_start: float, range_end: float) -> None:

		self.context = context
		self.rng = rng
		self.range_start = range_start
		self.range_end = range_end


	def evaluate (self, node: barbeat.modulation.Expression) -> float:

		"""
		Return the value of ``node``.

		Raises:
			EvaluationError: Unknown variable or function, wrong number of
				arguments, non-positive period or division by zero.
		"""

		if isinstance(node, barbeat.modulation.NumberLiteral):
			return node.value

		if isinstance(node, barbeat.modulation.PeriodLiteral):
			return barbeat.time_utils.bars_beats_to_duration(node.bars, node.beats, self.context.meter.beats_per_bar)

		if isinstance(node, barbeat.modulation.Variable):

			if node.name not in self.context.variables:
				raise barbeat.errors.EvaluationError(f"Variable note.{node.name} is not available")

			return self.context.variables[node.name]

		if isinstance(node, barbeat.modulation.Negate):
			return -self.evaluate(node.operand)

		if isinstance(node, barbeat.modulation.BinaryOp):
			return self._binary(node)

		if isinstance(node, barbeat.modulation.FunctionCall):
			return self._call(node.name, [self.evaluate(arg) for arg in node.args])

		raise barbeat.errors.EvaluationError(f"Cannot evaluate {node!r}")


	def _binary (self, node: barbeat.modulation.BinaryOp) -> float:

		left = self.evaluate(node.left)
		right = self.evaluate(node.right)

		if node.kind == "add":
			return left + right

		if node.kind == "subtract":
			return left - right

		if node.kind == "multiply":
			return left * right

		if right == 0:
			raise barbeat.errors.EvaluationError("Division by zero")

		return left / right


	def _call (self, name: str, args: typing.List[float]) -> float:

		if name in barbeat.waveforms.WAVEFORMS:

			_check_arity(name, args, 1, 3)

			period = args[0]

			if period <= 0:
				raise barbeat.errors.EvaluationError(f"{name}() period must be positive, got {period:g}")

			phase_offset = args[1] if len(args) > 1 else 0.0

			if name == "square":
				pulse_width = args[2] if len(args) > 2 else 0.5
				return barbeat.waveforms.square(self.context.position, period, phase_offset, pulse_width)

			return barbeat.waveforms.WAVEFORMS[name](self.context.position, period, phase_offset)

		if name == "noise":
			_check_arity(name, args, 0, 0)
			return barbeat.waveforms.noise(self.rng)

		if name == "ramp":
			_check_arity(name, args, 2, 3)
			speed = args[2] if len(args) > 2 else 1.0
			return barbeat.waveforms.ramp(
				self.context.position,
				self.range_start,
				self.range_end - self.range_start,
				args[0],
				args[1],
				speed
			)

		raise barbeat.errors.EvaluationError(f"Unknown function {name}()")


def _check_arity (name: str, args: typing.List[float], minimum: int, maximum: int) -> None:

	if not minimum <= len(args) <= maximum:
		if minimum == maximum:
			wanted = str(minimum)
		else:
			wanted = f"{minimum} to {maximum}"
		raise barbeat.errors.EvaluationError(f"{name}() takes {wanted} arguments, got {len(args)}")


def _in_time_range (context: NoteContext, time_range: barbeat.modulation.TimeRange) -> bool:

	"""Inclusive bar|beat comparison at both ends."""

	eps = barbeat.constants.TIME_EPSILON
	bar, beat = context.bar, context.beat

	after_start = bar > time_range.start_bar or (bar == time_range.start_bar and beat >= time_range.start_beat - eps)
	before_end = bar < time_range.end_bar or (bar == time_range.end_bar and beat <= time_range.end_beat + eps)

	return after_start and before_end


def _time_range_beats (time_range: barbeat.modulation.TimeRange, meter: barbeat.time_utils.Meter) -> typing.Tuple[float, float]:

	return (
		barbeat.time_utils.bar_beat_to_beats(time_range.start_bar, time_range.start_beat, meter.beats_per_bar),
		barbeat.time_utils.bar_beat_to_beats(time_range.end_bar, time_range.end_beat, meter.beats_per_bar),
	)


def evaluate_note (
	note: barbeat.note.NoteEvent,
	assignments: typing.Sequence[barbeat.modulation.Assignment],
	context: NoteContext,
	rng: random.Random,
) -> typing.Dict[str, typing.Tuple[str, float]]:

	"""
	Run the assignments for one note.

	Returns:
		parameter → (operator, value) for the last surviving assignment of
		each parameter.
	"""

	results: typing.Dict[str, typing.Tuple[str, float]] = {}
	active_pitch_range: typing.Optional[barbeat.modulation.PitchRange] = None

	for assignment in assignments:

		if assignment.pitch_range is not None:
			active_pitch_range = assignment.pitch_range

		if active_pitch_range is not None and note.pitch not in active_pitch_range:
			continue

		if assignment.time_range is not None:

			if not _in_time_range(context, assignment.time_range):
				continue

			range_start, range_end = _time_range_beats(assignment.time_range, context.meter)

		else:
			range_start, range_end = context.clip_start, context.clip_end

		evaluator = ExpressionEvaluator(context, rng, range_start, range_end)

		try:
			value = evaluator.evaluate(assignment.expression)
		except barbeat.errors.EvaluationError as exc:
			logger.warning(
				f"Modulation at line {assignment.line}, column {assignment.column} skipped for "
				f"pitch {note.pitch} at beat {context.position:g}: {exc}"
			)
			continue

		results[assignment.parameter] = (assignment.operator, value)

	return results


def _clamp (value: float, low: float, high: float) -> float:
	return max(low, min(high, value))


def apply_changes (
	note: barbeat.note.NoteEvent,
	changes: typing.Mapping[str, typing.Tuple[str, float]],
	meter: barbeat.time_utils.Meter,
	settings: barbeat.config.Settings = barbeat.config.DEFAULT_SETTINGS,
) -> None:

	"""Write evaluated parameter changes onto a note."""

	for parameter, (operator, value) in changes.items():

		if parameter == "velocity":
			new_velocity = value if operator == "set" else note.velocity + value
			note.velocity = _clamp(new_velocity, barbeat.constants.velocity.MIN_AUDIBLE_VELOCITY, barbeat.constants.velocity.MAX_VELOCITY)

		elif parameter == "timing":
			start = meter.to_musical(note.start_time)
			note.start_time = meter.to_host(value if operator == "set" else start + value)

		elif parameter == "duration":
			duration = meter.to_musical(note.duration)
			new_duration = meter.to_host(value if operator == "set" else duration + value)
			note.duration = max(new_duration, settings.min_duration)

		elif parameter == "probability":
			base = note.probability if note.probability is not None else barbeat.constants.DEFAULT_PROBABILITY
			new_probability = value if operator == "set" else base + value
			note.probability = _clamp(new_probability, barbeat.constants.MIN_PROBABILITY, barbeat.constants.MAX_PROBABILITY)


def apply_modulations (
	notes: typing.List[barbeat.note.NoteEvent],
	modulation_text: typing.Optional[str],
	time_sig_numerator: int = barbeat.constants.DEFAULT_TIME_SIG_NUMERATOR,
	time_sig_denominator: int = barbeat.constants.DEFAULT_TIME_SIG_DENOMINATOR,
	rng: typing.Optional[random.Random] = None,
	settings: typing.Optional[barbeat.config.Settings] = None,
) -> None:

	"""
	Apply modulation text to ``notes`` in place.

	Nothing happens when the text is empty or there are no notes. When the
	text does not parse, a warning is logged and no note is touched.

	Parameters:
		notes: Note events (host beats), modified in place.
		modulation_text: The modulation assignments.
		time_sig_numerator: Beats per bar.
		time_sig_denominator: Beat unit.
		rng: Generator used by ``noise()``. Defaults to a new
			``random.Random(settings.seed)``.
		settings: Supplies ``min_duration`` and ``seed``.

	Raises:
		DomainError: The time signature is invalid.

	Example:
		```python
		notes = interpret_notation("C3 E3 G3 1|1x4")
		apply_modulations(notes, "velocity += 20 * cos(1:0)", 4, 4)
		```
	"""

	if not modulation_text or not modulation_text.strip() or not notes:
		return

	settings = settings or barbeat.config.DEFAULT_SETTINGS
	meter = barbeat.time_utils.resolve_meter(None, time_sig_numerator, time_sig_denominator)

	try:
		assignments = barbeat.modulation.parse(modulation_text)
	except (barbeat.errors.GrammarError, barbeat.errors.DomainError) as exc:
		logger.warning(f"Modulation ignored, no notes changed: {exc}")
		return

	if rng is None:
		rng = random.Random(settings.seed)

	clip_start = 0.0
	clip_end = max(meter.to_musical(note.end_time) for note in notes)

	# Contexts come from the unmodified notes.
	contexts = [build_context(note, meter, clip_start, clip_end) for note in notes]

	for note, context in zip(notes, contexts):
		changes = evaluate_note(note, assignments, context, rng)
		apply_changes(note, changes, meter, settings)

	logger.debug(f"Applied {len(assignments)} modulation assignments to {len(notes)} notes")
