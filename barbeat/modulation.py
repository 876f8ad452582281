"""Parser for the modulation-expression language.

A modulation text is a list of assignments, each computing a new value (or
a delta) for one note parameter::

    velocity += 20 * cos(1:0)              // one-bar swell on every note
    C1-C2 timing += 0.05 * noise()         // humanize the low notes
    duration = note.duration * 0.5
    1|1-2|4 probability = ramp(0.2, 1)     // fade in over bars 1-2

**Assignment:** ``[pitch range] [time range] parameter (= | +=) expression``

- pitch range: ``C3`` or ``C3-C4`` (inclusive, same pitch names as the
  notation language).
- time range: ``<bar>|<beat>-<bar>|<beat>`` (inclusive).
- parameter: ``velocity``, ``timing``, ``duration`` or ``probability``.

**Expressions:** ``+ - * /`` with the usual precedence, unary minus,
parentheses, numbers (``2``, ``0.5``, ``1/4``), ``note.<property>``
variables and function calls. A ``<bars>:<beats>`` token is a period
measured in bars and beats, e.g. ``cos(1:0)`` cycles once a bar.

Variable and function names are only checked when the expression is
evaluated, so a misspelt name costs one assignment, not the whole text.
"""

import dataclasses
import re
import typing

import barbeat.scanner


PARAMETERS: typing.Tuple[str, ...] = ("velocity", "timing", "duration", "probability")

OPERATORS: typing.Dict[str, str] = {
	"+=": "add",
	"=": "set",
}

NOTE_PROPERTIES: typing.Tuple[str, ...] = ("pitch", "start", "velocity", "velocityDeviation", "duration", "probability")


@dataclasses.dataclass(frozen=True)
class NumberLiteral:

	value: float


@dataclasses.dataclass(frozen=True)
class PeriodLiteral:

	"""A ``bars:beats`` period, converted to beats with the time signature."""

	bars: int
	beats: float


@dataclasses.dataclass(frozen=True)
class Variable:

	"""``note.<name>``"""

	name: str


@dataclasses.dataclass(frozen=True)
class BinaryOp:

	kind: str						# 'add', 'subtract', 'multiply' or 'divide'
	left: "Expression"
	right: "Expression"


@dataclasses.dataclass(frozen=True)
class Negate:

	operand: "Expression"


@dataclasses.dataclass(frozen=True)
class FunctionCall:

	name: str
	args: typing.Tuple["Expression", ...] = ()


Expression = typing.Union[NumberLiteral, PeriodLiteral, Variable, BinaryOp, Negate, FunctionCall]


@dataclasses.dataclass(frozen=True)
class PitchRange:

	"""An inclusive MIDI pitch range."""

	start: int
	end: int

	def __contains__ (self, pitch: int) -> bool:
		return self.start <= pitch <= self.end


@dataclasses.dataclass(frozen=True)
class TimeRange:

	"""An inclusive range of 1-based bar|beat positions."""

	start_bar: int
	start_beat: float
	end_bar: int
	end_beat: float


@dataclasses.dataclass(frozen=True)
class Assignment:

	parameter: str					# one of PARAMETERS
	operator: str					# 'set' or 'add'
	expression: Expression
	pitch_range: typing.Optional[PitchRange] = None
	time_range: typing.Optional[TimeRange] = None
	line: int = dataclasses.field(default=0, compare=False)
	column: int = dataclasses.field(default=0, compare=False)


_ADDITIVE: typing.Dict[str, str] = {"+": "add", "-": "subtract"}
_MULTIPLICATIVE: typing.Dict[str, str] = {"*": "multiply", "/": "divide"}

_PARAMETER = re.compile(r"(?:velocity|timing|duration|probability)(?![A-Za-z0-9_])")
_OPERATOR = re.compile(r"\+=|=")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NOTE_PREFIX = re.compile(r"note\.")
_CALL = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*\(")
_PERIOD = re.compile(r"(\d+):")
_TIME_RANGE_START = re.compile(r"\d+\|")
_NUMBER_START = re.compile(r"\d|\.\d")

_ASSIGNMENT_START: typing.Tuple[str, ...] = ("pitch", "time range", "velocity", "timing", "duration", "probability", "end of input")
_PRIMARY: typing.Tuple[str, ...] = ("number", "period", "note.<property>", "function call", '"("', '"-"')


def parse (text: str) -> typing.List[Assignment]:

	"""
	Parse modulation text into assignments, in textual order.

	Raises:
		GrammarError: The text does not match the grammar.
		DomainError: A pitch in a pitch range is outside 0-127, or a fraction
			divides by zero.

	Example:
		```python
		parse("C3-C4 velocity = 80")
		# [Assignment(parameter='velocity', operator='set',
		#             expression=NumberLiteral(80.0), pitch_range=PitchRange(60, 72))]
		```
	"""

	parser = _Parser(text)

	return parser.parse_program()


class _Parser:

	"""Recursive descent over a :class:`~barbeat.scanner.Scanner`."""

	def __init__ (self, text: str) -> None:

		self.scanner = barbeat.scanner.Scanner(text)


	def parse_program (self) -> typing.List[Assignment]:

		assignments: typing.List[Assignment] = []

		self.scanner.skip_separators()

		while not self.scanner.at_end():
			assignments.append(self._parse_assignment())
			self.scanner.skip_separators()

		return assignments


	def _parse_assignment (self) -> Assignment:

		scanner = self.scanner
		line, column = scanner.location()

		pitch_range = None
		time_range = None

		if scanner.check(barbeat.scanner.PITCH):
			pitch_range = self._parse_pitch_range()
			if not scanner.skip_separators():
				raise scanner.error(('"-"', "whitespace"))

		if scanner.check(_TIME_RANGE_START):
			time_range = self._parse_time_range()
			if not scanner.skip_separators():
				raise scanner.error(("whitespace",))

		m = scanner.match(_PARAMETER)

		if m is None:
			expected = ("velocity", "timing", "duration", "probability")
			if pitch_range is None and time_range is None:
				expected = _ASSIGNMENT_START
			elif time_range is None:
				expected = expected + ("time range",)
			raise scanner.error(expected)

		parameter = m.group(0)

		scanner.skip_separators()
		operator = OPERATORS[scanner.expect(_OPERATOR, '"="', '"+="').group(0)]
		scanner.skip_separators()

		expression = self._parse_expression()

		return Assignment(parameter, operator, expression, pitch_range, time_range, line, column)


	def _parse_pitch_range (self) -> PitchRange:

		scanner = self.scanner
		start_pos = scanner.pos
		start = scanner.read_pitch()
		end = start

		if scanner.literal("-"):
			end = scanner.read_pitch()

		if end < start:
			raise scanner.domain_error(f"Pitch range ends ({end}) below where it starts ({start})", start_pos)

		return PitchRange(start, end)


	def _parse_time_range (self) -> TimeRange:

		scanner = self.scanner
		start_pos = scanner.pos

		start_bar = scanner.read_integer("bar number")
		scanner.expect(re.compile(r"\|"), '"|"')
		start_beat = scanner.read_number("beat", allow_mixed=False)
		scanner.expect(re.compile(r"-"), '"-"')
		end_bar = scanner.read_integer("bar number")
		scanner.expect(re.compile(r"\|"), '"|"')
		end_beat = scanner.read_number("beat", allow_mixed=False)

		if start_bar < 1 or end_bar < 1:
			raise scanner.domain_error("Bar numbers start at 1", start_pos)

		if (end_bar, end_beat) < (start_bar, start_beat):
			raise scanner.domain_error(f"Time range {start_bar}|{start_beat:g}-{end_bar}|{end_beat:g} ends before it starts", start_pos)

		return TimeRange(start_bar, start_beat, end_bar, end_beat)


	# ─── Expressions ──────────────────────────────────────────────────────


	def _parse_expression (self) -> Expression:

		"""expression := term (('+' | '-') term)*"""

		node = self._parse_term()

		while True:

			kind = self._peek_operator(_ADDITIVE)

			if kind is None:
				return node

			node = BinaryOp(kind, node, self._parse_term())


	def _parse_term (self) -> Expression:

		"""term := unary (('*' | '/') unary)*"""

		node = self._parse_unary()

		while True:

			kind = self._peek_operator(_MULTIPLICATIVE)

			if kind is None:
				return node

			node = BinaryOp(kind, node, self._parse_unary())


	def _peek_operator (self, operators: typing.Dict[str, str]) -> typing.Optional[str]:

		"""
		Consume a binary operator from ``operators`` if one follows.

		Whitespace before the operator is only consumed when an operator is
		actually there, so the next assignment starts where this one ended.
		"""

		scanner = self.scanner
		saved = scanner.pos

		scanner.skip_separators()

		for symbol, kind in operators.items():

			# '+=' is an assignment operator, not addition.
			if symbol == "+" and scanner.text.startswith("+=", scanner.pos):
				continue

			if scanner.literal(symbol):
				scanner.skip_separators()
				return kind

		scanner.pos = saved
		return None


	def _parse_unary (self) -> Expression:

		"""unary := '-' unary | primary"""

		if self.scanner.literal("-"):
			self.scanner.skip_separators()
			return Negate(self._parse_unary())

		return self._parse_primary()


	def _parse_primary (self) -> Expression:

		scanner = self.scanner

		if scanner.literal("("):
			scanner.skip_separators()
			node = self._parse_expression()
			scanner.skip_separators()
			scanner.expect(re.compile(r"\)"), '")"')
			return node

		if scanner.match(_NOTE_PREFIX):
			return Variable(scanner.expect(_IDENTIFIER, "note property").group(0))

		call = scanner.match(_CALL)

		if call:
			return FunctionCall(call.group(1), self._parse_arguments())

		period = scanner.match(_PERIOD)

		if period:
			return PeriodLiteral(int(period.group(1)), scanner.read_number("beats", allow_mixed=False))

		if scanner.check(_NUMBER_START):
			return NumberLiteral(scanner.read_number("number", allow_mixed=False))

		raise scanner.error(_PRIMARY)


	def _parse_arguments (self) -> typing.Tuple[Expression, ...]:

		"""Arguments after an opening parenthesis, through the closing one."""

		scanner = self.scanner
		args: typing.List[Expression] = []

		scanner.skip_separators()

		if scanner.literal(")"):
			return ()

		while True:

			args.append(self._parse_expression())
			scanner.skip_separators()

			if scanner.literal(")"):
				return tuple(args)

			if not scanner.literal(","):
				raise scanner.error(('","', '")"'))

			scanner.skip_separators()
