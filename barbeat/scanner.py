"""Character-level scanning shared by the notation and modulation parsers.

Both languages separate their tokens with whitespace and comments
(``// line``, ``# line``, ``/* block */``), write numbers the same way and
name pitches the same way. :class:`Scanner` keeps the cursor, skips
separators, matches compiled patterns at the cursor and builds errors that
point at a 1-based line and column.
"""

import re
import typing

import barbeat.constants.pitch
import barbeat.errors


_SEPARATOR = re.compile(r"(?:\s+|//[^\n]*|#[^\n]*|/\*.*?\*/)+", re.DOTALL)
_BOUNDARY = re.compile(r"\s|//|#|/\*")
_TOKEN = re.compile(r"[A-Za-z0-9_.#@|:+\-/]+|\S")

NUMBER = re.compile(
	r"(?P<whole>\d+)\+(?P<mixed_num>\d+)/(?P<mixed_den>\d+)"
	r"|(?P<num>\d+)/(?P<den>\d+)"
	r"|(?P<decimal>\d*\.\d+|\d+)"
)

# Without the mixed ``n+a/b`` form, for contexts where '+' is an operator.
SIMPLE_NUMBER = re.compile(
	r"(?P<num>\d+)/(?P<den>\d+)"
	r"|(?P<decimal>\d*\.\d+|\d+)"
)

INTEGER = re.compile(r"\d+")

PITCH = re.compile(r"(?P<letter>[A-G])(?P<accidental>[#b]?)(?P<octave>-?\d+)")


class Scanner:

	"""
	A cursor over source text.

	Patterns passed to :meth:`match` and :meth:`expect` are anchored at the
	cursor; the cursor only moves on success.
	"""

	def __init__ (self, text: str) -> None:

		self.text = text
		self.pos = 0


	def at_end (self) -> bool:

		return self.pos >= len(self.text)


	def skip_separators (self) -> bool:

		"""Skip whitespace and comments. Return True if anything was skipped."""

		start = self.pos

		while True:

			m = _SEPARATOR.match(self.text, self.pos)

			if m and m.end() > self.pos:
				self.pos = m.end()
				continue

			if self.text.startswith("/*", self.pos):
				# An unterminated block comment is the only way the separator
				# pattern can stop at '/*'.
				self.pos = len(self.text)
				raise self.error(['"*/"'])

			break

		return self.pos > start


	def at_boundary (self) -> bool:

		"""True at end of input, whitespace or the start of a comment."""

		return self.at_end() or bool(_BOUNDARY.match(self.text, self.pos))


	def check (self, pattern: re.Pattern) -> bool:

		"""Look ahead without consuming."""

		return pattern.match(self.text, self.pos) is not None


	def match (self, pattern: re.Pattern) -> typing.Optional[re.Match]:

		"""Consume ``pattern`` at the cursor if it matches there."""

		m = pattern.match(self.text, self.pos)

		if m:
			self.pos = m.end()

		return m


	def literal (self, token: str) -> bool:

		"""Consume an exact string if it is next."""

		if self.text.startswith(token, self.pos):
			self.pos += len(token)
			return True

		return False


	def expect (self, pattern: re.Pattern, *expected: str) -> re.Match:

		"""Consume ``pattern`` or raise a :class:`GrammarError` naming ``expected``."""

		m = self.match(pattern)

		if m is None:
			raise self.error(expected)

		return m


	def location (self, pos: typing.Optional[int] = None) -> typing.Tuple[int, int]:

		"""Return the 1-based (line, column) of ``pos`` (default: the cursor)."""

		if pos is None:
			pos = self.pos

		line = self.text.count("\n", 0, pos) + 1
		column = pos - (self.text.rfind("\n", 0, pos) + 1) + 1

		return line, column


	def found (self, pos: typing.Optional[int] = None) -> typing.Optional[str]:

		"""Return the token starting at ``pos``, or None at end of input."""

		if pos is None:
			pos = self.pos

		m = _TOKEN.match(self.text, pos)

		return m.group(0) if m else None


	def error (self, expected: typing.Iterable[str], pos: typing.Optional[int] = None) -> barbeat.errors.GrammarError:

		if pos is None:
			pos = self.pos

		line, column = self.location(pos)

		return barbeat.errors.GrammarError(expected, self.found(pos), line, column)


	def domain_error (self, message: str, pos: int) -> barbeat.errors.DomainError:

		line, column = self.location(pos)

		return barbeat.errors.DomainError(message, line, column)


	def read_number (self, description: str = "number", allow_mixed: bool = True) -> float:

		"""
		Read an integer, decimal, fraction or (optionally) mixed number.

		Example:
			``3`` → 3.0, ``1.5`` → 1.5, ``.5`` → 0.5, ``3/4`` → 0.75,
			``1+1/2`` → 1.5

		Raises:
			GrammarError: No number at the cursor.
			DomainError: A fraction with a zero denominator.
		"""

		start = self.pos
		m = self.expect(NUMBER if allow_mixed else SIMPLE_NUMBER, description)

		if m.group("decimal") is not None:
			return float(m.group("decimal"))

		if allow_mixed and m.group("whole") is not None:
			whole = int(m.group("whole"))
			numerator = int(m.group("mixed_num"))
			denominator = int(m.group("mixed_den"))
		else:
			whole = 0
			numerator = int(m.group("num"))
			denominator = int(m.group("den"))

		if denominator == 0:
			raise self.domain_error(f"Division by zero in fraction {m.group(0)!r}", start)

		return whole + numerator / denominator


	def read_integer (self, description: str = "integer") -> int:

		return int(self.expect(INTEGER, description).group(0))


	def read_pitch (self) -> int:

		"""
		Read a pitch name and return its MIDI number.

		Raises:
			GrammarError: No pitch at the cursor.
			DomainError: The pitch is outside 0-127.
		"""

		start = self.pos
		m = self.expect(PITCH, "pitch")

		midi = barbeat.constants.pitch.pitch_to_midi(m.group("letter") + m.group("accidental"), int(m.group("octave")))

		if not barbeat.constants.pitch.MIN_PITCH <= midi <= barbeat.constants.pitch.MAX_PITCH:
			raise self.domain_error(f"Pitch {m.group(0)} (MIDI {midi}) is outside the MIDI range 0-127", start)

		return midi
