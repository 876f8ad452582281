"""Exceptions raised by the notation and modulation compilers.

Notation failures abort the whole call:

- :class:`GrammarError` - the text does not match the grammar.
- :class:`DomainError` - a value parsed fine but is outside its legal range.

Modulation evaluation failures (:class:`EvaluationError`) are local to one
assignment applied to one note; the evaluator logs them and moves on.
"""

import typing


class BarbeatError (Exception):

	"""Base class for every error raised by barbeat."""

	def __init__ (self, message: str, line: typing.Optional[int] = None, column: typing.Optional[int] = None) -> None:

		self.message = message
		self.line = line
		self.column = column

		if line is not None and column is not None:
			message = f"{message} at line {line}, column {column}"

		super().__init__(message)


class GrammarError (BarbeatError):

	"""
	Raised when text does not match the grammar.

	Carries the set of token descriptions that would have been accepted, the
	offending token (``None`` at end of input) and a 1-based location.
	"""

	def __init__ (self, expected: typing.Iterable[str], found: typing.Optional[str], line: int, column: int) -> None:

		self.expected: typing.FrozenSet[str] = frozenset(expected)
		self.found = found

		super().__init__(_describe(self.expected, found), line, column)


class DomainError (BarbeatError):

	"""Raised when a parsed value falls outside its legal domain."""


class EvaluationError (BarbeatError):

	"""Raised when a modulation expression cannot be evaluated for a note."""


def _describe (expected: typing.FrozenSet[str], found: typing.Optional[str]) -> str:

	"""Build the human-readable part of a grammar error message."""

	names = sorted(expected)

	if not names:
		wanted = "nothing"
	elif len(names) == 1:
		wanted = names[0]
	else:
		wanted = ", ".join(names[:-1]) + " or " + names[-1]

	got = "end of input" if found is None else f'"{found}"'

	return f"Expected {wanted} but {got} found"
