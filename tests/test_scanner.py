import pytest

import barbeat.errors
import barbeat.scanner


@pytest.mark.parametrize("text, expected", [
	("3", 3.0),
	("1.5", 1.5),
	(".5", 0.5),
	("3/4", 0.75),
	("1+1/2", 1.5),
	("2+3/4", 2.75),
])
def test_read_number_forms (text: str, expected: float) -> None:

	"""Integers, decimals, fractions and mixed numbers all read as floats."""

	scanner = barbeat.scanner.Scanner(text)

	assert scanner.read_number() == pytest.approx(expected)
	assert scanner.at_end()


def test_mixed_number_can_be_disabled () -> None:

	"""Without the mixed form, '+' is left for the caller."""

	scanner = barbeat.scanner.Scanner("1+1/2")

	assert scanner.read_number(allow_mixed=False) == 1.0
	assert scanner.pos == 1


def test_fraction_with_zero_denominator () -> None:

	"""n/0 is a domain error, not a grammar error."""

	with pytest.raises(barbeat.errors.DomainError):
		barbeat.scanner.Scanner("1/0").read_number()


def test_missing_number_is_a_grammar_error () -> None:

	"""The expected description appears in the error."""

	with pytest.raises(barbeat.errors.GrammarError) as info:
		barbeat.scanner.Scanner("x").read_number("beat")

	assert info.value.expected == frozenset({"beat"})
	assert info.value.found == "x"


@pytest.mark.parametrize("text, midi", [
	("C3", 60),
	("A3", 69),
	("C-2", 0),
	("F#-1", 18),
	("Bb4", 82),
	("Cb3", 59),
	("B#3", 72),
	("G8", 127),
])
def test_read_pitch (text: str, midi: int) -> None:

	"""Pitch names map to MIDI numbers with C3 = 60."""

	assert barbeat.scanner.Scanner(text).read_pitch() == midi


def test_pitch_out_of_range () -> None:

	"""Pitches above 127 are rejected with their location."""

	with pytest.raises(barbeat.errors.DomainError) as info:
		barbeat.scanner.Scanner("G9").read_pitch()

	assert info.value.line == 1
	assert info.value.column == 1


def test_skip_separators_handles_all_comment_styles () -> None:

	"""Whitespace, //, # and /* */ comments are all skipped."""

	scanner = barbeat.scanner.Scanner("  // one\n# two\n/* three\nfour */ C3")

	assert scanner.skip_separators() is True
	assert scanner.text[scanner.pos:] == "C3"


def test_skip_separators_reports_nothing_skipped () -> None:

	"""At a token the cursor does not move."""

	scanner = barbeat.scanner.Scanner("C3")

	assert scanner.skip_separators() is False
	assert scanner.pos == 0


def test_unterminated_block_comment () -> None:

	"""An open /* comment expects its closing */."""

	scanner = barbeat.scanner.Scanner("C3 /* never closed")
	scanner.pos = 2

	with pytest.raises(barbeat.errors.GrammarError) as info:
		scanner.skip_separators()

	assert '"*/"' in info.value.expected


def test_location_is_one_based () -> None:

	"""Line and column count from 1."""

	scanner = barbeat.scanner.Scanner("ab\ncd")

	assert scanner.location(0) == (1, 1)
	assert scanner.location(4) == (2, 2)


def test_error_message_names_expected_and_found () -> None:

	"""Grammar errors list what was expected, what was found and where."""

	scanner = barbeat.scanner.Scanner("C3 ?")
	scanner.pos = 3

	error = scanner.error(("pitch", "velocity"))

	assert str(error) == 'Expected pitch or velocity but "?" found at line 1, column 4'


def test_error_at_end_of_input () -> None:

	"""The found token is None at the end of the text."""

	scanner = barbeat.scanner.Scanner("C3")
	scanner.pos = 2

	error = scanner.error(("pitch",))

	assert error.found is None
	assert "end of input" in str(error)
