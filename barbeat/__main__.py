"""Command-line front end: compile notation and print or export the events.

    python -m barbeat "C3 E3 G3 1|1 |3"
    python -m barbeat --file groove.txt --time-signature 6/8 --output notation
    python -m barbeat "C1 1|1x4" --modulation "velocity += 20 * cos(1:0)" --midi out.mid
"""

import argparse
import dataclasses
import json
import logging
import os
import random
import sys
import typing

import yaml

import barbeat.config
import barbeat.constants
import barbeat.constants.pitch
import barbeat.errors
import barbeat.formatter
import barbeat.interpreter
import barbeat.midi
import barbeat.modulator
import barbeat.note
import barbeat.time_utils


logger = logging.getLogger(__name__)


OUTPUT_FORMATS = ("table", "json", "notation")


def parse_time_signature (text: str) -> typing.Tuple[int, int]:

	"""Parse ``N/D`` for argparse."""

	try:
		numerator, denominator = (int(part) for part in text.split("/"))
	except ValueError:
		raise argparse.ArgumentTypeError(f"time signature must look like 4/4, got {text!r}")

	return numerator, denominator


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(prog="barbeat", description="Compile bar|beat notation into note events.")

	source = parser.add_mutually_exclusive_group(required=True)
	source.add_argument("notation", nargs="?", help="notation text")
	source.add_argument("--file", help="read the notation from a file")

	parser.add_argument("--time-signature", type=parse_time_signature, default=None, metavar="N/D", help="time signature (default 4/4)")

	modulation = parser.add_mutually_exclusive_group()
	modulation.add_argument("--modulation", help="modulation text to apply to the events")
	modulation.add_argument("--modulation-file", help="read the modulation text from a file")

	parser.add_argument("--seed", type=int, default=None, help="seed for noise() (overrides the config)")
	parser.add_argument("--config", default=None, help="YAML settings file")
	parser.add_argument("--output", choices=OUTPUT_FORMATS, default="table", help="how to print the events")
	parser.add_argument("--midi", default=None, metavar="PATH", help="also write the events to a MIDI file")
	parser.add_argument("--bpm", type=float, default=barbeat.midi.DEFAULT_BPM, help="tempo written to the MIDI file")

	verbosity = parser.add_mutually_exclusive_group()
	verbosity.add_argument("--verbose", action="store_true", help="log debug output")
	verbosity.add_argument("--quiet", action="store_true", help="only log errors")

	return parser


def _read_text (path: str) -> str:

	with open(path, "r") as f:
		return f.read()


def load_settings (config_path: typing.Optional[str], seed: typing.Optional[int]) -> barbeat.config.Settings:

	"""Settings from the config file (if any), with the seed override applied."""

	config: dict = {}

	if config_path is not None:
		config = barbeat.config.load_config(config_path)
	elif os.path.exists("barbeat.yaml"):
		config = barbeat.config.load_config("barbeat.yaml")

	settings = barbeat.config.Settings.from_config(config)

	if seed is not None:
		settings = dataclasses.replace(settings, seed=seed)

	return settings


def format_table (notes: typing.Sequence[barbeat.note.NoteEvent]) -> str:

	"""One line per event, times in host beats."""

	header = f"{'pitch':<8}{'start':>10}{'duration':>10}{'velocity':>10}{'dev':>6}{'prob':>7}"
	lines = [header]

	for note in notes:
		name = f"{barbeat.constants.pitch.midi_to_pitch_name(note.pitch)} ({note.pitch})"
		lines.append(
			f"{name:<8}{note.start_time:>10.4g}{note.duration:>10.4g}"
			f"{note.velocity:>10.4g}{note.velocity_deviation:>6.4g}{note.probability:>7.3g}"
		)

	return "\n".join(lines)


def render (notes: typing.Sequence[barbeat.note.NoteEvent], output: str, meter: barbeat.time_utils.Meter) -> str:

	if output == "json":
		return json.dumps([note.to_dict() for note in notes], indent=2)

	if output == "notation":
		return barbeat.formatter.format_notation(
			notes,
			time_sig_numerator = meter.numerator,
			time_sig_denominator = meter.denominator
		)

	return format_table(notes)


def main (argv: typing.Optional[typing.Sequence[str]] = None) -> int:

	"""
	Main entry point for the barbeat command.

	Returns the process exit status: 0 on success, 1 when the notation or
	the options are invalid.
	"""

	args = build_parser().parse_args(argv)

	if args.verbose:
		level = logging.DEBUG
	elif args.quiet:
		level = logging.ERROR
	else:
		level = logging.INFO

	logging.basicConfig(level=level)

	try:
		settings = load_settings(args.config, args.seed)

		numerator, denominator = args.time_signature or (barbeat.constants.DEFAULT_TIME_SIG_NUMERATOR, barbeat.constants.DEFAULT_TIME_SIG_DENOMINATOR)
		meter = barbeat.time_utils.resolve_meter(None, numerator, denominator)

		text = _read_text(args.file) if args.file else args.notation

		notes = barbeat.interpreter.interpret_notation(
			text,
			time_sig_numerator = meter.numerator,
			time_sig_denominator = meter.denominator,
			settings = settings
		)

		modulation_text = args.modulation

		if args.modulation_file:
			modulation_text = _read_text(args.modulation_file)

		if modulation_text:
			barbeat.modulator.apply_modulations(
				notes,
				modulation_text,
				meter.numerator,
				meter.denominator,
				rng = random.Random(settings.seed),
				settings = settings
			)

		print(render(notes, args.output, meter))

		if args.midi:
			barbeat.midi.save_midi_file(notes, args.midi, meter.numerator, meter.denominator, bpm=args.bpm)

	except barbeat.errors.BarbeatError as exc:
		logger.error(str(exc))
		return 1

	except (OSError, ValueError, yaml.YAMLError) as exc:
		logger.error(str(exc))
		return 1

	return 0


if __name__ == "__main__":
	sys.exit(main())
