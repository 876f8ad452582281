"""Settings for the notation interpreter and the modulation evaluator.

The defaults reproduce the behaviour documented for the languages. Override
them in code::

    settings = barbeat.config.Settings(repeat_warning_threshold=256, seed=7)
    barbeat.interpret_notation(text, settings=settings)

or from a YAML file whose ``barbeat:`` section (or top level) holds the same
keys::

    barbeat:
      repeat_warning_threshold: 256
      seed: 7

    settings = barbeat.config.Settings.from_config(barbeat.config.load_config("barbeat.yaml"))
"""

import dataclasses
import logging
import os
import typing

import yaml

import barbeat.constants
import barbeat.constants.velocity


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Settings:

	"""
	Tunable limits and defaults.

	Parameters:
		repeat_warning_threshold: Repeat patterns producing more positions
			than this log a warning. This is a soft limit; the pattern still runs.
		deletion_tolerance: How close (in beats) a v0 note must be to an
			earlier note of the same pitch to delete it.
		min_duration: Floor applied to durations produced by modulations.
		default_velocity: Velocity before any ``v`` element.
		default_duration: Duration (musical beats) before any ``t`` element.
		default_probability: Probability before any ``p`` element.
		seed: Seed for the ``noise()`` generator when no ``rng`` is passed.
	"""

	repeat_warning_threshold: int = barbeat.constants.REPEAT_WARNING_THRESHOLD
	deletion_tolerance: float = barbeat.constants.TIME_EPSILON
	min_duration: float = barbeat.constants.MIN_DURATION
	default_velocity: float = barbeat.constants.velocity.DEFAULT_VELOCITY
	default_duration: float = barbeat.constants.DEFAULT_DURATION
	default_probability: float = barbeat.constants.DEFAULT_PROBABILITY
	seed: typing.Optional[int] = None

	def __post_init__ (self) -> None:
		self.validate()

	def validate (self) -> None:

		"""Raise ``ValueError`` if any setting is out of range."""

		if self.repeat_warning_threshold < 1:
			raise ValueError("repeat_warning_threshold must be at least 1")
		if self.deletion_tolerance < 0:
			raise ValueError("deletion_tolerance cannot be negative")
		if self.min_duration <= 0:
			raise ValueError("min_duration must be positive")
		if not barbeat.constants.velocity.MIN_VELOCITY <= self.default_velocity <= barbeat.constants.velocity.MAX_VELOCITY:
			raise ValueError("default_velocity must be between 0 and 127")
		if self.default_duration <= 0:
			raise ValueError("default_duration must be positive")
		if not barbeat.constants.MIN_PROBABILITY <= self.default_probability <= barbeat.constants.MAX_PROBABILITY:
			raise ValueError("default_probability must be between 0 and 1")

	@staticmethod
	def from_config (config: typing.Optional[typing.Mapping[str, typing.Any]]) -> "Settings":

		"""
		Build settings from a loaded configuration mapping.

		Reads the ``barbeat`` section when present, otherwise the mapping
		itself. Unknown keys raise ``ValueError`` so that typos do not pass
		silently.
		"""

		if not config:
			return Settings()

		if not isinstance(config, dict):
			raise ValueError("barbeat config must be a mapping")

		section = config.get("barbeat", config)

		if not isinstance(section, dict):
			raise ValueError("barbeat config section must be a mapping")

		known = {field.name for field in dataclasses.fields(Settings)}
		unknown = sorted(set(section) - known)

		if unknown:
			raise ValueError(f"Unknown barbeat settings: {', '.join(unknown)}")

		return Settings(**section)


DEFAULT_SETTINGS = Settings()


def load_config (config_path: str = "barbeat.yaml") -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, "r") as f:
		return yaml.safe_load(f) or {}
