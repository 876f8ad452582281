import logging
import pathlib

import pytest

import barbeat.config


def test_defaults () -> None:

	"""Settings start from the documented defaults."""

	settings = barbeat.config.Settings()

	assert settings.repeat_warning_threshold == 100
	assert settings.deletion_tolerance == 0.001
	assert settings.min_duration == 0.001
	assert settings.default_velocity == 100
	assert settings.default_duration == 1.0
	assert settings.default_probability == 1.0
	assert settings.seed is None


@pytest.mark.parametrize("overrides", [
	{"repeat_warning_threshold": 0},
	{"deletion_tolerance": -0.1},
	{"min_duration": 0},
	{"default_velocity": 128},
	{"default_duration": 0},
	{"default_probability": 1.5},
])
def test_invalid_settings (overrides: dict) -> None:

	"""Out-of-range settings are rejected on construction."""

	with pytest.raises(ValueError):
		barbeat.config.Settings(**overrides)


def test_from_config_reads_section () -> None:

	"""Keys under barbeat: override the defaults."""

	settings = barbeat.config.Settings.from_config({"barbeat": {"repeat_warning_threshold": 256, "seed": 7}})

	assert settings.repeat_warning_threshold == 256
	assert settings.seed == 7
	assert settings.min_duration == 0.001


def test_from_config_reads_top_level () -> None:

	"""Without a barbeat: section the mapping itself holds the keys."""

	assert barbeat.config.Settings.from_config({"seed": 3}).seed == 3


def test_from_config_empty () -> None:

	"""An empty or missing config gives the defaults."""

	assert barbeat.config.Settings.from_config({}) == barbeat.config.Settings()
	assert barbeat.config.Settings.from_config(None) == barbeat.config.Settings()


def test_from_config_rejects_unknown_keys () -> None:

	"""Misspelt keys are reported rather than ignored."""

	with pytest.raises(ValueError, match="repeat_treshold"):
		barbeat.config.Settings.from_config({"barbeat": {"repeat_treshold": 5}})


def test_load_config_reads_yaml (tmp_path: pathlib.Path) -> None:

	"""YAML files load into a mapping usable by from_config."""

	path = tmp_path / "barbeat.yaml"
	path.write_text("barbeat:\n  default_velocity: 90\n  seed: 12\n")

	config = barbeat.config.load_config(str(path))
	settings = barbeat.config.Settings.from_config(config)

	assert settings.default_velocity == 90
	assert settings.seed == 12


def test_load_config_empty_file (tmp_path: pathlib.Path) -> None:

	"""An empty YAML file is an empty config."""

	path = tmp_path / "empty.yaml"
	path.write_text("")

	assert barbeat.config.load_config(str(path)) == {}


def test_load_config_missing_file (tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture) -> None:

	"""A missing file warns and falls back to defaults."""

	with caplog.at_level(logging.WARNING, logger="barbeat.config"):
		config = barbeat.config.load_config(str(tmp_path / "missing.yaml"))

	assert config == {}
	assert "not found" in caplog.text


def test_from_config_rejects_non_mapping () -> None:

	"""A config whose top level is not a mapping is a ValueError."""

	with pytest.raises(ValueError, match="must be a mapping"):
		barbeat.config.Settings.from_config(["default_velocity", 90])
