import logging
import os
import pathlib

import pytest

import evoloop.__main__
import evoloop.voice


EXAMPLE_CONFIG = os.path.join(os.path.dirname(__file__), "..", "examples", "config.yaml")


def test_load_config_missing_file_warns (tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture) -> None:

	with caplog.at_level(logging.WARNING, logger="evoloop.__main__"):
		config = evoloop.__main__.load_config(str(tmp_path / "nope.yaml"))

	assert config == {}
	assert "not found" in caplog.text


def test_load_config_reads_yaml (tmp_path: pathlib.Path) -> None:

	path = tmp_path / "config.yaml"
	path.write_text("scale: dorian\nvoices:\n  bass:\n    length: 8\n")

	assert evoloop.__main__.load_config(str(path)) == {"scale": "dorian", "voices": {"bass": {"length": 8}}}


def test_load_config_empty_file (tmp_path: pathlib.Path) -> None:

	path = tmp_path / "empty.yaml"
	path.write_text("")

	assert evoloop.__main__.load_config(str(path)) == {}


def test_build_engine_defaults () -> None:

	"""An empty config gives the default voices in C major."""

	engine = evoloop.__main__.build_engine({})

	assert set(engine.voices) == set(evoloop.__main__.DEFAULT_VOICES)
	assert engine.scale == [0, 2, 4, 5, 7, 9, 11]
	assert engine.voices["lead"].generation_mode == evoloop.voice.GenerationMode.LOCKED


def test_build_engine_from_mapping () -> None:

	config = {
		"scale": [0, 3, 7],
		"seed": 3,
		"engine": {"counterpoint": False, "mutation": {"remove_probability": 0.5}},
		"voices": {"pad": {"length": 6, "timing": "even"}},
	}

	engine = evoloop.__main__.build_engine(config)

	assert engine.scale == [0, 3, 7]
	assert engine.settings.seed == 3
	assert not engine.settings.counterpoint
	assert engine.settings.mutation.remove_probability == 0.5
	assert engine.voices["pad"].length == 6


def test_build_engine_rejects_unknown_keys () -> None:

	with pytest.raises(evoloop.voice.ConfigurationError):
		evoloop.__main__.build_engine({"voices": {"pad": {"lenght": 6}}})

	with pytest.raises(evoloop.voice.ConfigurationError):
		evoloop.__main__.build_engine({"engine": {"tempo": 120}})


def test_example_config_builds () -> None:

	engine = evoloop.__main__.build_engine(evoloop.__main__.load_config(EXAMPLE_CONFIG))

	assert set(engine.voices) == {"bass", "arp", "lead"}


def test_main_runs_ticks (tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture) -> None:

	path = tmp_path / "config.yaml"
	path.write_text("seed: 1\nticks: 2\nvoices:\n  a:\n    length: 4\n    density: 1.0\n")

	with caplog.at_level(logging.INFO):
		evoloop.__main__.main([str(path)])

	assert "Tick 2" in caplog.text
	assert "Tick 3" not in caplog.text


def test_main_without_config_uses_defaults (tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture) -> None:

	with caplog.at_level(logging.INFO):
		evoloop.__main__.main([str(tmp_path / "missing.yaml")])

	assert "Tick 8" in caplog.text
	assert "bass" in caplog.text
