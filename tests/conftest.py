import random
import typing

import pytest

import evoloop.engine
import evoloop.voice


MAJOR = [0, 2, 4, 5, 7, 9, 11]


def assert_conforms (pattern: typing.Iterable[typing.Optional[int]], scale: typing.Sequence[int], base_note: int, low: int, high: int) -> None:

	"""Every note is a scale tone inside ``[low, high]``."""

	for pitch in pattern:

		if pitch is None:
			continue

		assert low <= pitch <= high, f"{pitch} outside {low}..{high}"
		assert (pitch - base_note) % 12 in scale, f"{pitch} not in scale {list(scale)} from {base_note}"


@pytest.fixture
def rng () -> random.Random:

	"""A seeded random number generator."""

	return random.Random(1234)


@pytest.fixture
def major () -> typing.List[int]:
	return list(MAJOR)


@pytest.fixture
def make_voice () -> typing.Callable[..., evoloop.voice.VoiceConfig]:

	"""Factory for voices with a two-octave C major range, overridable per test."""

	def _make (**fields: typing.Any) -> evoloop.voice.VoiceConfig:

		defaults: typing.Dict[str, typing.Any] = {
			"length": 16,
			"base_note": 60,
			"pitch_range_min": 48,
			"pitch_range_max": 72,
			"density": 0.5,
		}

		defaults.update(fields)

		return evoloop.voice.VoiceConfig(**defaults)

	return _make


@pytest.fixture
def engine () -> evoloop.engine.Engine:

	"""A seeded engine in C major with no voices."""

	return evoloop.engine.Engine(MAJOR, evoloop.engine.EngineSettings(seed=99))
