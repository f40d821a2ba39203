import logging
import random
import unittest.mock

import pytest

import conftest
import evoloop.generators
import evoloop.pattern
import evoloop.pitch_set
import evoloop.sequence_utils
import evoloop.voice


GeneratorKind = evoloop.voice.GeneratorKind
MAJOR = conftest.MAJOR

ALL_KINDS = list(GeneratorKind)


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_range_and_length_conformance (kind: GeneratorKind, make_voice) -> None:

	"""Every note is an in-range scale tone and the pattern has the voice's length."""

	scales = [MAJOR, [0, 3, 5, 7, 10], [0, 1, 6], [0]]
	shapes = [(16, 60, 48, 72), (7, 62, 55, 86), (33, 36, 30, 50), (5, 61, 40, 100)]

	for seed in range(12):
		for scale in scales:
			for length, base, low, high in shapes:

				voice = make_voice(length=length, base_note=base, pitch_range_min=low, pitch_range_max=high, density=(seed % 6) / 5)
				pattern = evoloop.generators.generate(voice, scale, random.Random(seed), kind=kind, start_offset=seed)

				assert len(pattern) == length
				conftest.assert_conforms(pattern, scale, base, low, high)


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_fill_all_scenario (kind: GeneratorKind, make_voice) -> None:

	"""C major, range 48-72, 8 steps, density 1, fill_all: every step holds a valid pitch."""

	voice = make_voice(length=8, base_note=60, pitch_range_min=48, pitch_range_max=72, density=1.0, timing="fill_all")
	pattern = evoloop.generators.generate(voice, MAJOR, random.Random(5), kind=kind)

	assert pattern.note_count == 8
	conftest.assert_conforms(pattern, MAJOR, 60, 48, 72)


@pytest.mark.parametrize("kind", ALL_KINDS)
@pytest.mark.parametrize("timing", [None, "euclidean", "even", "random", "fill_all", "bernoulli", "poisson", "geometric", "markov"])
def test_zero_density_is_silent (kind: GeneratorKind, timing, make_voice) -> None:

	voice = make_voice(density=0.0, timing=timing)
	pattern = evoloop.generators.generate(voice, MAJOR, random.Random(2), kind=kind)

	assert len(pattern) == 16
	assert pattern.is_silent()


@pytest.mark.parametrize("kind", ALL_KINDS)
@pytest.mark.parametrize("timing", ["euclidean", "even"])
def test_note_count_matches_density (kind: GeneratorKind, timing: str, make_voice) -> None:

	for length in (5, 7, 12, 16, 31):
		for density in (0.1, 0.25, 0.5, 0.8):

			voice = make_voice(length=length, density=density, timing=timing, shift=False)
			pattern = evoloop.generators.generate(voice, MAJOR, random.Random(length), kind=kind)

			assert pattern.note_count == evoloop.sequence_utils.density_count(length, density)


def test_euclidean_walks_the_candidates (make_voice) -> None:

	"""Successive notes move 1-3 places forward through the candidate list (wrapping)."""

	voice = make_voice(length=16, density=0.5)
	candidates = evoloop.pitch_set.build_candidates(MAJOR, 60, 48, 72)

	for seed in range(20):

		pattern = evoloop.generators.generate_euclidean(voice, MAJOR, random.Random(seed))
		indices = [candidates.index(pattern[step]) for step in range(0, 16, 2)]

		assert pattern.active_steps() == list(range(0, 16, 2))

		for a, b in zip(indices, indices[1:]):
			assert (b - a) % len(candidates) in (1, 2, 3)


def test_random_spreads_across_range (make_voice) -> None:

	"""With fewer hits than candidates the notes are evenly spaced through the list."""

	voice = make_voice(length=16, density=0.5)
	candidates = evoloop.pitch_set.build_candidates(MAJOR, 60, 48, 72)
	expected = [candidates[(i * len(candidates)) // 8] for i in range(8)]

	for seed in range(10):

		pattern = evoloop.generators.generate_random(voice, MAJOR, random.Random(seed))
		pitches = sorted(p for p in pattern if p is not None)

		assert pitches == expected


def test_random_cycles_when_hits_outnumber_candidates (make_voice) -> None:

	voice = make_voice(length=16, pitch_range_min=60, pitch_range_max=67, density=1.0)
	pattern = evoloop.generators.generate_random(voice, MAJOR, random.Random(8))

	pitches = [p for p in pattern if p is not None]

	assert len(pitches) == 16
	assert {pitches.count(p) for p in (60, 62, 64, 65, 67)} == {3, 4}


class LeadTailStreamTests (unittest.TestCase):

	"""
	Tests for the lead-and-tail scalar stream.
	"""

	def test_documented_example (self) -> None:

		stream = evoloop.generators.lead_tail_stream([60, 62, 64, 65, 67], 10, lead_index=2, step=1, tail_length=2)

		self.assertEqual(stream, [64, 62, 60, 65, 64, 62, 67, 65, 64, 65])


	def test_tails_truncate_at_the_boundary (self) -> None:

		"""
		A tail that would run off the list stops instead of bouncing.
		"""

		stream = evoloop.generators.lead_tail_stream([60, 62, 64], 6, lead_index=0, step=1, tail_length=3)

		self.assertEqual(stream, [60, 62, 60, 64, 62, 60])


	def test_descending_lead_bounces (self) -> None:

		stream = evoloop.generators.lead_tail_stream([60, 62, 64, 65], 6, lead_index=1, step=-1, tail_length=0)

		self.assertEqual(stream, [62, 60, 62, 64, 65, 64])


	def test_single_candidate_is_constant (self) -> None:

		self.assertEqual(evoloop.generators.lead_tail_stream([64], 5, 0, 2, 3), [64] * 5)


	def test_zero_length (self) -> None:

		self.assertEqual(evoloop.generators.lead_tail_stream([60, 62], 0, 0, 1, 1), [])


def test_lead_tail_without_tail_moves_by_a_fixed_step (make_voice) -> None:

	"""With no tail, consecutive steps of a full loop are a constant number of candidates apart."""

	voice = make_voice(length=24, density=1.0, timing="fill_all", tail_length=0, shift=False)
	candidates = evoloop.pitch_set.build_candidates(MAJOR, 60, 48, 72)

	for seed in range(10):

		pattern = evoloop.generators.generate_lead_tail(voice, MAJOR, random.Random(seed))
		indices = [candidates.index(p) for p in pattern]
		gaps = {abs(b - a) for a, b in zip(indices, indices[1:])}

		assert len(gaps) == 1
		assert gaps <= {1, 2}


def test_lead_tail_direction_up (make_voice) -> None:

	"""An upward lead with no tail starts by climbing."""

	voice = make_voice(length=4, density=1.0, timing="fill_all", tail_length=0, shift=False, direction="up", pitch_range_min=36, pitch_range_max=96)

	for seed in range(10):

		pattern = evoloop.generators.generate_lead_tail(voice, MAJOR, random.Random(seed))

		if pattern[0] < 90:
			assert pattern[1] > pattern[0]


class ChooseGeneratorTests (unittest.TestCase):

	"""
	Tests for the weighted generator draw.
	"""

	def test_single_weight_always_wins (self) -> None:

		rng = random.Random(1)

		for _ in range(100):
			self.assertEqual(evoloop.generators.choose_generator({GeneratorKind.LEAD_TAIL: 0.2}, rng), GeneratorKind.LEAD_TAIL)


	def test_all_zero_weights_fall_back_to_uniform (self) -> None:

		rng = random.Random(2)
		zero = {kind: 0.0 for kind in GeneratorKind}

		picks = [evoloop.generators.choose_generator(zero, rng) for _ in range(300)]

		self.assertEqual(set(picks), set(GeneratorKind))
		self.assertEqual(set(evoloop.generators.choose_generator({}, rng) for _ in range(300)), set(GeneratorKind))


	def test_weights_are_relative (self) -> None:

		rng = random.Random(3)
		weights = {GeneratorKind.EUCLIDEAN: 30, GeneratorKind.RANDOM: 10}

		picks = [evoloop.generators.choose_generator(weights, rng) for _ in range(4000)]

		self.assertNotIn(GeneratorKind.LEAD_TAIL, picks)
		self.assertAlmostEqual(picks.count(GeneratorKind.EUCLIDEAN) / 4000, 0.75, delta=0.04)


def test_generate_dispatches_by_kind (make_voice) -> None:

	fake = unittest.mock.MagicMock(return_value=evoloop.pattern.Pattern.rests(16))

	with unittest.mock.patch.dict(evoloop.generators.GENERATORS, {GeneratorKind.RANDOM: fake}):
		evoloop.generators.generate(make_voice(), MAJOR, random.Random(1), kind="random", start_offset=3)

	fake.assert_called_once()
	assert fake.call_args.args[3] == 3


def test_generate_accepts_scale_names (make_voice) -> None:

	voice = make_voice(base_note=57, pitch_range_min=45, pitch_range_max=81)
	pattern = evoloop.generators.generate(voice, "minor_pentatonic", random.Random(4))

	conftest.assert_conforms(pattern, [0, 3, 5, 7, 10], 57, 45, 81)


def test_generate_is_deterministic (make_voice) -> None:

	voice = make_voice()

	a = evoloop.generators.generate(voice, MAJOR, random.Random(77))
	b = evoloop.generators.generate(voice, MAJOR, random.Random(77))

	assert a == b


def test_invalid_config_returns_rests (make_voice, caplog: pytest.LogCaptureFixture) -> None:

	"""A bad voice aborts generation with an error log and an all-rest pattern."""

	voice = make_voice(length=8, pitch_range_min=80, pitch_range_max=60)

	with caplog.at_level(logging.ERROR, logger="evoloop.generators"):
		pattern = evoloop.generators.generate(voice, MAJOR, random.Random(1))

	assert pattern.slots == [None] * 8
	assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_invalid_length_returns_empty_pattern (make_voice) -> None:

	pattern = evoloop.generators.generate(make_voice(length=0), MAJOR, random.Random(1))

	assert len(pattern) == 0


def test_missing_scale_returns_rests (make_voice, caplog: pytest.LogCaptureFixture) -> None:

	with caplog.at_level(logging.ERROR, logger="evoloop.generators"):
		pattern = evoloop.generators.generate(make_voice(length=4), [], random.Random(1))

	assert pattern.slots == [None] * 4
	assert caplog.records


def test_empty_candidates_return_rests (make_voice, caplog: pytest.LogCaptureFixture) -> None:

	"""A range between scale tones emits rests and a warning rather than failing."""

	voice = make_voice(length=6, base_note=60, pitch_range_min=61, pitch_range_max=70, density=1.0)

	with caplog.at_level(logging.WARNING, logger="evoloop.generators"):
		pattern = evoloop.generators.generate(voice, [0], random.Random(1))

	assert pattern.slots == [None] * 6
	assert any(record.levelno == logging.WARNING for record in caplog.records)


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_vanishing_geometric_density_gives_rests (kind: GeneratorKind, make_voice) -> None:

	voice = make_voice(density=1e-17, timing="geometric")
	pattern = evoloop.generators.generate(voice, MAJOR, random.Random(1), kind=kind)

	assert pattern.slots == [None] * 16
