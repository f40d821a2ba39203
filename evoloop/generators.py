"""Pattern generators - one full loop of pitches and rests per call.

Three interchangeable strategies share the signature
``(voice, scale, rng, start_offset) -> Pattern``:

- **Euclidean** walks a cursor up the sorted candidate list by 1-3 places per
  hit, giving smooth, quasi-melodic contours on an even rhythm.
- **Random** spreads the hits across the whole candidate range, so every
  register gets used instead of clustering.
- **Lead-tail** builds a dense scalar stream - a bouncing "lead" pointer with
  a trailing run behind each lead note - and lets density decide only which
  of those notes are heard.

:func:`choose_generator` makes the weighted draw between them and
:func:`generate` is the validated entry point used by the engine.
"""

import logging
import random
import typing

import evoloop.intervals
import evoloop.pattern
import evoloop.pitch_set
import evoloop.positions
import evoloop.sequence_utils
import evoloop.voice


logger = logging.getLogger(__name__)

GeneratorKind = evoloop.voice.GeneratorKind
TimingMode = evoloop.positions.TimingMode

GeneratorFn = typing.Callable[
	[evoloop.voice.VoiceConfig, typing.Sequence[int], random.Random, int],
	evoloop.pattern.Pattern
]

MAX_CURSOR_STEP = 3
MAX_LEAD_STEP = 2


def _candidates (voice: evoloop.voice.VoiceConfig, scale: typing.Sequence[int]) -> typing.List[int]:

	return evoloop.pitch_set.require_candidates(scale, voice.base_note, voice.pitch_range_min, voice.pitch_range_max)


def _positions (voice: evoloop.voice.VoiceConfig, default_timing: TimingMode, start_offset: int, rng: random.Random) -> typing.List[int]:

	return evoloop.positions.select_positions(
		length = voice.length,
		density = voice.density,
		mode = voice.timing or default_timing,
		start_offset = start_offset,
		jitter = voice.jitter,
		allow_zero = True,
		rng = rng
	)


def generate_euclidean (
	voice: evoloop.voice.VoiceConfig,
	scale: typing.Sequence[int],
	rng: random.Random,
	start_offset: int = 0
) -> evoloop.pattern.Pattern:

	"""
	Place pitches on an even rhythm, stepping a cursor 1-3 candidates forward per hit.
	"""

	candidates = _candidates(voice, scale)
	positions = _positions(voice, TimingMode.EUCLIDEAN, start_offset, rng)
	pattern = evoloop.pattern.Pattern.rests(voice.length)

	cursor = rng.randrange(len(candidates))

	for position in positions:
		pattern[position] = candidates[cursor]
		cursor = (cursor + rng.randint(1, MAX_CURSOR_STEP)) % len(candidates)

	logger.debug(f"euclidean: steps={voice.length} pulses={len(positions)} range={voice.pitch_range_min}..{voice.pitch_range_max}")

	return pattern


def generate_random (
	voice: evoloop.voice.VoiceConfig,
	scale: typing.Sequence[int],
	rng: random.Random,
	start_offset: int = 0
) -> evoloop.pattern.Pattern:

	"""Scatter pitches chosen to cover the whole candidate range.

	With no more hits than candidates, the pitches are evenly spaced across the
	sorted candidate list; with more hits, the list is cycled. The order in
	which they are dealt onto the hits is shuffled.
	"""

	candidates = _candidates(voice, scale)
	positions = _positions(voice, TimingMode.RANDOM, start_offset, rng)
	count = len(positions)
	n = len(candidates)

	if count <= n:
		pitches = [candidates[(i * n) // max(1, count)] for i in range(count)]
	else:
		pitches = [candidates[i % n] for i in range(count)]

	rng.shuffle(pitches)

	pattern = evoloop.pattern.Pattern.rests(voice.length)

	for position, pitch in zip(positions, pitches):
		pattern[position] = pitch

	logger.debug(f"random: steps={voice.length} notes={count} range={voice.pitch_range_min}..{voice.pitch_range_max}")

	return pattern


def lead_tail_stream (
	candidates: typing.Sequence[int],
	length: int,
	lead_index: int,
	step: int,
	tail_length: int
) -> typing.List[int]:

	"""Build the dense scalar stream behind the lead-tail generator.

	The lead moves ``step`` places through ``candidates`` each group, reversing
	when it would leave the list. After each lead note, up to ``tail_length``
	notes follow at ``lead - step * k``; a tail stops at the list boundary
	rather than bouncing.

	Example:
		```python
		lead_tail_stream([60, 62, 64, 65, 67], 10, lead_index=2, step=1, tail_length=2)
		# [64, 62, 60, 65, 64, 62, 67, 65, 64, 65]
		```
	"""

	if length <= 0:
		return []

	if len(candidates) == 1:
		return [candidates[0]] * length

	stream: typing.List[int] = []
	lead = lead_index
	last = len(candidates) - 1

	while len(stream) < length:

		stream.append(candidates[lead])

		for k in range(1, tail_length + 1):

			if len(stream) >= length:
				break

			tail = lead - step * k

			if tail < 0 or tail > last:
				break

			stream.append(candidates[tail])

		next_lead = lead + step

		if next_lead < 0 or next_lead > last:
			step = -step
			next_lead = max(0, min(last, lead + step))

		lead = next_lead

	return stream


def generate_lead_tail (
	voice: evoloop.voice.VoiceConfig,
	scale: typing.Sequence[int],
	rng: random.Random,
	start_offset: int = 0
) -> evoloop.pattern.Pattern:

	"""
	Sample a bouncing lead-and-tail scalar stream at the selected positions.

	Step size, direction, tail length and start note are drawn once per call.
	The stream always covers the full loop; density only decides which of its
	notes are audible. When ``voice.shift`` is set, the result is rotated by a
	random amount so its phase is independent of the global step clock.
	"""

	candidates = _candidates(voice, scale)

	if voice.tail_length is not None:
		tail_length = min(voice.tail_length, voice.max_tail)
	else:
		tail_length = rng.randint(0, voice.max_tail)

	direction = voice.direction or rng.choice(("up", "down"))
	step = rng.randint(1, MAX_LEAD_STEP) * (1 if direction == "up" else -1)
	lead_index = rng.randrange(len(candidates))

	stream = lead_tail_stream(candidates, voice.length, lead_index, step, tail_length)
	positions = _positions(voice, TimingMode.RANDOM, start_offset, rng)

	pattern = evoloop.pattern.Pattern.rests(voice.length)

	for position in positions:
		pattern[position] = stream[position]

	shift = rng.randrange(voice.length) if voice.shift else 0

	logger.debug(
		f"lead_tail: lead={evoloop.intervals.note_name(candidates[lead_index])} step={step} "
		f"tail={tail_length} placements={len(positions)} shift={shift}"
	)

	return pattern.rotated(shift) if shift else pattern


GENERATORS: typing.Dict[GeneratorKind, GeneratorFn] = {
	GeneratorKind.EUCLIDEAN: generate_euclidean,
	GeneratorKind.RANDOM: generate_random,
	GeneratorKind.LEAD_TAIL: generate_lead_tail,
}


def choose_generator (weights: typing.Mapping[GeneratorKind, float], rng: random.Random) -> GeneratorKind:

	"""Draw a generator from relative weights.

	Missing kinds count as weight 0. If every weight is 0 the three generators
	are equally likely.

	Example:
		```python
		choose_generator({GeneratorKind.EUCLIDEAN: 3, GeneratorKind.RANDOM: 1}, rng)
		```
	"""

	options = [(kind, max(0.0, float(weights.get(kind, 0.0)))) for kind in GeneratorKind]

	if sum(weight for _, weight in options) <= 0:
		return rng.choice(list(GeneratorKind))

	return evoloop.sequence_utils.weighted_choice(options, rng)


def generate (
	voice: evoloop.voice.VoiceConfig,
	scale: evoloop.intervals.ScaleLike,
	rng: typing.Optional[random.Random] = None,
	kind: typing.Optional[GeneratorKind] = None,
	start_offset: int = 0
) -> evoloop.pattern.Pattern:

	"""Generate one loop for a voice.

	Parameters:
		voice: The voice's configuration.
		scale: Scale intervals or a registered scale name.
		rng: Random number generator instance.
		kind: Force a generator; ``None`` draws one from ``voice.pattern_weights``.
		start_offset: Phase for position selection.

	Never raises for a bad config or an empty pitch range: a configuration
	problem is logged as an error and an empty candidate set as a warning, and
	in both cases an all-rest pattern comes back.
	"""

	rng = rng or random.Random()

	try:
		voice.validate()
		intervals = evoloop.voice.validate_scale(scale)

	except evoloop.voice.ConfigurationError as exc:
		logger.error(f"Generation aborted: {exc}")
		length = voice.length if isinstance(voice.length, int) and voice.length > 0 else 0
		return evoloop.pattern.Pattern.rests(min(length, evoloop.voice.MAX_LENGTH))

	if kind is None:
		kind = choose_generator(voice.pattern_weights, rng)

	try:
		pattern = GENERATORS[GeneratorKind(kind)](voice, intervals, rng, start_offset)

	except evoloop.pitch_set.EmptyCandidateSet as exc:
		logger.warning(f"{exc} - emitting rests")
		return evoloop.pattern.Pattern.rests(voice.length)

	logger.debug(f"{GeneratorKind(kind).value}: {pattern.format()}")

	return pattern
