"""Active-step selection - which steps of a loop carry a note.

:func:`select_positions` turns a step count and a density into a list of
distinct step indices under one of several timing models. The order of the
returned list is meaningful: generators place pitches in that order, so a
rotated Euclidean rhythm starts its melodic walk at the rotation point and a
``fill_all`` sweep follows the boustrophedon path.

Timing models:

- ``euclidean`` - maximally even spread of ``round(length * density)`` hits.
- ``even`` - ``floor(i * length / count)`` spacing.
- ``random`` - uniform sample without replacement.
- ``fill_all`` - every step, swept up from ``start_offset`` then back down.
- ``bernoulli`` - independent coin flip per step.
- ``poisson`` - continuous exponential gaps (rate = density per step).
- ``geometric`` - integer geometric gaps.
- ``markov`` - two-state rest/hit chain; burstier than coin flips.
"""

import enum
import logging
import math
import random
import typing

import evoloop.markov_chain
import evoloop.sequence_utils


logger = logging.getLogger(__name__)


class TimingMode (str, enum.Enum):

	"""How active steps are chosen."""

	EUCLIDEAN = "euclidean"
	EVEN = "even"
	RANDOM = "random"
	FILL_ALL = "fill_all"
	BERNOULLI = "bernoulli"
	POISSON = "poisson"
	GEOMETRIC = "geometric"
	MARKOV = "markov"


COUNT_MODES = (TimingMode.EUCLIDEAN, TimingMode.EVEN, TimingMode.RANDOM)


def select_positions (
	length: int,
	density: float,
	mode: typing.Union[TimingMode, str] = TimingMode.EUCLIDEAN,
	start_offset: int = 0,
	jitter: int = 0,
	allow_zero: bool = True,
	rng: typing.Optional[random.Random] = None
) -> typing.List[int]:

	"""Choose the active steps of a loop.

	Parameters:
		length: Number of steps in the loop. ``length <= 0`` returns ``[]``.
		density: Fraction of steps to activate, clamped to 0.0-1.0.
		mode: A :class:`TimingMode` (or its string value).
		start_offset: Phase rotation applied to every index; for ``fill_all``
			it is the starting point of the sweep.
		jitter: Euclidean mode only - nudge each hit by up to +/- ``jitter``
			steps. The hit count is preserved.
		allow_zero: When False, density 0 still yields one step (count modes
			round up to 1, stochastic modes fall back to ``start_offset``).
		rng: Random number generator instance.

	Returns:
		Distinct indices in ``[0, length)``, in placement order.

	Example:
		```python
		select_positions(8, 0.5, "euclidean")                  # [0, 2, 4, 6]
		select_positions(8, 0.5, "euclidean", start_offset=1)  # [1, 3, 5, 7]
		select_positions(5, 1.0, "fill_all", start_offset=2)   # [2, 3, 4, 1, 0]
		```
	"""

	if length <= 0:
		return []

	mode = TimingMode(mode)
	rng = rng or random.Random()
	density = evoloop.sequence_utils.clamp_unit(density)
	start = start_offset % length

	if mode == TimingMode.FILL_ALL:

		# An explicit request for silence wins over full coverage.
		if density <= 0 and allow_zero:
			return []

		return _boustrophedon(length, start)

	if mode in COUNT_MODES:

		count = evoloop.sequence_utils.density_count(length, density)

		if not allow_zero:
			count = max(1, count)

		if count <= 0:
			return []

		if mode == TimingMode.EVEN:
			raw = [(i * length) // count for i in range(count)]

		elif mode == TimingMode.RANDOM:
			raw = sorted(rng.sample(range(length), min(count, length)))

		else:
			sequence = evoloop.sequence_utils.generate_modulo_sequence(length, count)
			raw = evoloop.sequence_utils.sequence_to_indices(sequence)

		positions = evoloop.sequence_utils.roll(raw, start, length)

		if mode == TimingMode.EUCLIDEAN and jitter > 0:
			positions = _apply_jitter(positions, length, jitter, rng)

		return positions

	if mode == TimingMode.BERNOULLI:
		raw = evoloop.sequence_utils.sequence_to_indices(
			evoloop.sequence_utils.probability_gate([1] * length, density, rng)
		)

	elif mode == TimingMode.POISSON:
		raw = _poisson_indices(length, density, rng)

	elif mode == TimingMode.GEOMETRIC:
		raw = _geometric_indices(length, density, rng)

	else:
		raw = _markov_indices(length, density, rng)

	positions = evoloop.sequence_utils.roll(raw, start, length)

	if not positions and not allow_zero:
		logger.debug(f"{mode.value} timing produced no steps, falling back to step {start}")
		return [start]

	return positions


def _boustrophedon (length: int, start: int) -> typing.List[int]:

	"""Sweep up from ``start`` to the end, then back down from ``start - 1`` to 0."""

	return list(range(start, length)) + list(range(start - 1, -1, -1))


def _apply_jitter (positions: typing.List[int], length: int, jitter: int, rng: random.Random) -> typing.List[int]:

	"""Nudge each index by up to +/- ``jitter`` steps without merging hits."""

	taken: typing.Set[int] = set()
	result: typing.List[int] = []

	for index, original in enumerate(positions):

		candidate = (original + rng.randint(-jitter, jitter)) % length

		if candidate in taken:
			candidate = original

		# Hits that have not been placed yet keep their claim on their own step.
		pending = set(positions[index + 1:])

		while candidate in taken or (candidate != original and candidate in pending):
			candidate = (candidate + 1) % length

		taken.add(candidate)
		result.append(candidate)

	return result


def _poisson_indices (length: int, density: float, rng: random.Random) -> typing.List[int]:

	"""Arrival times of a Poisson process with ``density`` events per step, floored to steps."""

	if density <= 0:
		return []

	indices: typing.List[int] = []
	cursor = rng.expovariate(density)

	while cursor < length:

		index = int(cursor)

		# Several arrivals inside one step still make a single hit.
		if not indices or indices[-1] != index:
			indices.append(index)

		cursor += rng.expovariate(density)

	return indices


def _geometric_indices (length: int, density: float, rng: random.Random) -> typing.List[int]:

	"""Accumulate geometric gaps (success probability ``density``, gap >= 1) from step -1."""

	if density <= 0:
		return []

	if density >= 1:
		return list(range(length))

	# log1p keeps tiny densities distinguishable from zero; at 0.0 no hit can ever land.
	denominator = math.log1p(-density)

	if denominator == 0.0:
		return []

	indices: typing.List[int] = []
	index = -1

	while True:

		# Inverse-CDF sample, kept as a float (it may be huge) until it is known to land inside the loop.
		gap = 1.0 + math.log(1.0 - rng.random()) / denominator

		if index + gap >= length:
			return indices

		index += int(gap)
		indices.append(index)


def _markov_indices (length: int, density: float, rng: random.Random) -> typing.List[int]:

	"""Hits from a two-state rest/hit Markov chain walked once per step."""

	if density <= 0:
		return []

	if density >= 1:
		return list(range(length))

	chain = evoloop.markov_chain.rhythm_chain(density, rng)
	states = chain.walk(length)

	return [i for i, state in enumerate(states) if state == evoloop.markov_chain.HIT]
