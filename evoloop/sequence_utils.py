import math
import random
import typing

T = typing.TypeVar("T")


def round_half_up (value: float) -> int:

	"""
	Round to the nearest integer with halves rounding up (2.5 -> 3, not 2).
	"""

	return int(math.floor(value + 0.5))


def density_count (length: int, density: float) -> int:

	"""Number of active steps a density asks for on a loop of ``length`` steps."""

	return round_half_up(length * clamp_unit(density))


def clamp_unit (value: float) -> float:

	"""Clamp to [0, 1]. NaN is treated as 0."""

	if value != value:
		return 0.0

	return max(0.0, min(1.0, float(value)))


def generate_modulo_sequence (steps: int, pulses: int) -> typing.List[int]:

	"""
	Generate an evenly distributed binary rhythm using the modulo rule.

	Step ``i`` is a hit iff ``(i * pulses) % steps < pulses``. This always puts
	a hit on step 0 and spreads the rest as evenly as integer steps allow -
	the same distributions as Bjorklund's algorithm, up to rotation.

	Example:
		```python
		generate_modulo_sequence(8, 3)  # [1, 0, 0, 1, 0, 0, 1, 0]
		```
	"""

	if steps <= 0 or pulses <= 0:
		return [0] * max(0, steps)

	if pulses >= steps:
		return [1] * steps

	return [1 if (i * pulses) % steps < pulses else 0 for i in range(steps)]


def sequence_to_indices (sequence: typing.Sequence[int]) -> typing.List[int]:

	"""Indices of the non-zero entries of a 0/1 step sequence."""

	return [i for i, v in enumerate(sequence) if v]


def roll (indices: typing.Iterable[int], shift: int, length: int) -> typing.List[int]:

	"""Rotate step indices by ``shift`` around a loop of ``length`` steps."""

	return [(i + shift) % length for i in indices]


def weighted_choice (options: typing.Sequence[typing.Tuple[T, float]], rng: random.Random) -> T:

	"""Draw one value from ``(value, weight)`` pairs.

	Weights are relative and need not sum to 1.0. A zero-weight value is never
	drawn.

	Parameters:
		options: ``(value, weight)`` pairs
		rng: Random number generator instance
	"""

	if not options:
		raise ValueError("Cannot choose from an empty list of options")

	total = sum(weight for _, weight in options)

	if total <= 0:
		raise ValueError(f"Weights must add up to more than zero, got {total}")

	threshold = rng.random() * total
	running = 0.0

	for value, weight in options:

		running += weight

		if weight > 0 and running > threshold:
			return value

	# Rounding can leave the threshold just past the final sum.
	return [value for value, weight in options if weight > 0][-1]


def probability_gate (sequence: typing.Sequence[int], probability: float, rng: random.Random) -> typing.List[int]:

	"""Keep each hit of a 0/1 sequence with chance ``probability``; rests stay rests.

	Example:
		```python
		# independent coin flips on every step of a 16-step loop
		hits = evoloop.sequence_utils.probability_gate([1] * 16, 0.25, rng)
		```
	"""

	return [value if value and rng.random() < probability else 0 for value in sequence]
