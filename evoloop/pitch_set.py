"""Candidate pitches - every scale tone a voice may play.

The candidate set is derived from ``(scale, base_note, range)`` on every call
and never stored, so a global scale change takes effect on the next
generation without any cache invalidation.
"""

import bisect
import typing

import evoloop.intervals


class EmptyCandidateSet (Exception):

	"""No scale tone falls inside the requested pitch range."""

	def __init__ (self, scale: typing.Sequence[int], base_note: int, low: int, high: int) -> None:

		super().__init__(f"No pitches of scale {list(scale)} (base {base_note}) fall inside {low}..{high}")

		self.scale = list(scale)
		self.base_note = base_note
		self.low = low
		self.high = high


def build_candidates (scale: typing.Sequence[int], base_note: int, low: int, high: int) -> typing.List[int]:

	"""Return every scale-conformant pitch in ``[low, high]``, sorted ascending.

	Only the octaves that can intersect the range are visited:
	``floor((low - base) / 12)`` to ``floor((high - base) / 12)``.

	Example:
		```python
		build_candidates([0, 4, 7], 60, 55, 67)  # [55, 60, 64, 67]
		```
	"""

	if low > high:
		return []

	min_octave = (low - base_note) // 12
	max_octave = (high - base_note) // 12

	pitches = {
		base_note + interval + 12 * octave
		for octave in range(min_octave, max_octave + 1)
		for interval in scale
	}

	return sorted(p for p in pitches if low <= p <= high)


def require_candidates (scale: typing.Sequence[int], base_note: int, low: int, high: int) -> typing.List[int]:

	"""Like :func:`build_candidates` but raise :class:`EmptyCandidateSet` when nothing fits."""

	candidates = build_candidates(scale, base_note, low, high)

	if not candidates:
		raise EmptyCandidateSet(scale, base_note, low, high)

	return candidates


def nearest_index (candidates: typing.Sequence[int], pitch: int) -> int:

	"""Index of the candidate closest to ``pitch`` (the lower one on a tie)."""

	if not candidates:
		raise ValueError("Candidates cannot be empty")

	position = bisect.bisect_left(candidates, pitch)

	if position == 0:
		return 0

	if position == len(candidates):
		return len(candidates) - 1

	if pitch - candidates[position - 1] <= candidates[position] - pitch:
		return position - 1

	return position


def fold_into_range (pitch: int, low: int, high: int) -> typing.Optional[int]:

	"""Shift a pitch by whole octaves until it lies in ``[low, high]``.

	The pitch class is preserved. Returns ``None`` when the range is too narrow
	to hold that pitch class at all.
	"""

	if low > high:
		return None

	while pitch > high:
		pitch -= 12

	while pitch < low:
		pitch += 12

	return pitch if pitch <= high else None


def contains (pitch: int, scale: typing.Sequence[int], base_note: int) -> bool:

	"""True if ``pitch`` is scale-conformant for ``(scale, base_note)``."""

	return evoloop.intervals.in_scale(pitch, scale, base_note)
