"""Counterpoint - keep simultaneous voices off each other's pitches.

Two voices sounding the same pitch on the same step collapse into one note.
:func:`resolve` moves each colliding note of a proposed pattern to the nearest
free scale tone in the voice's range. When every candidate is taken the
collision is tolerated and the note is kept, never silenced.

Voices of different lengths are compared index by index. Steps beyond the end
of the shorter pattern have nothing to collide with.
"""

import bisect
import dataclasses
import logging
import typing

import evoloop.intervals
import evoloop.pattern
import evoloop.pitch_set
import evoloop.voice


logger = logging.getLogger(__name__)

VoiceId = typing.Hashable


@dataclasses.dataclass(frozen=True)
class Conflict:

	"""One shared pitch: ``pitch`` at ``step`` is also held by ``voice_id``."""

	step: int
	pitch: int
	voice_id: VoiceId


def occupied_pitches (patterns: typing.Iterable[evoloop.pattern.Pattern], step: int) -> typing.Set[int]:

	"""Pitches held at ``step`` by any of ``patterns``. Patterns shorter than ``step + 1`` are skipped."""

	return {
		pattern[step]
		for pattern in patterns
		if step < len(pattern) and pattern[step] is not None
	}


def avoid_conflict (pitch: int, occupied: typing.AbstractSet[int], candidates: typing.Sequence[int]) -> int:

	"""Return ``pitch`` if it is free, else the nearest free candidate.

	The search walks outward through the sorted candidates from ``pitch``. The
	nearest free candidate in semitones wins and ties go to the lower one. If
	every candidate is occupied the original pitch is returned.

	Example:
		```python
		avoid_conflict(64, {64}, [60, 62, 64, 65, 67])      # 65
		avoid_conflict(64, {64, 65}, [60, 62, 64, 65, 67])  # 62
		```
	"""

	if pitch not in occupied:
		return pitch

	position = bisect.bisect_left(candidates, pitch)

	below = next((c for c in reversed(candidates[:position]) if c not in occupied), None)
	above = next((c for c in candidates[position:] if c not in occupied), None)

	if below is None and above is None:
		return pitch

	if above is None:
		return below

	if below is None:
		return above

	return below if pitch - below <= above - pitch else above


def resolve (
	voice_id: VoiceId,
	proposed: evoloop.pattern.Pattern,
	others: typing.Mapping[VoiceId, evoloop.pattern.Pattern],
	voice: evoloop.voice.VoiceConfig,
	scale: evoloop.intervals.ScaleLike
) -> evoloop.pattern.Pattern:

	"""Return a copy of ``proposed`` with every collision moved to a free pitch.

	Parameters:
		voice_id: The voice being resolved. Its own entry in ``others`` is ignored.
		proposed: The voice's new pattern (left untouched).
		others: Patterns of the other sounding voices, by voice id.
		voice: The voice's configuration (range and base note).
		scale: Scale intervals or a registered scale name.
	"""

	result = proposed.copy()
	competitors = [pattern for other_id, pattern in others.items() if other_id != voice_id]

	if not competitors:
		return result

	intervals = evoloop.voice.validate_scale(scale)
	candidates = evoloop.pitch_set.build_candidates(intervals, voice.base_note, voice.pitch_range_min, voice.pitch_range_max)
	moved = 0

	for step in result.active_steps():

		pitch = result[step]
		replacement = avoid_conflict(pitch, occupied_pitches(competitors, step), candidates)

		if replacement != pitch:
			result[step] = replacement
			moved += 1

	if moved:
		logger.debug(f"counterpoint: voice {voice_id} moved {moved} note(s) off occupied pitches")

	return result


def find_conflicts (
	proposed: evoloop.pattern.Pattern,
	others: typing.Mapping[VoiceId, evoloop.pattern.Pattern]
) -> typing.List[Conflict]:

	"""
	List every step where ``proposed`` shares a pitch with another voice.
	"""

	conflicts: typing.List[Conflict] = []

	for step in proposed.active_steps():

		for other_id, pattern in others.items():

			if step < len(pattern) and pattern[step] == proposed[step]:
				conflicts.append(Conflict(step=step, pitch=proposed[step], voice_id=other_id))

	return conflicts
