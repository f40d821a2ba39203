"""Scale definitions and scale-degree arithmetic.

A scale is a list of pitch-class offsets (0-11) from a voice's base note.
Every generator, mutation and resolver call receives the scale explicitly, so
this module keeps no "current scale" of its own - only the named registry.

Example:
	```python
	import evoloop.intervals

	major = evoloop.intervals.get_intervals("major")            # [0, 2, 4, 5, 7, 9, 11]
	evoloop.intervals.degree_step(64, 2, major, base_note=60)   # 67 (E4 -> G4)
	```
"""

import bisect
import typing


ScaleLike = typing.Union[str, typing.Sequence[int]]


SCALE_DEFINITIONS: typing.Dict[str, typing.List[int]] = {
	"major": [0, 2, 4, 5, 7, 9, 11],
	"minor": [0, 2, 3, 5, 7, 8, 10],
	"dorian": [0, 2, 3, 5, 7, 9, 10],
	"phrygian": [0, 1, 3, 5, 7, 8, 10],
	"lydian": [0, 2, 4, 6, 7, 9, 11],
	"mixolydian": [0, 2, 4, 5, 7, 9, 10],
	"locrian": [0, 1, 3, 5, 6, 8, 10],
	"harmonic_minor": [0, 2, 3, 5, 7, 8, 11],
	"melodic_minor": [0, 2, 3, 5, 7, 9, 11],
	"major_pentatonic": [0, 2, 4, 7, 9],
	"minor_pentatonic": [0, 3, 5, 7, 10],
	"blues": [0, 3, 5, 6, 7, 10],
	"major_blues": [0, 2, 3, 4, 7, 9],
	"whole_tone": [0, 2, 4, 6, 8, 10],
	"diminished": [0, 1, 3, 4, 6, 7, 9, 10],
	"acoustic": [0, 2, 4, 6, 7, 9, 10],
	"altered": [0, 1, 3, 4, 6, 8, 10],
	"hirajoshi": [0, 2, 3, 7, 8],
	"kumoi": [0, 2, 3, 7, 9],
	"pelog": [0, 1, 3, 7, 8],
	"chromatic": [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
	"augmented": [0, 3, 4, 7, 8, 11],
	"bebop": [0, 2, 4, 5, 7, 9, 10, 11],
}


PC_TO_NOTE_NAME: typing.List[str] = [
	"C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B",
]


def get_intervals (name: str) -> typing.List[int]:

	"""
	Return a named scale from the registry.
	"""

	if name not in SCALE_DEFINITIONS:
		raise ValueError(f"Unknown scale: {name!r}. Available: {sorted(SCALE_DEFINITIONS)}")

	return list(SCALE_DEFINITIONS[name])


def register_scale (name: str, intervals: typing.Sequence[int]) -> None:

	"""Add (or replace) a named scale.

	The intervals are normalised with :func:`normalize_scale`, so duplicates
	and ordering do not matter.

	Example:
		```python
		evoloop.intervals.register_scale("egyptian", [0, 2, 5, 7, 10])
		```
	"""

	SCALE_DEFINITIONS[name] = normalize_scale(intervals)


def normalize_scale (scale: ScaleLike) -> typing.List[int]:

	"""Resolve a scale name or interval list into a sorted, deduplicated list.

	Raises ``ValueError`` for unknown names, empty scales, non-integer values
	and intervals outside 0-11.
	"""

	if isinstance(scale, str):
		return get_intervals(scale)

	if scale is None:
		raise ValueError("Scale is missing")

	values = list(scale)

	if not values:
		raise ValueError("Scale cannot be empty")

	for value in values:

		if isinstance(value, bool) or not isinstance(value, int):
			raise ValueError(f"Scale intervals must be integers, got {value!r}")

		if not 0 <= value <= 11:
			raise ValueError(f"Scale interval {value} is outside 0-11")

	return sorted(set(values))


def in_scale (pitch: int, scale: typing.Sequence[int], base_note: int) -> bool:

	"""Return True if the pitch's offset from the base note (mod 12) is a scale interval."""

	return (pitch - base_note) % 12 in scale


def nearest_degree (pitch: int, scale: typing.Sequence[int], base_note: int) -> typing.Tuple[int, int]:

	"""
	Locate a pitch in scale-degree space.

	Returns ``(octave, degree_index)`` such that
	``base_note + 12 * octave + scale[degree_index]`` is the scale tone nearest
	to ``pitch``. Equidistant pitches snap downward. ``scale`` must already be
	normalised.
	"""

	octave, pc = divmod(pitch - base_note, 12)

	# Wrap the scale one octave either side so the nearest tone can cross an octave boundary.
	ladder = [i - 12 for i in scale] + list(scale) + [i + 12 for i in scale]
	position = bisect.bisect_left(ladder, pc)

	best = min(
		(p for p in (position - 1, position) if 0 <= p < len(ladder)),
		key = lambda p: (abs(ladder[p] - pc), ladder[p])
	)

	n = len(scale)
	octave += best // n - 1

	return octave, best % n


def degree_step (pitch: int, degrees: int, scale: typing.Sequence[int], base_note: int) -> int:

	"""Move a pitch by a number of scale degrees (not semitones).

	The result is always scale-conformant. Out-of-scale input pitches are
	snapped to their nearest degree before moving.

	Example:
		```python
		major = [0, 2, 4, 5, 7, 9, 11]
		degree_step(71, 1, major, 60)   # 72 - B4 up one degree wraps into the next octave
		degree_step(60, -1, major, 60)  # 59
		```
	"""

	octave, index = nearest_degree(pitch, scale, base_note)
	n = len(scale)

	target = index + degrees
	octave += target // n

	return base_note + 12 * octave + scale[target % n]


def note_name (pitch: int) -> str:

	"""Return a readable name such as ``"C4"`` for a MIDI pitch (60 = C4)."""

	return f"{PC_TO_NOTE_NAME[pitch % 12]}{pitch // 12 - 1}"
