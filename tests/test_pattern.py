import pytest

import evoloop.pattern


Pattern = evoloop.pattern.Pattern


def test_rests () -> None:

	pattern = Pattern.rests(4)

	assert pattern.slots == [None, None, None, None]
	assert pattern.is_silent()
	assert pattern.density == 0.0


def test_slots_must_match_length () -> None:

	with pytest.raises(ValueError):
		Pattern(3, [60, None])

	with pytest.raises(ValueError):
		Pattern(-1)


def test_step_queries () -> None:

	pattern = Pattern.from_slots([60, None, 64, None])

	assert pattern.active_steps() == [0, 2]
	assert pattern.empty_steps() == [1, 3]
	assert pattern.note_count == 2
	assert pattern.density == 0.5
	assert not pattern.is_silent()
	assert len(pattern) == pattern.length == 4


def test_empty_pattern_density () -> None:

	assert Pattern.rests(0).density == 0.0


def test_copy_is_independent () -> None:

	"""Editing a copy leaves the original untouched."""

	original = Pattern.from_slots([60, 62])
	duplicate = original.copy()
	duplicate[0] = None

	assert original[0] == 60
	assert duplicate != original


def test_assign_replaces_wholesale () -> None:

	pattern = Pattern.from_slots([60, None, 62])
	pattern.assign(Pattern.from_slots([None, 64, None]))

	assert pattern.slots == [None, 64, None]

	with pytest.raises(ValueError):
		pattern.assign(Pattern.rests(2))


def test_rotated () -> None:

	"""Positive shifts move notes later in the loop, negative shifts earlier."""

	pattern = Pattern.from_slots([60, None, 62, None])

	assert pattern.rotated(1).slots == [None, 60, None, 62]
	assert pattern.rotated(-1).slots == [None, 62, None, 60]
	assert pattern.rotated(4) == pattern
	assert Pattern.rests(0).rotated(3).slots == []


def test_reversed () -> None:

	assert Pattern.from_slots([60, None, 62]).reversed().slots == [62, None, 60]


def test_format () -> None:

	assert Pattern.from_slots([60, None, 62]).format().split() == ["C4", ".", "D4"]


def test_equality_with_other_types () -> None:

	assert Pattern.from_slots([60]) != [60]
