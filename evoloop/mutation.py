"""Mutation and evolution of existing patterns.

A mutation pass makes a handful of local edits to a pattern in place: it fills
empty steps, clears occupied ones, moves pitches by scale degrees and now and
then shifts the whole loop. The number of edits grows with ``intensity``.
Every public edit ends with :func:`ensure_not_silent`, so a mutated pattern
keeps at least one note whenever the voice's range holds a scale tone.

:func:`respond` derives a new pattern from another voice's material (the
"answer" in a call-and-response pair).

Which voices receive local edits and which are regenerated outright is decided
by the engine (see :meth:`evoloop.engine.Engine.evolve_tick`).
"""

import dataclasses
import enum
import logging
import math
import random
import typing

import evoloop.intervals
import evoloop.pattern
import evoloop.pitch_set
import evoloop.sequence_utils
import evoloop.voice


logger = logging.getLogger(__name__)

PROBABILITY_FIELDS = ("add_probability", "remove_probability", "transpose_probability", "regenerate_probability", "shift_probability")


class ResponseStrategy (str, enum.Enum):

	"""How :func:`respond` turns a call into an answer."""

	TRANSPOSE_UP = "transpose_up"
	TRANSPOSE_DOWN = "transpose_down"
	RETROGRADE = "retrograde"
	INVERT = "invert"


@dataclasses.dataclass
class MutationSettings:

	"""
	Probabilities and scaling for a mutation pass.

	Attributes:
		add_probability: Chance that a chosen empty step receives a note.
		remove_probability: Chance that a chosen occupied step is cleared.
		transpose_probability: Chance that a chosen occupied step (not cleared)
			moves by 1..``max_degree_step`` scale degrees.
		regenerate_probability: Chance that a chosen occupied step triggers a
			full regeneration instead of a local edit. Only used when the
			caller supplies a ``regenerate`` callable.
		shift_probability: Chance, once per pass, that the whole loop is
			rotated by 1..``max(1, length // 4)`` steps either way.
		change_scale: ``k`` in ``max(1, floor(length * intensity * k))``.
		max_degree_step: Largest scale-degree move.
	"""

	add_probability: float = 0.3
	remove_probability: float = 0.2
	transpose_probability: float = 0.4
	regenerate_probability: float = 0.05
	shift_probability: float = 0.25
	change_scale: float = 0.4
	max_degree_step: int = 2

	def __post_init__ (self) -> None:

		for name in PROBABILITY_FIELDS:

			value = getattr(self, name)

			if not 0.0 <= value <= 1.0:
				raise evoloop.voice.ConfigurationError(f"{name} must be between 0.0 and 1.0, got {value}")

		if self.change_scale <= 0:
			raise evoloop.voice.ConfigurationError(f"change_scale must be positive, got {self.change_scale}")

		if self.max_degree_step < 1:
			raise evoloop.voice.ConfigurationError(f"max_degree_step must be at least 1, got {self.max_degree_step}")


	@classmethod
	def from_dict (cls, data: typing.Mapping[str, typing.Any]) -> "MutationSettings":

		known = {f.name for f in dataclasses.fields(cls)}
		unknown = sorted(set(data) - known)

		if unknown:
			raise evoloop.voice.ConfigurationError(f"Unknown mutation settings: {unknown}")

		return cls(**data)


@dataclasses.dataclass
class MutationReport:

	"""What a mutation pass did to one pattern."""

	additions: int = 0
	removals: int = 0
	transpositions: int = 0
	shift: int = 0
	regenerated: bool = False
	forced: bool = False

	@property
	def changes (self) -> int:
		return self.additions + self.removals + self.transpositions + (1 if self.shift else 0)


def change_count (length: int, intensity: float, k: float) -> int:

	"""
	Number of edit attempts for one pass: ``max(1, floor(length * intensity * k))``.
	"""

	return max(1, int(math.floor(length * evoloop.sequence_utils.clamp_unit(intensity) * k)))


def step_by_degree (
	pitch: int,
	degrees: int,
	scale: typing.Sequence[int],
	base_note: int,
	low: int,
	high: int
) -> int:

	"""Move a pitch by scale degrees and keep it inside ``[low, high]``.

	An out-of-range result is folded by whole octaves, which keeps it in the
	scale. If the range is too narrow to hold that pitch class, the in-range
	candidate nearest to the moved pitch is used instead. If the range holds no
	scale tone at all the pitch comes back unchanged.

	Example:
		```python
		major = [0, 2, 4, 5, 7, 9, 11]
		step_by_degree(72, 1, major, 60, 60, 72)  # 62 - D5 folded down an octave
		```
	"""

	target = evoloop.intervals.degree_step(pitch, degrees, scale, base_note)
	folded = evoloop.pitch_set.fold_into_range(target, low, high)

	if folded is not None:
		return folded

	candidates = evoloop.pitch_set.build_candidates(scale, base_note, low, high)

	if not candidates:
		return pitch

	return candidates[evoloop.pitch_set.nearest_index(candidates, target)]


def ensure_not_silent (
	pattern: evoloop.pattern.Pattern,
	candidates: typing.Sequence[int],
	rng: random.Random
) -> bool:

	"""Give a silent pattern exactly one note, at step 0.

	The note is drawn from ``candidates``. When the voice's range holds no
	scale tone there is nothing conformant to place, so the pattern stays
	silent: range and scale conformance win over the no-silence rule, the same
	way generation answers an empty candidate set with rests. Returns True if
	a note was forced in.
	"""

	if len(pattern) == 0 or not pattern.is_silent():
		return False

	if not candidates:
		logger.debug("Silent pattern left silent: no scale tone fits the range")
		return False

	pattern[0] = rng.choice(list(candidates))

	logger.debug(f"Silent pattern - forced {evoloop.intervals.note_name(pattern[0])} into step 0")

	return True


def mutate_pattern (
	pattern: evoloop.pattern.Pattern,
	voice: evoloop.voice.VoiceConfig,
	scale: evoloop.intervals.ScaleLike,
	intensity: float,
	rng: random.Random,
	settings: typing.Optional[MutationSettings] = None,
	regenerate: typing.Optional[typing.Callable[[], evoloop.pattern.Pattern]] = None
) -> MutationReport:

	"""Apply a pass of local edits to ``pattern`` in place.

	Parameters:
		pattern: The pattern to edit.
		voice: The voice's configuration (range and base note).
		scale: Scale intervals or a registered scale name.
		intensity: 0.0-1.0, scales the number of edit attempts.
		rng: Random number generator instance.
		settings: Edit probabilities; defaults to :class:`MutationSettings`.
		regenerate: Called to rebuild the whole pattern when the regeneration
			draw succeeds. ``None`` disables regeneration entirely.

	Each attempt picks a random step. An empty step may be filled with a random
	candidate. An occupied step may trigger regeneration (which ends the pass),
	else may be cleared, else may move by up to ``max_degree_step`` degrees.
	Unless the pattern was regenerated, the pass may then rotate the whole loop
	(``shift_probability``).
	"""

	settings = settings or MutationSettings()
	intervals = evoloop.voice.validate_scale(scale)
	report = MutationReport()

	length = len(pattern)

	if length == 0:
		return report

	low, high = voice.pitch_range_min, voice.pitch_range_max
	candidates = evoloop.pitch_set.build_candidates(intervals, voice.base_note, low, high)

	for _ in range(change_count(length, intensity, settings.change_scale)):

		step = rng.randrange(length)
		pitch = pattern[step]

		if pitch is None:

			if candidates and rng.random() < settings.add_probability:
				pattern[step] = rng.choice(candidates)
				report.additions += 1

			continue

		if regenerate is not None and rng.random() < settings.regenerate_probability:
			pattern.assign(regenerate())
			report.regenerated = True
			break

		if rng.random() < settings.remove_probability:
			pattern[step] = None
			report.removals += 1

		elif rng.random() < settings.transpose_probability:

			degrees = rng.randint(1, settings.max_degree_step) * rng.choice((-1, 1))
			moved = step_by_degree(pitch, degrees, intervals, voice.base_note, low, high)

			if moved != pitch:
				pattern[step] = moved
				report.transpositions += 1

	if not report.regenerated and rng.random() < settings.shift_probability:

		report.shift = rng.randint(1, max(1, length // 4)) * rng.choice((-1, 1))
		pattern.assign(pattern.rotated(report.shift))

	report.forced = ensure_not_silent(pattern, candidates, rng)

	logger.debug(
		f"mutate: +{report.additions} -{report.removals} ~{report.transpositions} >>{report.shift} "
		f"regenerated={report.regenerated} forced={report.forced}"
	)

	return report


def rebalance_density (
	pattern: evoloop.pattern.Pattern,
	target_density: float,
	voice: evoloop.voice.VoiceConfig,
	scale: evoloop.intervals.ScaleLike,
	rng: random.Random
) -> int:

	"""Add or remove notes until the pattern holds ``round(length * target_density)`` of them.

	Excess notes are removed at random. Missing notes are added to empty steps
	taken from the front of a shuffled list, so new notes spread across the
	loop rather than bunching. Nothing is added when the range holds no
	candidates. Returns the net change in note count.
	"""

	intervals = evoloop.voice.validate_scale(scale)
	length = len(pattern)

	if length == 0:
		return 0

	candidates = evoloop.pitch_set.build_candidates(intervals, voice.base_note, voice.pitch_range_min, voice.pitch_range_max)
	target = evoloop.sequence_utils.density_count(length, target_density)

	active = pattern.active_steps()
	inactive = pattern.empty_steps()
	rng.shuffle(inactive)

	before = len(active)

	if before > target:

		for step in rng.sample(active, before - target):
			pattern[step] = None

	elif before < target and candidates:

		for step in inactive[:target - before]:
			pattern[step] = rng.choice(candidates)

	ensure_not_silent(pattern, candidates, rng)

	delta = pattern.note_count - before

	logger.debug(f"rebalance: {before} -> {pattern.note_count} notes (target {target})")

	return delta


def transpose_pattern (
	pattern: evoloop.pattern.Pattern,
	degrees: int,
	voice: evoloop.voice.VoiceConfig,
	scale: evoloop.intervals.ScaleLike
) -> int:

	"""
	Move every note by ``degrees`` scale degrees, folding into range. Returns the number of notes that changed.
	"""

	intervals = evoloop.voice.validate_scale(scale)
	changed = 0

	for step in pattern.active_steps():

		pitch = pattern[step]
		moved = step_by_degree(pitch, degrees, intervals, voice.base_note, voice.pitch_range_min, voice.pitch_range_max)

		if moved != pitch:
			pattern[step] = moved
			changed += 1

	return changed


def respond (
	source: evoloop.pattern.Pattern,
	voice: evoloop.voice.VoiceConfig,
	scale: evoloop.intervals.ScaleLike,
	rng: random.Random,
	strategy: typing.Optional[ResponseStrategy] = None,
	degrees: typing.Optional[int] = None,
	pivot: typing.Optional[int] = None
) -> evoloop.pattern.Pattern:

	"""Build an answer to ``source`` for the responding ``voice``.

	The call is read cyclically until the answer has ``voice.length`` steps,
	so calls and answers of different lengths still line up. Rests stay rests.

	Parameters:
		source: The calling voice's pattern.
		voice: The responding voice (its length, range and base note apply).
		scale: Scale intervals or a registered scale name.
		rng: Random number generator instance.
		strategy: How to transform the call; drawn at random when omitted.
		degrees: Scale degrees for the transposing strategies (1-3 at random when omitted).
		pivot: Mirror pitch for ``INVERT``; defaults to the responding voice's base note.

	Every note of the answer goes through :func:`step_by_degree`, so it lands
	on a scale tone inside the responding voice's range. A range with no
	scale tone gives an all-rest answer.

	Example:
		```python
		answer = respond(call, lead, "dorian", rng, strategy=ResponseStrategy.RETROGRADE)
		```
	"""

	intervals = evoloop.voice.validate_scale(scale)
	strategy = ResponseStrategy(strategy) if strategy is not None else rng.choice(list(ResponseStrategy))

	low, high = voice.pitch_range_min, voice.pitch_range_max
	candidates = evoloop.pitch_set.build_candidates(intervals, voice.base_note, low, high)
	answer = evoloop.pattern.Pattern.rests(voice.length)

	if not candidates or len(source) == 0:
		logger.debug(f"respond ({strategy.value}): nothing to answer with, returning rests")
		return answer

	shift = 0

	if strategy in (ResponseStrategy.TRANSPOSE_UP, ResponseStrategy.TRANSPOSE_DOWN):

		size = abs(degrees) if degrees is not None else rng.randint(1, 3)
		shift = size if strategy == ResponseStrategy.TRANSPOSE_UP else -size

	mirror = voice.base_note if pivot is None else pivot
	sequence = source.reversed() if strategy == ResponseStrategy.RETROGRADE else source

	for step in range(voice.length):

		pitch = sequence[step % len(sequence)]

		if pitch is None:
			continue

		if strategy == ResponseStrategy.INVERT:
			pitch = 2 * mirror - pitch

		answer[step] = step_by_degree(pitch, shift, intervals, voice.base_note, low, high)

	logger.debug(f"respond ({strategy.value}, {shift:+d} degrees): {answer.format()}")

	return answer
