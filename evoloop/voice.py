"""Per-voice configuration.

:class:`VoiceConfig` gathers everything a generator needs to know about one
loop. Optional settings are resolved to concrete defaults once, when the
config is created, so generators never have to chase fallbacks.

Example:
	```python
	bass = evoloop.voice.VoiceConfig(
		length = 16,
		base_note = 36,
		pitch_range_min = 36,
		pitch_range_max = 55,
		density = 0.35,
		pattern_weights = {"euclidean": 1.0},
	)
	bass.validate()
	```
"""

import dataclasses
import enum
import typing

import evoloop.intervals
import evoloop.positions


MIN_LENGTH = 1
MAX_LENGTH = 512


class ConfigurationError (ValueError):

	"""Voice metadata or scale that no generator can work with."""


class GenerationMode (str, enum.Enum):

	"""How a voice evolves.

	``AUTO`` voices are regenerated from scratch on every evolution tick.
	``LOCKED`` voices keep their material and only receive local edits.
	"""

	AUTO = "auto"
	LOCKED = "locked"


class GeneratorKind (str, enum.Enum):

	"""The three interchangeable pattern generation strategies."""

	EUCLIDEAN = "euclidean"
	RANDOM = "random"
	LEAD_TAIL = "lead_tail"


DEFAULT_PATTERN_WEIGHTS: typing.Dict[GeneratorKind, float] = {
	GeneratorKind.EUCLIDEAN: 0.3,
	GeneratorKind.LEAD_TAIL: 0.3,
	GeneratorKind.RANDOM: 0.4,
}


def _default_weights () -> typing.Dict[GeneratorKind, float]:
	return dict(DEFAULT_PATTERN_WEIGHTS)


@dataclasses.dataclass
class VoiceConfig:

	"""
	Everything the engine reads about one voice.

	Attributes:
		length: Steps in the loop (1-512).
		base_note: MIDI pitch the scale intervals are measured from.
		pitch_range_min: Lowest pitch the voice may play (inclusive).
		pitch_range_max: Highest pitch the voice may play (inclusive).
		density: Fraction of steps that should carry a note (0.0-1.0).
		generation_mode: ``AUTO`` (regenerate on evolution) or ``LOCKED`` (local edits only).
		pattern_weights: Relative weight of each generator. Need not sum to 1.
		timing: Force a timing model for every generator; ``None`` lets each
			generator use its own default.
		jitter: Euclidean timing only - random nudge of up to +/- this many steps.
		tail_length: Lead-tail generator tail length; ``None`` picks 0..max_tail per call.
		max_tail: Upper bound for a randomly chosen tail length.
		direction: Lead-tail travel direction, ``"up"``, ``"down"`` or ``None`` (random).
		shift: Let the lead-tail generator rotate its result by a random amount.
		start_offset: Fixed phase for position selection; ``None`` follows the
			host's step cursor.
		active: Whether the voice is currently sounding.
	"""

	length: int = 16
	base_note: int = 60
	pitch_range_min: int = 24
	pitch_range_max: int = 96
	density: float = 0.4
	generation_mode: GenerationMode = GenerationMode.AUTO
	pattern_weights: typing.Dict[GeneratorKind, float] = dataclasses.field(default_factory=_default_weights)
	timing: typing.Optional[evoloop.positions.TimingMode] = None
	jitter: int = 0
	tail_length: typing.Optional[int] = None
	max_tail: int = 5
	direction: typing.Optional[str] = None
	shift: bool = True
	start_offset: typing.Optional[int] = None
	active: bool = True

	def __post_init__ (self) -> None:

		"""Coerce values read from YAML (strings, floats) to the field types."""

		try:
			self.base_note = int(self.base_note)
			self.pitch_range_min = int(self.pitch_range_min)
			self.pitch_range_max = int(self.pitch_range_max)
			self.density = float(self.density)
			self.jitter = int(self.jitter)
			self.max_tail = int(self.max_tail)

			if self.tail_length is not None:
				self.tail_length = int(self.tail_length)

			if self.start_offset is not None:
				self.start_offset = int(self.start_offset)

			self.generation_mode = GenerationMode(self.generation_mode)
			self.pattern_weights = {GeneratorKind(k): float(v) for k, v in self.pattern_weights.items()}

			if self.timing is not None:
				self.timing = evoloop.positions.TimingMode(self.timing)

		except (ValueError, TypeError, AttributeError) as exc:
			raise ConfigurationError(str(exc)) from exc


	@classmethod
	def from_dict (cls, data: typing.Mapping[str, typing.Any]) -> "VoiceConfig":

		"""Build a config from a plain mapping, rejecting unknown keys."""

		known = {f.name for f in dataclasses.fields(cls)}
		unknown = sorted(set(data) - known)

		if unknown:
			raise ConfigurationError(f"Unknown voice settings: {unknown}")

		return cls(**data)


	def replace (self, **changes: typing.Any) -> "VoiceConfig":
		return dataclasses.replace(self, **changes)


	def validate (self) -> None:

		"""Raise :class:`ConfigurationError` if no generator could use this config."""

		if isinstance(self.length, bool) or not isinstance(self.length, int):
			raise ConfigurationError(f"Length must be an integer, got {self.length!r}")

		if not MIN_LENGTH <= self.length <= MAX_LENGTH:
			raise ConfigurationError(f"Length {self.length} is outside {MIN_LENGTH}..{MAX_LENGTH}")

		if self.pitch_range_min > self.pitch_range_max:
			raise ConfigurationError(f"Pitch range min {self.pitch_range_min} is above max {self.pitch_range_max}")

		if not 0.0 <= self.density <= 1.0:
			raise ConfigurationError(f"Density {self.density} is outside 0.0-1.0")

		if any(weight < 0 for weight in self.pattern_weights.values()):
			raise ConfigurationError(f"Pattern weights cannot be negative: {self.pattern_weights}")

		if self.jitter < 0:
			raise ConfigurationError("Jitter cannot be negative")

		if self.max_tail < 0 or (self.tail_length is not None and self.tail_length < 0):
			raise ConfigurationError("Tail lengths cannot be negative")

		if self.direction not in (None, "up", "down"):
			raise ConfigurationError(f"Direction must be 'up', 'down' or None, got {self.direction!r}")


def validate_scale (scale: evoloop.intervals.ScaleLike) -> typing.List[int]:

	"""Normalise a scale, converting problems into :class:`ConfigurationError`."""

	try:
		return evoloop.intervals.normalize_scale(scale)

	except (ValueError, TypeError) as exc:
		raise ConfigurationError(str(exc)) from exc
