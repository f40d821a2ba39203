"""The orchestrator - voices, the shared pattern store and evolution ticks.

:class:`Engine` owns one :class:`~evoloop.voice.VoiceConfig` and one stored
pattern per voice, plus the global scale that every generation, mutation and
counterpoint call receives. The host's clock calls :meth:`Engine.generate` and
:meth:`Engine.evolve_tick`; playback reads :meth:`Engine.step`.

Every change to the store goes through a :class:`Transaction`. Batch calls
plan all their writes against a snapshot taken before any pattern is touched,
then publish them with a single swap, so a reader sees either the whole batch
or none of it.

Example:
	```python
	import evoloop

	engine = evoloop.Engine("dorian", evoloop.EngineSettings(seed = 7))
	engine.add_voice("bass", evoloop.VoiceConfig(base_note = 36, pitch_range_min = 36, pitch_range_max = 55))
	engine.add_voice("lead", evoloop.VoiceConfig(generation_mode = "locked", density = 0.5))

	engine.generate_all()

	for tick in range(8):
		engine.evolve_tick(cursor = tick * 16)

	pitch = engine.step("lead", 5)
	```
"""

import dataclasses
import logging
import math
import random
import typing

import evoloop.counterpoint
import evoloop.event_emitter
import evoloop.generators
import evoloop.intervals
import evoloop.mutation
import evoloop.pattern
import evoloop.sequence_utils
import evoloop.voice


logger = logging.getLogger(__name__)

VoiceId = typing.Hashable


@dataclasses.dataclass
class EngineSettings:

	"""
	Engine-wide behaviour.

	Attributes:
		counterpoint: Move colliding pitches of newly generated patterns when
			more than one voice is sounding.
		evolution_intensity: Default intensity for :meth:`Engine.evolve_tick` (0.0-1.0).
		voice_fraction: Share of the active voices evolved per tick (0.0-1.0].
			At least one voice is always evolved.
		mutation: Edit probabilities for locked voices. Locked voices are never
			regenerated, so ``regenerate_probability`` has no effect here; a
			non-default value is accepted but logged as a warning.
		adaptive_density: Generate with a density chosen from how many voices
			are sounding and how busy they already are (see
			:func:`adaptive_density`) instead of each voice's own ``density``.
		max_energy: Combined density of the sounding voices above which
			adaptive density thins new material out.
		seed: Seed for the engine's random number generator when none is supplied.
	"""

	counterpoint: bool = True
	evolution_intensity: float = 0.3
	voice_fraction: float = 1.0
	mutation: evoloop.mutation.MutationSettings = dataclasses.field(default_factory=evoloop.mutation.MutationSettings)
	adaptive_density: bool = False
	max_energy: float = 2.5
	seed: typing.Optional[int] = None

	def __post_init__ (self) -> None:

		if isinstance(self.mutation, dict):
			self.mutation = evoloop.mutation.MutationSettings.from_dict(self.mutation)

		if not 0.0 <= self.evolution_intensity <= 1.0:
			raise evoloop.voice.ConfigurationError(f"evolution_intensity must be between 0.0 and 1.0, got {self.evolution_intensity}")

		if not 0.0 < self.voice_fraction <= 1.0:
			raise evoloop.voice.ConfigurationError(f"voice_fraction must be in (0.0, 1.0], got {self.voice_fraction}")

		if self.max_energy <= 0:
			raise evoloop.voice.ConfigurationError(f"max_energy must be positive, got {self.max_energy}")

		if self.mutation.regenerate_probability != evoloop.mutation.MutationSettings().regenerate_probability:
			logger.warning("mutation.regenerate_probability has no effect in the engine: locked voices are never regenerated")


	@classmethod
	def from_dict (cls, data: typing.Mapping[str, typing.Any]) -> "EngineSettings":

		known = {f.name for f in dataclasses.fields(cls)}
		unknown = sorted(set(data) - known)

		if unknown:
			raise evoloop.voice.ConfigurationError(f"Unknown engine settings: {unknown}")

		return cls(**data)


@dataclasses.dataclass
class Transaction:

	"""
	A set of pattern writes published together.

	Attributes:
		writes: New pattern per voice id.
		generators: The generator used, for voices that were regenerated.
		reports: The mutation report, for voices that were edited locally.
	"""

	writes: typing.Dict[VoiceId, evoloop.pattern.Pattern] = dataclasses.field(default_factory=dict)
	generators: typing.Dict[VoiceId, evoloop.generators.GeneratorKind] = dataclasses.field(default_factory=dict)
	reports: typing.Dict[VoiceId, evoloop.mutation.MutationReport] = dataclasses.field(default_factory=dict)

	def is_empty (self) -> bool:
		return not self.writes


@dataclasses.dataclass(frozen=True)
class VoiceStats:

	"""Summary of one stored pattern."""

	length: int
	note_count: int
	density: float
	active: bool


class PatternStore:

	"""
	One pattern per voice, replaced only by whole-store swaps.

	Stored patterns are never edited after they are committed. :meth:`commit`
	builds a new mapping and installs it with a single assignment, so a reader
	holding the result of :meth:`get` or :meth:`snapshot` keeps a consistent
	view. Listeners registered for ``"commit"`` receive the transaction.
	"""

	def __init__ (self, events: typing.Optional[evoloop.event_emitter.EventEmitter] = None) -> None:

		self._patterns: typing.Dict[VoiceId, evoloop.pattern.Pattern] = {}
		self.events = events or evoloop.event_emitter.EventEmitter()


	def __contains__ (self, voice_id: VoiceId) -> bool:
		return voice_id in self._patterns


	def __len__ (self) -> int:
		return len(self._patterns)


	def get (self, voice_id: VoiceId) -> typing.Optional[evoloop.pattern.Pattern]:

		"""The stored pattern for a voice, or ``None``. Callers must not modify it."""

		return self._patterns.get(voice_id)


	def step (self, voice_id: VoiceId, index: int) -> evoloop.pattern.Slot:

		"""Playback read: the pitch at ``index`` (wrapping around the loop), or ``None``."""

		pattern = self._patterns.get(voice_id)

		if pattern is None or len(pattern) == 0:
			return None

		return pattern[index % len(pattern)]


	def snapshot (self) -> typing.Dict[VoiceId, evoloop.pattern.Pattern]:

		"""A consistent mapping of every stored pattern at this moment."""

		return dict(self._patterns)


	def commit (self, transaction: Transaction) -> None:

		"""Publish every write of ``transaction`` with one swap."""

		if transaction.is_empty():
			return

		patterns = dict(self._patterns)
		patterns.update(transaction.writes)

		self._patterns = patterns

		logger.info(f"Committed {len(transaction.writes)} pattern(s): {list(transaction.writes)}")

		self.events.emit("commit", transaction)


	def discard (self, voice_id: VoiceId) -> None:

		patterns = dict(self._patterns)
		patterns.pop(voice_id, None)

		self._patterns = patterns


def sonic_energy (patterns: typing.Iterable[evoloop.pattern.Pattern]) -> float:

	"""How busy a set of voices is: the sum of their pattern densities."""

	return sum(pattern.density for pattern in patterns)


def adaptive_density (active_count: int, energy: float, rng: random.Random, max_energy: float = 2.5) -> float:

	"""Pick a generation density that thins out as more voices sound.

	The density is drawn from a band that depends on how many voices are
	active, then scaled by 0.7 when ``energy`` exceeds ``max_energy``. The
	result is clamped to 0.1-0.9.

	| active voices | band |
	|---|---|
	| 0-1 | 0.60-0.90 |
	| 2-3 | 0.40-0.70 |
	| 4-5 | 0.25-0.50 |
	| 6+ | 0.15-0.35 |
	"""

	if active_count <= 1:
		low, high = 0.6, 0.9
	elif active_count <= 3:
		low, high = 0.4, 0.7
	elif active_count <= 5:
		low, high = 0.25, 0.5
	else:
		low, high = 0.15, 0.35

	density = rng.uniform(low, high)

	if energy > max_energy:
		density *= 0.7

	return max(0.1, min(0.9, density))


class Engine:

	"""
	Generates and evolves the patterns of a set of voices under one global scale.
	"""

	def __init__ (
		self,
		scale: evoloop.intervals.ScaleLike = "major",
		settings: typing.Optional[EngineSettings] = None,
		rng: typing.Optional[random.Random] = None
	) -> None:

		"""
		Create an engine with no voices.

		Parameters:
			scale: The global scale, as intervals or a registered name.
			settings: Engine-wide behaviour; defaults to :class:`EngineSettings`.
			rng: Random number generator instance. When omitted, one is created
				from ``settings.seed``.

		Raises:
			ConfigurationError: If the scale is unusable.
		"""

		self.settings = settings or EngineSettings()
		self.rng = rng or random.Random(self.settings.seed)
		self.events = evoloop.event_emitter.EventEmitter()
		self.store = PatternStore(self.events)

		self._scale: typing.List[int] = evoloop.voice.validate_scale(scale)
		self._voices: typing.Dict[VoiceId, evoloop.voice.VoiceConfig] = {}

	@property
	def scale (self) -> typing.List[int]:
		"""The global scale intervals."""
		return list(self._scale)

	@property
	def voices (self) -> typing.Dict[VoiceId, evoloop.voice.VoiceConfig]:
		"""Voice configurations by id, in the order they were added."""
		return dict(self._voices)


	def on_event (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> None:

		"""Register a listener for ``"commit"``, ``"voice_added"``, ``"voice_removed"`` or ``"scale_changed"``."""

		self.events.on(event_name, callback)


	def _require (self, voice_id: VoiceId) -> evoloop.voice.VoiceConfig:

		if voice_id not in self._voices:
			raise KeyError(f"Voice {voice_id!r} not found. Available: {list(self._voices)}")

		return self._voices[voice_id]


	def add_voice (self, voice_id: VoiceId, config: typing.Optional[evoloop.voice.VoiceConfig] = None) -> evoloop.voice.VoiceConfig:

		"""
		Register a voice. Its pattern starts as all rests until it is generated.

		Raises:
			ValueError: If the id is already in use.
			ConfigurationError: If the configuration is invalid.
		"""

		if voice_id in self._voices:
			raise ValueError(f"Voice {voice_id!r} already exists")

		config = config or evoloop.voice.VoiceConfig()
		config.validate()

		self._voices[voice_id] = config
		self.store.commit(Transaction(writes={voice_id: evoloop.pattern.Pattern.rests(config.length)}))

		logger.info(f"Added voice {voice_id!r}: {config.length} steps, {config.generation_mode.value}")
		self.events.emit("voice_added", voice_id, config)

		return config


	def configure_voice (self, voice_id: VoiceId, **changes: typing.Any) -> evoloop.voice.VoiceConfig:

		"""Change some of a voice's settings.

		A new ``length`` discards the stored pattern (it becomes all rests of the
		new length). Other changes take effect at the next generation or tick.

		Example:
			```python
			engine.configure_voice("lead", density = 0.7, generation_mode = "auto")
			```
		"""

		current = self._require(voice_id)

		try:
			updated = current.replace(**changes)

		except TypeError as exc:
			raise evoloop.voice.ConfigurationError(str(exc)) from exc

		updated.validate()
		self._voices[voice_id] = updated

		if updated.length != current.length:
			self.store.commit(Transaction(writes={voice_id: evoloop.pattern.Pattern.rests(updated.length)}))

		logger.info(f"Configured voice {voice_id!r}: {sorted(changes)}")

		return updated


	def remove_voice (self, voice_id: VoiceId) -> None:

		self._require(voice_id)

		del self._voices[voice_id]
		self.store.discard(voice_id)

		logger.info(f"Removed voice {voice_id!r}")
		self.events.emit("voice_removed", voice_id)


	def set_active (self, voice_id: VoiceId, active: bool) -> None:

		"""Start or stop a voice sounding. Inactive voices are skipped by ticks and by counterpoint."""

		self.configure_voice(voice_id, active=active)


	def set_scale (self, scale: evoloop.intervals.ScaleLike) -> None:

		"""Replace the global scale.

		Existing patterns are not re-snapped; new material follows the new
		scale from the next generation or mutation onward.
		"""

		self._scale = evoloop.voice.validate_scale(scale)

		logger.info(f"Scale changed to {self._scale}")
		self.events.emit("scale_changed", list(self._scale))


	def _active_ids (self) -> typing.List[VoiceId]:
		return [voice_id for voice_id, config in self._voices.items() if config.active]


	def _start_offset (self, config: evoloop.voice.VoiceConfig, cursor: typing.Optional[int]) -> int:

		if config.start_offset is not None:
			return config.start_offset

		if cursor is not None:
			return cursor % config.length

		return 0


	def _counterpoint (
		self,
		voice_id: VoiceId,
		pattern: evoloop.pattern.Pattern,
		view: typing.Dict[VoiceId, evoloop.pattern.Pattern]
	) -> evoloop.pattern.Pattern:

		"""Steer ``pattern`` away from the other sounding voices in ``view``, when enabled."""

		config = self._voices[voice_id]
		active = self._active_ids()

		if not (self.settings.counterpoint and config.active and len(active) > 1):
			return pattern

		others = {other: view[other] for other in active if other != voice_id and other in view}

		return evoloop.counterpoint.resolve(voice_id, pattern, others, config, self._scale)


	def _plan_generation (
		self,
		voice_id: VoiceId,
		view: typing.Dict[VoiceId, evoloop.pattern.Pattern],
		transaction: Transaction,
		cursor: typing.Optional[int],
		kind: typing.Optional[evoloop.generators.GeneratorKind]
	) -> None:

		"""Generate a voice's next pattern into ``transaction`` and ``view``."""

		config = self._voices[voice_id]

		if kind is None:
			kind = evoloop.generators.choose_generator(config.pattern_weights, self.rng)

		if self.settings.adaptive_density:

			active = self._active_ids()
			energy = sonic_energy(view[other] for other in active if other != voice_id and other in view)
			density = adaptive_density(len(active), energy, self.rng, self.settings.max_energy)

			logger.debug(f"{voice_id!r}: adaptive density {density:.2f} ({len(active)} active, energy {energy:.2f})")

			config = config.replace(density=density)

		pattern = evoloop.generators.generate(
			config,
			self._scale,
			rng = self.rng,
			kind = kind,
			start_offset = self._start_offset(config, cursor)
		)

		pattern = self._counterpoint(voice_id, pattern, view)

		transaction.writes[voice_id] = pattern
		transaction.generators[voice_id] = evoloop.generators.GeneratorKind(kind)
		view[voice_id] = pattern


	def generate (
		self,
		voice_id: VoiceId,
		cursor: typing.Optional[int] = None,
		kind: typing.Optional[evoloop.generators.GeneratorKind] = None
	) -> evoloop.pattern.Pattern:

		"""Regenerate one voice and publish the result.

		Parameters:
			voice_id: The voice to regenerate.
			cursor: The host's current step, used as a phase hint when the
				voice has no fixed ``start_offset``.
			kind: Force a generator instead of drawing from the voice's weights.

		Returns:
			A copy of the new stored pattern.
		"""

		self._require(voice_id)

		view = self.store.snapshot()
		transaction = Transaction()

		self._plan_generation(voice_id, view, transaction, cursor, kind)
		self.store.commit(transaction)

		return transaction.writes[voice_id].copy()


	def generate_all (self, cursor: typing.Optional[int] = None) -> Transaction:

		"""Regenerate every voice in one batch."""

		view = self.store.snapshot()
		transaction = Transaction()

		for voice_id in self._voices:
			self._plan_generation(voice_id, view, transaction, cursor, None)

		self.store.commit(transaction)

		return transaction


	def evolve_tick (self, cursor: typing.Optional[int] = None, intensity: typing.Optional[float] = None) -> Transaction:

		"""Run one evolution tick over some of the active voices.

		``max(1, floor(active * voice_fraction))`` active voices are chosen at
		random. ``AUTO`` voices are regenerated from scratch. ``LOCKED`` voices
		get a pass of local edits and are never regenerated. All writes are
		published together.

		Parameters:
			cursor: The host's current step (phase hint for regeneration).
			intensity: Mutation intensity; defaults to ``settings.evolution_intensity``.
		"""

		if intensity is None:
			intensity = self.settings.evolution_intensity

		intensity = evoloop.sequence_utils.clamp_unit(intensity)
		transaction = Transaction()
		active = self._active_ids()

		if not active:
			logger.debug("Evolution tick skipped: no active voices")
			return transaction

		count = max(1, int(math.floor(len(active) * self.settings.voice_fraction)))

		if count < len(active):
			picked = set(self.rng.sample(active, count))
			chosen = [voice_id for voice_id in active if voice_id in picked]
		else:
			chosen = active

		view = self.store.snapshot()

		for voice_id in chosen:

			config = self._voices[voice_id]

			if config.generation_mode == evoloop.voice.GenerationMode.AUTO:
				self._plan_generation(voice_id, view, transaction, cursor, None)
				continue

			current = view.get(voice_id)
			pattern = current.copy() if current is not None and len(current) == config.length else evoloop.pattern.Pattern.rests(config.length)

			transaction.reports[voice_id] = evoloop.mutation.mutate_pattern(
				pattern,
				config,
				self._scale,
				intensity,
				self.rng,
				settings = self.settings.mutation
			)

			transaction.writes[voice_id] = pattern
			view[voice_id] = pattern

		logger.debug(f"Evolution tick (intensity {intensity:.2f}): regenerated {list(transaction.generators)}, mutated {list(transaction.reports)}")

		self.store.commit(transaction)

		return transaction


	def _edit (self, voice_id: VoiceId, edit: typing.Callable[[evoloop.pattern.Pattern, evoloop.voice.VoiceConfig], typing.Any]) -> typing.Any:

		"""Apply ``edit`` to a copy of a voice's pattern and publish the copy."""

		config = self._require(voice_id)
		pattern = self.store.get(voice_id)
		working = pattern.copy() if pattern is not None else evoloop.pattern.Pattern.rests(config.length)

		result = edit(working, config)

		self.store.commit(Transaction(writes={voice_id: working}))

		return result


	def rebalance (self, voice_id: VoiceId, target_density: float) -> int:

		"""Add or remove notes so the voice's pattern matches ``target_density``. Returns the net change."""

		return self._edit(
			voice_id,
			lambda pattern, config: evoloop.mutation.rebalance_density(pattern, target_density, config, self._scale, self.rng)
		)


	def transpose (self, voice_id: VoiceId, degrees: int) -> int:

		"""Move every note of a voice by scale degrees. Returns how many notes changed."""

		return self._edit(
			voice_id,
			lambda pattern, config: evoloop.mutation.transpose_pattern(pattern, degrees, config, self._scale)
		)


	def rotate (self, voice_id: VoiceId, steps: int) -> None:

		"""Shift a voice's pattern right by ``steps`` (negative shifts left)."""

		self._edit(voice_id, lambda pattern, config: pattern.assign(pattern.rotated(steps)))


	def reverse (self, voice_id: VoiceId) -> None:

		self._edit(voice_id, lambda pattern, config: pattern.assign(pattern.reversed()))


	def respond (
		self,
		call_id: VoiceId,
		responder_id: VoiceId,
		strategy: typing.Optional[evoloop.mutation.ResponseStrategy] = None,
		degrees: typing.Optional[int] = None
	) -> evoloop.pattern.Pattern:

		"""Replace one voice's pattern with an answer to another voice.

		The answer is built by :func:`evoloop.mutation.respond` from the
		caller's stored pattern, inverting around the caller's base note, then
		passed through counterpoint like any new material.

		Example:
			```python
			engine.respond("bass", "lead", strategy = "retrograde")
			```

		Returns:
			A copy of the new stored pattern.
		"""

		call_config = self._require(call_id)
		config = self._require(responder_id)

		view = self.store.snapshot()
		source = view.get(call_id)

		if source is None:
			source = evoloop.pattern.Pattern.rests(call_config.length)

		answer = evoloop.mutation.respond(
			source,
			config,
			self._scale,
			self.rng,
			strategy = strategy,
			degrees = degrees,
			pivot = call_config.base_note
		)

		answer = self._counterpoint(responder_id, answer, view)

		self.store.commit(Transaction(writes={responder_id: answer}))
		logger.info(f"Voice {responder_id!r} answered {call_id!r}")

		return answer.copy()


	def pattern (self, voice_id: VoiceId) -> evoloop.pattern.Pattern:

		"""A copy of the voice's stored pattern."""

		config = self._require(voice_id)
		pattern = self.store.get(voice_id)

		return pattern.copy() if pattern is not None else evoloop.pattern.Pattern.rests(config.length)


	def step (self, voice_id: VoiceId, index: int) -> evoloop.pattern.Slot:

		"""Playback read of one step, wrapping around the loop."""

		self._require(voice_id)

		return self.store.step(voice_id, index)


	def stats (self) -> typing.Dict[VoiceId, VoiceStats]:

		"""Note count and density of every voice's stored pattern."""

		result: typing.Dict[VoiceId, VoiceStats] = {}

		for voice_id, config in self._voices.items():

			pattern = self.pattern(voice_id)

			result[voice_id] = VoiceStats(
				length = len(pattern),
				note_count = pattern.note_count,
				density = pattern.density,
				active = config.active
			)

		return result
