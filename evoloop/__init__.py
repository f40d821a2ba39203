"""
evoloop - pattern generation and evolution for multi-voice loopers.

Each voice of a looper is a fixed-length ring of steps holding a pitch or a
rest. evoloop decides what goes on those steps and how it changes over time:
it generates fresh loops, wears them down with small mutations, and keeps
simultaneous voices from landing on the same pitch.

It produces no sound and owns no clock. A host calls the engine when a loop
should be regenerated or evolved and reads pitches back step by step.

What it does:

- **Three generators.** Euclidean (an even rhythm with a smoothly walking
  melody), random (hits spread across the whole pitch range) and lead-tail
  (a bouncing scalar run with trailing notes, where density only decides
  which notes are heard). A weighted draw picks one per regeneration.
- **Timing models.** Euclidean, even, random and ``fill_all`` sweeps, plus
  Bernoulli, Poisson, geometric and Markov rhythms for looser feels.
- **Scale-aware pitches.** Every note is a tone of the global scale inside
  the voice's pitch range. Mutations move notes by scale degrees and fold
  them back into range by whole octaves.
- **Locked and auto voices.** Auto voices are regenerated on every
  evolution tick. Locked voices keep their material and only receive local
  edits (adds, removes, degree moves and whole-loop shifts). They are never
  silenced completely while their range holds a scale tone.
- **Counterpoint.** New material steers away from pitches other voices
  already hold at the same step.
- **Call and response.** One voice can answer another by transposing,
  reversing or inverting its pattern, snapped to the scale.
- **Adaptive density.** Optionally, regeneration thins out as more voices
  sound and as the mix gets busier.
- **Batched, atomic updates.** Ticks plan every voice's change against one
  snapshot and publish them in a single swap.
- **Deterministic.** All randomness flows through one seeded
  ``random.Random``.

Minimal example:

    ```python
    import evoloop

    engine = evoloop.Engine("minor_pentatonic", evoloop.EngineSettings(seed = 42))
    engine.add_voice("bass", evoloop.VoiceConfig(length = 16, base_note = 36, pitch_range_min = 36, pitch_range_max = 52))
    engine.add_voice("arp", evoloop.VoiceConfig(length = 12, density = 0.6, generation_mode = "locked"))

    engine.generate_all()
    engine.evolve_tick()

    print(engine.pattern("arp").format())
    ```

Package-level exports: ``Engine``, ``EngineSettings``, ``VoiceConfig``,
``GenerationMode``, ``GeneratorKind``, ``TimingMode``, ``MutationSettings``,
``ResponseStrategy``, ``Pattern``, ``ConfigurationError``, ``register_scale``.
"""

import evoloop.engine
import evoloop.intervals
import evoloop.mutation
import evoloop.pattern
import evoloop.positions
import evoloop.voice


ConfigurationError = evoloop.voice.ConfigurationError
Engine = evoloop.engine.Engine
EngineSettings = evoloop.engine.EngineSettings
GenerationMode = evoloop.voice.GenerationMode
GeneratorKind = evoloop.voice.GeneratorKind
MutationSettings = evoloop.mutation.MutationSettings
Pattern = evoloop.pattern.Pattern
ResponseStrategy = evoloop.mutation.ResponseStrategy
TimingMode = evoloop.positions.TimingMode
VoiceConfig = evoloop.voice.VoiceConfig
register_scale = evoloop.intervals.register_scale
