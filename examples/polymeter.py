import logging

import evoloop

logging.basicConfig(level=logging.INFO)

# Three loops of different lengths drift against each other. The bass and the
# arp are regenerated every tick; the lead is locked and only mutates.

engine = evoloop.Engine("minor_pentatonic", evoloop.EngineSettings(seed=7, evolution_intensity=0.4))

engine.add_voice("bass", evoloop.VoiceConfig(
	length = 16,
	base_note = 33,
	pitch_range_min = 33,
	pitch_range_max = 48,
	density = 0.3,
	pattern_weights = {"euclidean": 1.0},
	jitter = 1,
))

engine.add_voice("arp", evoloop.VoiceConfig(
	length = 12,
	base_note = 57,
	pitch_range_min = 57,
	pitch_range_max = 76,
	density = 0.6,
	pattern_weights = {"lead_tail": 3.0, "random": 1.0},
))

engine.add_voice("lead", evoloop.VoiceConfig(
	length = 10,
	base_note = 69,
	pitch_range_min = 64,
	pitch_range_max = 88,
	density = 0.4,
	generation_mode = "locked",
	timing = "poisson",
))


def show (transaction: evoloop.engine.Transaction) -> None:

	for voice_id in transaction.writes:
		print(f"{voice_id:>5}: {engine.pattern(voice_id).format()}")

	print()


engine.on_event("commit", show)

engine.generate_all()

for bar in range(8):

	# Halfway through, move everything to a new mode. Old notes stay until they evolve away.
	if bar == 4:
		engine.set_scale("phrygian")

	engine.evolve_tick(cursor = bar * 16)

print(engine.stats())
