import logging
import os
import sys
import typing

import yaml

import evoloop.engine
import evoloop.voice


logger = logging.getLogger(__name__)


DEFAULT_VOICES: typing.Dict[str, typing.Dict[str, typing.Any]] = {
	"bass": {"length": 16, "base_note": 36, "pitch_range_min": 36, "pitch_range_max": 55, "density": 0.35, "pattern_weights": {"euclidean": 1.0}},
	"lead": {"length": 12, "base_note": 60, "pitch_range_min": 60, "pitch_range_max": 84, "density": 0.5, "generation_mode": "locked"},
}


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def build_engine (config: typing.Mapping[str, typing.Any]) -> evoloop.engine.Engine:

	"""Create an engine and its voices from a loaded configuration mapping.

	Raises ``ConfigurationError`` for unknown keys or invalid values.
	"""

	engine_data = dict(config.get('engine') or {})

	if 'seed' in config:
		engine_data['seed'] = config['seed']

	settings = evoloop.engine.EngineSettings.from_dict(engine_data)
	engine = evoloop.engine.Engine(config.get('scale', 'major'), settings)

	voices = config.get('voices') or DEFAULT_VOICES

	for name, fields in voices.items():
		engine.add_voice(name, evoloop.voice.VoiceConfig.from_dict(fields or {}))

	return engine


def log_grid (engine: evoloop.engine.Engine) -> None:

	for voice_id, stats in engine.stats().items():
		logger.info(f"{voice_id:>8} [{stats.note_count:>2}/{stats.length:<2}] {engine.pattern(voice_id).format()}")


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Generate every configured voice, run some evolution ticks and log the grids.
	"""

	logging.basicConfig(level=logging.INFO)

	args = sys.argv[1:] if argv is None else argv
	config = load_config(args[0] if args else 'config.yaml')

	engine = build_engine(config)
	ticks = int(config.get('ticks', 8))

	logger.info(f"evoloop starting: scale {engine.scale}, {len(engine.voices)} voice(s), {ticks} tick(s)")

	engine.generate_all()
	log_grid(engine)

	for tick in range(ticks):
		engine.evolve_tick(cursor=tick)
		logger.info(f"Tick {tick + 1}")
		log_grid(engine)


if __name__ == "__main__":
	main()
