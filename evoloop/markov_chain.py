import random
import typing

import evoloop.sequence_utils


State = typing.TypeVar("State")

REST = "rest"
HIT = "hit"

DEFAULT_STICKINESS = 0.5


class MarkovChain (typing.Generic[State]):

	"""
	A first-order chain driven by a table of next-state weights.

	``table[state]`` maps each possible next state to a relative weight. A
	state with no positive outgoing weight holds (the chain stays put).
	"""

	def __init__ (
		self,
		table: typing.Mapping[State, typing.Mapping[State, float]],
		state: State,
		rng: typing.Optional[random.Random] = None
	) -> None:

		if state not in table:
			raise ValueError(f"Unknown start state {state!r}. Available: {list(table)}")

		for source, targets in table.items():
			for target, weight in targets.items():

				if weight < 0:
					raise ValueError(f"Negative weight {weight} for {source!r} -> {target!r}")

				if target not in table:
					raise ValueError(f"Transition {source!r} -> {target!r} leads to an unknown state")

		self.table = {source: dict(targets) for source, targets in table.items()}
		self.state = state
		self.rng = rng or random.Random()


	def step (self) -> State:

		"""Move to the next state and return it."""

		options = [(target, weight) for target, weight in self.table[self.state].items() if weight > 0]

		if options:
			self.state = evoloop.sequence_utils.weighted_choice(options, self.rng)

		return self.state


	def walk (self, n: int) -> typing.List[State]:

		"""Return the current state followed by the next ``n - 1`` states."""

		if n <= 0:
			return []

		states = [self.state]

		for _ in range(n - 1):
			states.append(self.step())

		return states


def rhythm_chain (density: float, rng: random.Random, stickiness: float = DEFAULT_STICKINESS) -> MarkovChain[str]:

	"""Build a two-state rest/hit chain whose long-run hit rate equals ``density``.

	``stickiness`` (0-1) is the extra chance of repeating the current state.
	With ``P(hit -> hit) = s + (1 - s) * d`` and ``P(rest -> hit) = (1 - s) * d``
	the stationary hit probability is exactly ``d``, but hits and rests come
	in runs. ``stickiness = 0`` degenerates to independent coin flips.

	The initial state is drawn with probability ``density``.
	"""

	d = evoloop.sequence_utils.clamp_unit(density)
	s = evoloop.sequence_utils.clamp_unit(stickiness)

	hit_to_hit = evoloop.sequence_utils.clamp_unit(s + (1.0 - s) * d)
	rest_to_hit = evoloop.sequence_utils.clamp_unit((1.0 - s) * d)

	table = {
		HIT: {HIT: hit_to_hit, REST: 1.0 - hit_to_hit},
		REST: {HIT: rest_to_hit, REST: 1.0 - rest_to_hit},
	}

	return MarkovChain(table, HIT if rng.random() < d else REST, rng)
