import typing

import evoloop.intervals


Slot = typing.Optional[int]


class Pattern:

	"""
	A fixed-length loop of steps, each holding a MIDI pitch or ``None`` (rest).
	"""

	def __init__ (self, length: int, slots: typing.Optional[typing.Iterable[Slot]] = None) -> None:

		"""
		Create a pattern of ``length`` steps, optionally pre-filled from ``slots``.
		"""

		if length < 0:
			raise ValueError("Pattern length cannot be negative")

		self.slots: typing.List[Slot] = [None] * length

		if slots is not None:

			values = list(slots)

			if len(values) != length:
				raise ValueError(f"Expected {length} slots, got {len(values)}")

			self.slots = values


	@classmethod
	def rests (cls, length: int) -> "Pattern":

		"""
		An all-rest pattern.
		"""

		return cls(length)


	@classmethod
	def from_slots (cls, slots: typing.Iterable[Slot]) -> "Pattern":

		values = list(slots)
		return cls(len(values), values)


	@property
	def length (self) -> int:
		return len(self.slots)


	def __len__ (self) -> int:
		return len(self.slots)


	def __getitem__ (self, step: int) -> Slot:
		return self.slots[step]


	def __setitem__ (self, step: int, pitch: Slot) -> None:
		self.slots[step] = pitch


	def __iter__ (self) -> typing.Iterator[Slot]:
		return iter(self.slots)


	def __eq__ (self, other: object) -> bool:

		if not isinstance(other, Pattern):
			return NotImplemented

		return self.slots == other.slots


	def __repr__ (self) -> str:
		return f"Pattern({self.slots!r})"


	def active_steps (self) -> typing.List[int]:

		"""Indices of steps that hold a pitch."""

		return [i for i, pitch in enumerate(self.slots) if pitch is not None]


	def empty_steps (self) -> typing.List[int]:

		"""Indices of rest steps."""

		return [i for i, pitch in enumerate(self.slots) if pitch is None]


	@property
	def note_count (self) -> int:
		return sum(1 for pitch in self.slots if pitch is not None)


	@property
	def density (self) -> float:

		"""Fraction of steps that hold a pitch (0.0 for an empty loop)."""

		if not self.slots:
			return 0.0

		return self.note_count / len(self.slots)


	def is_silent (self) -> bool:
		return self.note_count == 0


	def copy (self) -> "Pattern":
		return Pattern(len(self.slots), self.slots)


	def assign (self, other: "Pattern") -> None:

		"""
		Replace every slot with those of ``other`` (lengths must match).
		"""

		if len(other) != len(self.slots):
			raise ValueError(f"Cannot assign a {len(other)}-step pattern to a {len(self.slots)}-step pattern")

		self.slots = list(other.slots)


	def rotated (self, shift: int) -> "Pattern":

		"""Return a copy circularly shifted right by ``shift`` steps (negative = left)."""

		n = len(self.slots)

		if n == 0:
			return self.copy()

		shift %= n

		return Pattern(n, self.slots[-shift:] + self.slots[:-shift] if shift else self.slots)


	def reversed (self) -> "Pattern":

		"""Return a copy played backwards."""

		return Pattern(len(self.slots), self.slots[::-1])


	def format (self) -> str:

		"""Render as a single line of note names and ``.`` rests, e.g. ``C4 .  E4 .``."""

		return " ".join(
			f"{evoloop.intervals.note_name(pitch):<3}" if pitch is not None else ".  "
			for pitch in self.slots
		).rstrip()
