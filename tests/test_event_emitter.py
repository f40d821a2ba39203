import typing

import pytest

import evoloop.event_emitter


def test_on_and_emit () -> None:

	"""Registered callbacks receive the emitted arguments."""

	emitter = evoloop.event_emitter.EventEmitter()
	received: typing.List[typing.Tuple[str, int]] = []

	emitter.on("commit", lambda voice, count=0: received.append((voice, count)))
	emitter.emit("commit", "bass", count=3)

	assert received == [("bass", 3)]


def test_emit_without_listeners_is_quiet () -> None:

	evoloop.event_emitter.EventEmitter().emit("scale_changed", [0, 2, 4])


def test_listeners_run_in_registration_order () -> None:

	emitter = evoloop.event_emitter.EventEmitter()
	order: typing.List[str] = []

	emitter.on("commit", lambda: order.append("first"))
	emitter.on("commit", lambda: order.append("second"))
	emitter.emit("commit")

	assert order == ["first", "second"]
	assert emitter.listener_count("commit") == 2


def test_off_only_removes_target_callback () -> None:

	"""off() leaves other callbacks for the same event intact."""

	emitter = evoloop.event_emitter.EventEmitter()
	a: typing.List[int] = []
	b: typing.List[int] = []

	def cb_a (v: int) -> None:
		a.append(v)

	def cb_b (v: int) -> None:
		b.append(v)

	emitter.on("commit", cb_a)
	emitter.on("commit", cb_b)
	emitter.off("commit", cb_a)
	emitter.emit("commit", 7)

	assert a == []
	assert b == [7]


def test_off_raises_for_unregistered_callback () -> None:

	"""off() raises ValueError when the callback was never registered."""

	emitter = evoloop.event_emitter.EventEmitter()

	with pytest.raises(ValueError, match="commit"):
		emitter.off("commit", lambda: None)


def test_listener_may_unregister_itself () -> None:

	emitter = evoloop.event_emitter.EventEmitter()
	calls: typing.List[int] = []

	def once (v: int) -> None:
		calls.append(v)
		emitter.off("commit", once)

	emitter.on("commit", once)
	emitter.emit("commit", 1)
	emitter.emit("commit", 2)

	assert calls == [1]


def test_coroutine_listeners_are_rejected () -> None:

	"""The engine is synchronous, so async listeners would never be awaited."""

	emitter = evoloop.event_emitter.EventEmitter()

	async def listener () -> None:
		return None

	with pytest.raises(ValueError):
		emitter.on("commit", listener)
