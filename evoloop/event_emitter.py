import inspect
import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	Synchronous observer registry for engine notifications.

	The engine emits ``"commit"`` after each store swap, ``"voice_added"`` /
	``"voice_removed"`` on voice lifecycle changes and ``"scale_changed"`` when
	the global scale moves. Listeners run in registration order, inside the
	emitting call.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name. Coroutine functions are rejected.
		"""

		if inspect.iscoroutinefunction(callback):
			raise ValueError(f"Listener for {event_name!r} must be a plain function; the engine never awaits")

		self._listeners.setdefault(event_name, []).append(callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if callback not in self._listeners.get(event_name, []):
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def listener_count (self, event_name: str) -> int:
		return len(self._listeners.get(event_name, []))


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener of ``event_name`` with the given arguments.
		"""

		# Copy so a listener may unregister itself while being called.
		for callback in list(self._listeners.get(event_name, [])):
			callback(*args, **kwargs)
