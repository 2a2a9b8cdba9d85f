"""Typed listener registries."""

from typing import Callable, Generic, List, TypeVar

from loguru import logger

T = TypeVar("T")

Listener = Callable[[T], None]
Unsubscribe = Callable[[], None]


class EventRegistry(Generic[T]):
    """Listener registry for one category of events.

    Listeners are called synchronously, in subscription order, on the
    thread that emits. A listener that raises is logged and skipped so the
    remaining listeners still receive the event.
    """

    def __init__(self, name: str):
        self._name = name
        self._listeners: List[Listener] = []

    @property
    def name(self) -> str:
        """Registry name used in log messages."""
        return self._name

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register ``listener`` and return a callable that removes it."""
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got {type(listener)}")
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def emit(self, event: T) -> None:
        """Deliver ``event`` to every current listener."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener failed in {self._name} registry")

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()


class UnreadCounter(EventRegistry[int]):
    """Unread alert count with replay-on-subscribe."""

    def __init__(self, name: str = "unread"):
        super().__init__(name)
        self._count = 0

    @property
    def count(self) -> int:
        """Current unread count."""
        return self._count

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register ``listener`` and immediately give it the current count."""
        unsubscribe = super().subscribe(listener)
        try:
            listener(self._count)
        except Exception:
            logger.exception(f"Listener failed on replay in {self.name} registry")
        return unsubscribe

    def increment(self) -> int:
        """Count one more unread alert and notify listeners."""
        self._count += 1
        self.emit(self._count)
        return self._count

    def reset(self) -> None:
        """Mark all alerts read and notify listeners."""
        self._count = 0
        self.emit(0)
