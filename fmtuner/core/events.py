"""Notifications emitted by the tuner session and the preset store."""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Tuple, TypeVar, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrequencyChanged:
    """The receiver is now playing at ``frequency`` (MHz)."""
    frequency: float


@dataclass(frozen=True)
class ScanProgress:
    percent: float
    count: int


@dataclass(frozen=True)
class ScanFinished:
    frequencies: Tuple[float, ...]


@dataclass(frozen=True)
class ErrorRaised:
    """A user-facing failure; ``title`` is the error category."""
    title: str
    message: str


@dataclass(frozen=True)
class PresetsChanged:
    count: int


@dataclass(frozen=True)
class TuneRequested:
    """The store asks for a tune, e.g. to the last frequency after loading."""
    frequency: float


SessionEvent = Union[FrequencyChanged, ScanProgress, ScanFinished, ErrorRaised]
StoreEvent = Union[PresetsChanged, TuneRequested]

E = TypeVar("E")


class EventEmitter(Generic[E]):
    """Synchronous observer list.

    Listeners are called in subscription order on the emitting thread. A
    listener that raises is logged and the remaining listeners still run.
    """

    def __init__(self):
        self._listeners: List[Callable[[E], None]] = []

    def subscribe(self, listener: Callable[[E], None]) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: E) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed handling %r", listener, event)

    def __len__(self) -> int:
        return len(self._listeners)
