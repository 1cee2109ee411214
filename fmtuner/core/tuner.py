"""Tuner session: the state machine between the UI and the receiver."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .events import (
    ErrorRaised,
    EventEmitter,
    FrequencyChanged,
    ScanFinished,
    ScanProgress,
    SessionEvent,
)
from .stations import PresetStore

logger = logging.getLogger(__name__)

DEFAULT_TUNE_STEP = 0.1  # MHz

FrequencyCallback = Callable[[float], None]
ErrorCallback = Callable[[Exception], None]


class TunerState(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    SCANNING = "scanning"


class TunerError(Exception):
    """A receiver operation failed. ``title`` is shown as the error category."""

    title = "Tuner error"

    def __init__(self, message: str, title: Optional[str] = None):
        super().__init__(message)
        if title is not None:
            self.title = title


class TunerDevice(ABC):
    """Receiver capabilities used by :class:`TunerSession`.

    Asynchronous operations report back through the callbacks they are given.
    Implementations must deliver those callbacks on the thread that owns the
    session.
    """

    min_frequency: float = 87.5
    max_frequency: float = 108.0

    @property
    @abstractmethod
    def state(self) -> TunerState: ...

    @property
    @abstractmethod
    def frequency(self) -> float: ...

    @property
    def is_antenna_connected(self) -> bool:
        return True

    @abstractmethod
    def set_muted(self, muted: bool) -> None: ...

    @abstractmethod
    def start(self, frequency: float) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def seek_up(self, on_success: FrequencyCallback, on_error: ErrorCallback) -> None: ...

    @abstractmethod
    def seek_down(self, on_success: FrequencyCallback, on_error: ErrorCallback) -> None: ...

    @abstractmethod
    def scan_start(
        self,
        on_frequency_found: FrequencyCallback,
        on_finished: Callable[[List[float]], None],
        on_error: ErrorCallback,
    ) -> None: ...

    @abstractmethod
    def scan_stop(self, on_success: Callable[[], None], on_error: ErrorCallback) -> None: ...

    def set_interrupted_listener(
        self,
        on_interrupted: Callable[[str], None],
        on_interrupt_finished: Callable[[], None],
    ) -> None:
        """Receivers without interruption support ignore the listener."""

    def set_antenna_listener(self, callback: Callable[[bool], None]) -> None:
        """Receivers without antenna detection ignore the listener."""

    def open(self) -> None:
        """Acquire the receiver. Raises TunerError if it is unavailable."""

    def close(self) -> None:
        """Release the receiver."""


def wrap_frequency(frequency: float, min_frequency: float, max_frequency: float) -> float:
    """Wrap a manually tuned frequency around the band edges.

    Below the band goes to the top, above the band goes to the bottom.
    """
    if frequency < min_frequency:
        return max_frequency
    if frequency > max_frequency:
        return min_frequency
    return frequency


def scan_progress(frequency: float, min_frequency: float, max_frequency: float) -> float:
    """Percentage of the band swept when ``frequency`` is found, in 0.1 MHz steps."""
    band = (max_frequency * 10) - (min_frequency * 10)
    if band <= 0:
        return 100.0
    progress = ((frequency - min_frequency) * 1000) / band
    return max(0.0, min(100.0, progress))


def _normalize(frequency: float) -> float:
    return round(frequency, 1)


@dataclass
class ScanSession:
    frequency_before_scan: float
    was_playing: bool = False
    found: int = 0


class TunerSession:
    """Mediates every receiver operation and reports the outcome as events.

    Operations that are not allowed in the current state are ignored and
    return False.
    """

    def __init__(self, device: TunerDevice, stations: PresetStore, tune_step: float = DEFAULT_TUNE_STEP):
        self.device = device
        self.stations = stations
        self.tune_step = tune_step
        self.min_frequency = device.min_frequency
        self.max_frequency = device.max_frequency
        self.scan: Optional[ScanSession] = None
        self._pending_seek: Optional[object] = None
        self._events: EventEmitter[SessionEvent] = EventEmitter()

    def subscribe(self, listener: Callable[[SessionEvent], None]) -> Callable[[], None]:
        return self._events.subscribe(listener)

    @property
    def state(self) -> TunerState:
        return self.device.state

    @property
    def frequency(self) -> float:
        return _normalize(self.device.frequency)

    def initialize(self) -> None:
        """Read the band limits, hook up receiver listeners and start playing."""
        self.min_frequency = self.device.min_frequency
        self.max_frequency = self.device.max_frequency
        self.device.set_interrupted_listener(self._on_interrupted, self._on_interrupt_finished)
        self.device.set_antenna_listener(self._on_antenna_changed)

        frequency = self.stations.get_last_frequency()
        if not frequency:
            frequency = self.min_frequency
        logger.info(
            "Tuner band %.1f-%.1f MHz, starting at %.1f MHz",
            self.min_frequency, self.max_frequency, frequency,
        )
        self.start(frequency)

    def _report_error(self, error: Exception) -> None:
        title = getattr(error, "title", None) or type(error).__name__
        logger.error("%s: %s", title, error)
        self._events.emit(ErrorRaised(title, str(error)))

    def start(self, frequency: float) -> bool:
        """Play ``frequency``. Ignored while scanning."""
        if self.state is TunerState.SCANNING:
            logger.debug("Ignoring start(%.1f) while scanning", frequency)
            return False
        try:
            self.device.start(frequency)
        except TunerError as e:
            self._report_error(e)
            return False
        self._events.emit(FrequencyChanged(self.frequency))
        return True

    def tune(self, frequency: float) -> bool:
        """Manual tuning: wraps around the band edges, then starts playback."""
        frequency = wrap_frequency(_normalize(frequency), self.min_frequency, self.max_frequency)
        return self.start(frequency)

    def tune_up(self) -> bool:
        return self.tune(self.frequency + self.tune_step)

    def tune_down(self) -> bool:
        return self.tune(self.frequency - self.tune_step)

    def stop(self) -> bool:
        if self.state is not TunerState.PLAYING:
            return False
        try:
            self.device.stop()
        except TunerError as e:
            self._report_error(e)
            return False
        return True

    def set_muted(self, muted: bool) -> None:
        self.device.set_muted(muted)

    def seek_up(self, callback: Optional[FrequencyCallback] = None) -> bool:
        return self._seek(self.device.seek_up, callback)

    def seek_down(self, callback: Optional[FrequencyCallback] = None) -> bool:
        return self._seek(self.device.seek_down, callback)

    def _seek(self, operation, callback: Optional[FrequencyCallback]) -> bool:
        if self.state is not TunerState.PLAYING:
            logger.debug("Ignoring seek in state %s", self.state.value)
            return False
        token = self._pending_seek = object()

        def on_success(frequency: float) -> None:
            frequency = _normalize(frequency)
            if self._pending_seek is not token or self.state is not TunerState.PLAYING:
                logger.debug("Ignoring seek result %.1f MHz, seek was superseded", frequency)
                return
            self._pending_seek = None
            logger.info("Seek found %.1f MHz", frequency)
            self._events.emit(FrequencyChanged(frequency))
            if callback:
                callback(frequency)

        def on_error(error: Exception) -> None:
            if self._pending_seek is not token:
                logger.debug("Ignoring seek failure, seek was superseded: %s", error)
                return
            self._pending_seek = None
            self._report_error(error)

        operation(on_success, on_error)
        return True

    def scan_start(self) -> bool:
        """Sweep the whole band; found stations are saved as presets."""
        state = self.state
        if state is TunerState.SCANNING:
            return False
        restore = self.frequency
        self._pending_seek = None
        self.scan = ScanSession(frequency_before_scan=restore, was_playing=state is TunerState.PLAYING)
        logger.info("Scan started from %.1f MHz", restore)
        try:
            if state is TunerState.PLAYING:
                self.device.stop()
            self.device.scan_start(self._on_frequency_found, self._on_scan_finished, self._on_scan_error)
        except TunerError as e:
            self._on_scan_error(e)
            return False
        return True

    def _on_frequency_found(self, frequency: float) -> None:
        if self.scan is None:
            logger.debug("Ignoring frequency found after scan ended")
            return
        self.scan.found += 1
        percent = scan_progress(frequency, self.min_frequency, self.max_frequency)
        self._events.emit(ScanProgress(percent, self.scan.found))

    def _on_scan_finished(self, frequencies: Sequence[float]) -> None:
        if self.scan is None:
            logger.debug("Ignoring scan result after scan ended")
            return
        found = [_normalize(f) for f in frequencies]
        self.scan.found = len(found)
        self._events.emit(ScanProgress(100.0, len(found)))

        for index, frequency in enumerate(found, start=1):
            self.stations.save(f"Station {index}", frequency, overwrite=False)

        self.scan = None
        logger.info("Scan finished, %d stations found", len(found))
        self._events.emit(ScanFinished(tuple(found)))

        if found:
            self.start(found[0])
        else:
            self._events.emit(ErrorRaised("No stations found", "The scan did not find any stations."))

    def _on_scan_error(self, error: Exception) -> None:
        scan, self.scan = self.scan, None
        self._report_error(error)
        if scan is not None and scan.was_playing:
            logger.info("Scan failed, resuming %.1f MHz", scan.frequency_before_scan)
            self.start(scan.frequency_before_scan)

    def scan_stop(self) -> bool:
        """Cancel a running scan and return to the frequency played before it."""
        if self.state is not TunerState.SCANNING:
            return False
        self.device.scan_stop(self._on_scan_stopped, self._report_error)
        return True

    def _on_scan_stopped(self) -> None:
        # A scan already running when the session was created has no restore point
        frequency = self.scan.frequency_before_scan if self.scan else self.frequency
        self.scan = None
        logger.info("Scan cancelled, restoring %.1f MHz", frequency)
        self.start(frequency)

    def _on_interrupted(self, reason: str) -> None:
        logger.warning("Radio interrupted: %s", reason)
        self._events.emit(ErrorRaised("Radio interrupted", reason))

    def _on_interrupt_finished(self) -> None:
        self.start(self.frequency)

    def _on_antenna_changed(self, connected: bool) -> None:
        if connected:
            logger.info("Antenna connected")
            self.start(self.frequency)
        else:
            logger.warning("Antenna disconnected")
