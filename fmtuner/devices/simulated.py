"""Simulated receiver for running without radio hardware."""

import logging
from typing import Callable, Iterable, List, Optional

from ..core.tuner import ErrorCallback, FrequencyCallback, TunerDevice, TunerError, TunerState

logger = logging.getLogger(__name__)


class SimulatedTuner(TunerDevice):
    """A receiver that "hears" a fixed list of stations.

    Seek and scan results are delivered through ``dispatch``. The default runs
    callbacks immediately; pass a scheduler (e.g. ``App.call_later`` or a list's
    ``append``) to deliver them later, one step at a time.
    """

    def __init__(
        self,
        stations: Iterable[float],
        min_frequency: float = 87.5,
        max_frequency: float = 108.0,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
        state: TunerState = TunerState.IDLE,
    ):
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency
        self.stations = sorted(
            f for f in stations if min_frequency <= f <= max_frequency
        )
        self._dispatch = dispatch or (lambda fn: fn())
        self._state = state
        self._frequency = min_frequency
        self.muted = False
        self.antenna_connected = True
        self.start_calls: List[float] = []
        self._scan_generation = 0
        self._on_interrupted: Optional[Callable[[str], None]] = None
        self._on_interrupt_finished: Optional[Callable[[], None]] = None
        self._on_antenna_changed: Optional[Callable[[bool], None]] = None

    @property
    def state(self) -> TunerState:
        return self._state

    @property
    def frequency(self) -> float:
        return self._frequency

    @property
    def is_antenna_connected(self) -> bool:
        return self.antenna_connected

    def set_muted(self, muted: bool) -> None:
        self.muted = muted

    def start(self, frequency: float) -> None:
        if not self.min_frequency <= frequency <= self.max_frequency:
            raise TunerError(f"{frequency:.1f} MHz is outside the band", title="Invalid frequency")
        self.start_calls.append(frequency)
        self._frequency = frequency
        self._state = TunerState.PLAYING

    def stop(self) -> None:
        self._state = TunerState.IDLE

    def _seek(self, candidates: List[float], on_success: FrequencyCallback, on_error: ErrorCallback) -> None:
        if not candidates:
            self._dispatch(lambda: on_error(TunerError("No signal found", title="Seek failed")))
            return

        frequency = candidates[0]

        def finish() -> None:
            self._frequency = frequency
            on_success(frequency)

        self._dispatch(finish)

    def seek_up(self, on_success: FrequencyCallback, on_error: ErrorCallback) -> None:
        above = [f for f in self.stations if f > self._frequency]
        self._seek(above or self.stations[:1], on_success, on_error)

    def seek_down(self, on_success: FrequencyCallback, on_error: ErrorCallback) -> None:
        below = [f for f in reversed(self.stations) if f < self._frequency]
        self._seek(below or self.stations[-1:], on_success, on_error)

    def scan_start(
        self,
        on_frequency_found: FrequencyCallback,
        on_finished: Callable[[List[float]], None],
        on_error: ErrorCallback,
    ) -> None:
        if self._state is TunerState.SCANNING:
            raise TunerError("A scan is already running", title="Scan failed")
        self._state = TunerState.SCANNING
        self._scan_generation += 1
        generation = self._scan_generation
        found: List[float] = []

        def step(index: int) -> None:
            if generation != self._scan_generation or self._state is not TunerState.SCANNING:
                return
            if index < len(self.stations):
                frequency = self.stations[index]
                self._frequency = frequency
                found.append(frequency)
                on_frequency_found(frequency)
                self._dispatch(lambda: step(index + 1))
            else:
                self._state = TunerState.IDLE
                on_finished(list(found))

        self._dispatch(lambda: step(0))

    def scan_stop(self, on_success: Callable[[], None], on_error: ErrorCallback) -> None:
        if self._state is not TunerState.SCANNING:
            self._dispatch(lambda: on_error(TunerError("No scan is running", title="Scan stop failed")))
            return
        self._scan_generation += 1
        self._state = TunerState.IDLE
        self._dispatch(on_success)

    def set_interrupted_listener(
        self,
        on_interrupted: Callable[[str], None],
        on_interrupt_finished: Callable[[], None],
    ) -> None:
        self._on_interrupted = on_interrupted
        self._on_interrupt_finished = on_interrupt_finished

    def set_antenna_listener(self, callback: Callable[[bool], None]) -> None:
        self._on_antenna_changed = callback

    def interrupt(self, reason: str) -> None:
        """Simulate another application taking over the audio output."""
        self._state = TunerState.IDLE
        if self._on_interrupted:
            self._on_interrupted(reason)

    def finish_interrupt(self) -> None:
        if self._on_interrupt_finished:
            self._on_interrupt_finished()

    def set_antenna(self, connected: bool) -> None:
        self.antenna_connected = connected
        if not connected:
            self._state = TunerState.IDLE
        if self._on_antenna_changed:
            self._on_antenna_changed(connected)
