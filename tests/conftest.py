"""Shared pytest fixtures for fmtuner tests."""

from typing import Callable, Dict, List, Tuple

import pytest

from fmtuner.core.stations import PresetStore
from fmtuner.core.storage import JsonFileStorage
from fmtuner.core.tuner import TunerDevice, TunerSession, TunerState


class ManualTuner(TunerDevice):
    """Receiver whose asynchronous results are completed by the test."""

    def __init__(self, state: TunerState = TunerState.IDLE, frequency: float = 87.5,
                 min_frequency: float = 87.5, max_frequency: float = 108.0):
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency
        self._state = state
        self._frequency = frequency
        self.muted = False
        self.calls: List[Tuple[str, tuple]] = []
        self.pending: Dict[str, tuple] = {}
        self.on_interrupted = None
        self.on_interrupt_finished = None
        self.on_antenna_changed = None

    @property
    def state(self) -> TunerState:
        return self._state

    @property
    def frequency(self) -> float:
        return self._frequency

    @property
    def started(self) -> List[float]:
        return [args[0] for name, args in self.calls if name == "start"]

    def set_muted(self, muted: bool) -> None:
        self.calls.append(("set_muted", (muted,)))
        self.muted = muted

    def start(self, frequency: float) -> None:
        self.calls.append(("start", (frequency,)))
        self._frequency = frequency
        self._state = TunerState.PLAYING

    def stop(self) -> None:
        self.calls.append(("stop", ()))
        self._state = TunerState.IDLE

    def seek_up(self, on_success, on_error) -> None:
        self.calls.append(("seek_up", ()))
        self.pending["seek"] = (on_success, on_error)

    def seek_down(self, on_success, on_error) -> None:
        self.calls.append(("seek_down", ()))
        self.pending["seek"] = (on_success, on_error)

    def scan_start(self, on_frequency_found, on_finished, on_error) -> None:
        self.calls.append(("scan_start", ()))
        self._state = TunerState.SCANNING
        self.pending["scan"] = (on_frequency_found, on_finished, on_error)

    def scan_stop(self, on_success, on_error) -> None:
        self.calls.append(("scan_stop", ()))
        self.pending["scan_stop"] = (on_success, on_error)

    def set_interrupted_listener(self, on_interrupted, on_interrupt_finished) -> None:
        self.on_interrupted = on_interrupted
        self.on_interrupt_finished = on_interrupt_finished

    def set_antenna_listener(self, callback) -> None:
        self.on_antenna_changed = callback

    # Completion helpers
    def finish_seek(self, frequency: float) -> None:
        on_success, _ = self.pending.pop("seek")
        self._frequency = frequency
        on_success(frequency)

    def fail_seek(self, error: Exception) -> None:
        _, on_error = self.pending.pop("seek")
        on_error(error)

    def report_found(self, frequency: float) -> None:
        self._frequency = frequency
        self.pending["scan"][0](frequency)

    def finish_scan(self, frequencies: List[float]) -> None:
        _, on_finished, _ = self.pending.pop("scan")
        self._state = TunerState.IDLE
        on_finished(frequencies)

    def fail_scan(self, error: Exception) -> None:
        _, _, on_error = self.pending.pop("scan")
        self._state = TunerState.IDLE
        on_error(error)

    def finish_scan_stop(self) -> None:
        on_success, _ = self.pending.pop("scan_stop")
        self.pending.pop("scan", None)
        self._state = TunerState.IDLE
        on_success()

    def fail_scan_stop(self, error: Exception) -> None:
        _, on_error = self.pending.pop("scan_stop")
        on_error(error)


@pytest.fixture
def storage_path(tmp_path):
    return tmp_path / "storage.json"


@pytest.fixture
def storage(storage_path) -> JsonFileStorage:
    """Opened storage backed by a file in the test's temp directory."""
    storage = JsonFileStorage(storage_path)
    storage.open()
    return storage


@pytest.fixture
def store(storage) -> PresetStore:
    return PresetStore(storage)


@pytest.fixture
def device() -> ManualTuner:
    return ManualTuner()


@pytest.fixture
def session(device, store) -> TunerSession:
    return TunerSession(device, store)


@pytest.fixture
def recorder() -> Callable:
    """Factory subscribing a list to an event source and returning that list."""
    def _record(source) -> list:
        events: list = []
        source.subscribe(events.append)
        return events
    return _record
