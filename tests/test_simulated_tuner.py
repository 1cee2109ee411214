"""End-to-end session behaviour on the simulated receiver."""

import pytest

from fmtuner.core.events import ErrorRaised, FrequencyChanged
from fmtuner.core.stations import Preset
from fmtuner.core.tuner import TunerSession, TunerState
from fmtuner.devices.simulated import SimulatedTuner

STATIONS = [89.7, 95.5, 100.2]


@pytest.fixture
def radio():
    return SimulatedTuner(STATIONS)


@pytest.fixture
def sim_session(radio, store):
    session = TunerSession(radio, store)
    session.initialize()
    return session


class QueuedDispatch:
    """Holds device callbacks until the test runs them."""

    def __init__(self):
        self.pending = []

    def __call__(self, fn):
        self.pending.append(fn)

    def run_next(self):
        self.pending.pop(0)()

    def run_all(self):
        while self.pending:
            self.run_next()


def test_initialize_plays_band_minimum(sim_session, radio):
    assert radio.state is TunerState.PLAYING
    assert sim_session.frequency == 87.5


def test_out_of_band_start_is_reported(sim_session, recorder):
    events = recorder(sim_session)
    assert sim_session.start(120.0) is False
    assert events == [ErrorRaised("Invalid frequency", "120.0 MHz is outside the band")]


def test_seek_up_and_wrap(sim_session):
    found = []
    sim_session.tune(96.0)
    sim_session.seek_up(found.append)
    sim_session.seek_up(found.append)
    sim_session.seek_up(found.append)
    assert found == [100.2, 89.7, 95.5]


def test_seek_down_and_wrap(sim_session):
    found = []
    sim_session.tune(90.0)
    sim_session.seek_down(found.append)
    sim_session.seek_down(found.append)
    assert found == [89.7, 100.2]


def test_seek_without_stations_reports_error(store, recorder):
    session = TunerSession(SimulatedTuner([]), store)
    session.initialize()
    events = recorder(session)

    session.seek_up()

    assert events == [ErrorRaised("Seek failed", "No signal found")]
    assert session.state is TunerState.PLAYING


def test_full_scan_saves_every_station(sim_session, store, recorder):
    events = recorder(sim_session)
    sim_session.tune(99.0)

    sim_session.scan_start()

    assert store.get_station_list() == [
        Preset("Station 1", 89.7),
        Preset("Station 2", 95.5),
        Preset("Station 3", 100.2),
    ]
    assert sim_session.state is TunerState.PLAYING
    assert sim_session.frequency == 89.7
    assert events[-1] == FrequencyChanged(89.7)


def test_cancel_mid_scan_restores_frequency(store):
    dispatch = QueuedDispatch()
    radio = SimulatedTuner(STATIONS, dispatch=dispatch)
    session = TunerSession(radio, store)
    session.initialize()
    session.tune(95.0)

    session.scan_start()
    dispatch.run_next()
    assert session.state is TunerState.SCANNING
    assert session.scan.found == 1

    session.scan_stop()
    dispatch.run_all()

    assert session.state is TunerState.PLAYING
    assert session.frequency == 95.0
    assert len(store) == 0


def test_start_blocked_during_scan(store):
    dispatch = QueuedDispatch()
    radio = SimulatedTuner(STATIONS, dispatch=dispatch)
    session = TunerSession(radio, store)
    session.initialize()

    session.scan_start()
    assert session.start(101.0) is False
    assert radio.start_calls == [87.5]

    dispatch.run_all()
    assert radio.start_calls == [87.5, 89.7]


def test_interruption_and_resume(sim_session, radio, recorder):
    sim_session.tune(95.5)
    events = recorder(sim_session)

    radio.interrupt("Incoming call")
    assert radio.state is TunerState.IDLE
    assert events == [ErrorRaised("Radio interrupted", "Incoming call")]

    radio.finish_interrupt()
    assert radio.state is TunerState.PLAYING
    assert sim_session.frequency == 95.5


def test_antenna_reconnect_resumes(sim_session, radio):
    sim_session.tune(100.2)

    radio.set_antenna(False)
    assert radio.state is TunerState.IDLE
    assert not radio.is_antenna_connected

    radio.set_antenna(True)
    assert radio.state is TunerState.PLAYING
    assert sim_session.frequency == 100.2
