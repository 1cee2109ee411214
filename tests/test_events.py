"""EventEmitter dispatch tests."""

import logging

from fmtuner.core.events import EventEmitter, FrequencyChanged


def test_listeners_called_in_order():
    emitter = EventEmitter()
    seen = []
    emitter.subscribe(lambda e: seen.append(("a", e)))
    emitter.subscribe(lambda e: seen.append(("b", e)))

    emitter.emit(FrequencyChanged(99.5))

    assert seen == [("a", FrequencyChanged(99.5)), ("b", FrequencyChanged(99.5))]


def test_unsubscribe():
    emitter = EventEmitter()
    seen = []
    unsubscribe = emitter.subscribe(seen.append)
    unsubscribe()
    unsubscribe()

    emitter.emit(FrequencyChanged(99.5))

    assert seen == []
    assert len(emitter) == 0


def test_failing_listener_does_not_stop_others(caplog):
    emitter = EventEmitter()
    seen = []

    def broken(event):
        raise ValueError("listener bug")

    emitter.subscribe(broken)
    emitter.subscribe(seen.append)

    with caplog.at_level(logging.ERROR, logger="fmtuner.core.events"):
        emitter.emit(FrequencyChanged(88.0))

    assert seen == [FrequencyChanged(88.0)]
    assert "listener bug" in caplog.text
