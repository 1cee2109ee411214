"""Command line, configuration and logging setup."""

import logging
from pathlib import Path

import pytest

from fmtuner.__main__ import build_config, parse_args
from fmtuner.config import TunerConfig
from fmtuner.logging_setup import setup_logging


def test_defaults():
    config = build_config(parse_args([]))
    assert config.SIMULATE is False
    assert config.DEVICE_INDEX == 0
    assert config.LOG_DIR == Path("logs")
    assert (config.MIN_FREQUENCY, config.MAX_FREQUENCY) == (87.5, 108.0)


def test_overrides():
    config = build_config(parse_args([
        "--simulate", "--storage", "presets.json", "--log-dir", "/tmp/radio",
        "--device-index", "2", "-v",
    ]))
    assert config.SIMULATE is True
    assert config.STORAGE_PATH == Path("presets.json")
    assert config.LOG_DIR == Path("/tmp/radio")
    assert config.DEVICE_INDEX == 2
    assert config.VERBOSE is True


def test_simulated_stations_not_shared():
    first, second = TunerConfig(), TunerConfig()
    first.SIMULATED_STATIONS.append(90.0)
    assert 90.0 not in second.SIMULATED_STATIONS


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_creates_log_file(tmp_path, restore_root_logger):
    log_file = setup_logging(tmp_path / "logs", verbose=True)

    logging.getLogger("fmtuner.test").debug("hello from the tuner")

    assert log_file.parent == tmp_path / "logs"
    assert log_file.name.startswith("radio_")
    assert "hello from the tuner" in log_file.read_text()
