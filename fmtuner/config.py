"""Configuration settings for the FM tuner."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def _default_storage_path() -> Path:
    return Path.home() / ".local" / "share" / "fmtuner" / "storage.json"


@dataclass
class TunerConfig:
    # Band configuration, used when the receiver does not report its own limits
    MIN_FREQUENCY: float = 87.5
    MAX_FREQUENCY: float = 108.0
    TUNE_STEP: float = 0.1

    # Station names entered in the UI
    STATION_NAME_LENGTH_MIN: int = 1
    STATION_NAME_LENGTH_MAX: int = 10

    # Persistence configuration
    STORAGE_PATH: Path = field(default_factory=_default_storage_path)

    # Logging configuration
    LOG_DIR: Path = Path("logs")
    VERBOSE: bool = False

    # Receiver configuration
    SIMULATE: bool = False
    DEVICE_INDEX: int = 0
    SIMULATED_STATIONS: List[float] = field(default_factory=lambda: [
        89.7, 91.4, 95.5, 100.2, 103.8, 104.1
    ])
