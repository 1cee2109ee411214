"""Tuner state and station presets."""

from .events import (
    ErrorRaised,
    FrequencyChanged,
    PresetsChanged,
    ScanFinished,
    ScanProgress,
    TuneRequested,
)
from .stations import UNNAMED, Preset, PresetStore
from .storage import JsonFileStorage
from .tuner import TunerDevice, TunerError, TunerSession, TunerState, wrap_frequency

__all__ = [
    'ErrorRaised', 'FrequencyChanged', 'PresetsChanged', 'ScanFinished',
    'ScanProgress', 'TuneRequested', 'UNNAMED', 'Preset', 'PresetStore',
    'JsonFileStorage', 'TunerDevice', 'TunerError', 'TunerSession',
    'TunerState', 'wrap_frequency',
]
