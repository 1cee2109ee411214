"""Radio station preset management module."""

import json
import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, List, Optional

from .events import EventEmitter, PresetsChanged, StoreEvent, TuneRequested
from .storage import JsonFileStorage

logger = logging.getLogger(__name__)

UNNAMED = "UNNAMED"

STATIONS_KEY = "stations"
LAST_FREQUENCY_KEY = "lastFrequency"


@dataclass(frozen=True)
class Preset:
    """A named station stored under its frequency."""
    name: str
    frequency: float  # in MHz

    def __str__(self) -> str:
        return f"{self.name} ({self.frequency:.1f} MHz)"


class PresetStore:
    """Keeps the presets sorted by frequency and persists them on every change.

    Frequencies are compared exactly; at most one preset exists per frequency.
    """

    def __init__(self, storage: JsonFileStorage):
        self._storage = storage
        self._stations: List[Preset] = []
        self._last_frequency: float = 0.0
        self._events: EventEmitter[StoreEvent] = EventEmitter()

    def subscribe(self, listener: Callable[[StoreEvent], None]) -> Callable[[], None]:
        return self._events.subscribe(listener)

    def load(self) -> None:
        """Read presets and the last frequency, waiting for storage if needed."""
        if self._storage.is_ready():
            self._query_storage()
        else:
            logger.debug("Storage not ready, deferring preset load")
            self._storage.on_ready(self._query_storage)

    def _query_storage(self) -> None:
        self._storage.get(STATIONS_KEY, self._on_read)
        self._storage.get(LAST_FREQUENCY_KEY, self._on_read)

    def _on_read(self, key: str, value: Any) -> None:
        if not value:
            return
        if key == STATIONS_KEY:
            self._stations = self._decode_stations(value)
            logger.info("Loaded %d presets", len(self._stations))
            self._events.emit(PresetsChanged(len(self._stations)))
        elif key == LAST_FREQUENCY_KEY:
            try:
                self._last_frequency = float(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring stored last frequency %r", value)
                return
            logger.info("Last frequency %.1f MHz", self._last_frequency)
            self._events.emit(TuneRequested(self._last_frequency))

    @staticmethod
    def _decode_stations(value: Any) -> List[Preset]:
        try:
            items = json.loads(value) if isinstance(value, str) else value
            presets = [Preset(str(item["name"]), float(item["frequency"])) for item in items]
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Ignoring stored presets: %s", e)
            return []

        unique = {}
        for preset in presets:
            unique.setdefault(preset.frequency, preset)
        return sorted(unique.values(), key=lambda x: x.frequency)

    def _save_to_storage(self) -> None:
        encoded = json.dumps([asdict(station) for station in self._stations])
        self._storage.put(STATIONS_KEY, encoded)
        self._storage.put(LAST_FREQUENCY_KEY, self._last_frequency)

    def _changed(self) -> None:
        self._save_to_storage()
        self._events.emit(PresetsChanged(len(self._stations)))

    def save(self, name: str, frequency: float, overwrite: bool = False) -> bool:
        """Store a preset, renaming an existing one only if ``overwrite`` is set.

        Returns True if a new preset was created.
        """
        created = False
        for index, station in enumerate(self._stations):
            if station.frequency == frequency:
                if overwrite:
                    self._stations[index] = replace(station, name=name)
                break
        else:
            self._stations.append(Preset(name, frequency))
            self._stations.sort(key=lambda x: x.frequency)
            created = True

        self._changed()
        return created

    def remove(self, frequency: float) -> None:
        """Remove the preset at ``frequency``, if there is one."""
        for index, station in enumerate(self._stations):
            if station.frequency == frequency:
                del self._stations[index]
                break
        self._changed()

    def remove_all(self) -> None:
        self._stations = []
        self._changed()

    def get_station_list(self) -> List[Preset]:
        """Get all presets, ascending by frequency."""
        return list(self._stations)

    def get_station_by_frequency(self, frequency: float) -> Optional[Preset]:
        for station in self._stations:
            if station.frequency == frequency:
                return station
        return None

    def get_station_name(self, frequency: float) -> str:
        station = self.get_station_by_frequency(frequency)
        return station.name if station else UNNAMED

    def next_station(self, frequency: float) -> Optional[float]:
        """Frequency of the next preset above ``frequency``, wrapping to the lowest.

        Returns None when there are no presets.
        """
        if not self._stations:
            return None
        for station in self._stations:
            if station.frequency > frequency:
                return station.frequency
        return self._stations[0].frequency

    def prev_station(self, frequency: float) -> Optional[float]:
        """Frequency of the next preset below ``frequency``, wrapping to the highest.

        Returns None when there are no presets.
        """
        if not self._stations:
            return None
        for station in reversed(self._stations):
            if station.frequency < frequency:
                return station.frequency
        return self._stations[-1].frequency

    def set_last_frequency(self, frequency: float) -> None:
        self._last_frequency = frequency
        self._save_to_storage()

    def get_last_frequency(self) -> float:
        return self._last_frequency

    def __len__(self) -> int:
        return len(self._stations)
