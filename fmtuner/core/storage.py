"""Key/value storage backing the preset store."""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

ReadCallback = Callable[[str, Any], None]


class JsonFileStorage:
    """Stores values by key in a single JSON document on disk.

    The storage is not usable until :meth:`open` has read the file. Readers that
    arrive earlier register with :meth:`on_ready` and are called once the file
    has been read. Writes are fire-and-forget: failures are logged and the
    in-memory copy stays authoritative for the rest of the process.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Dict[str, Any] = {}
        self._ready = False
        self._ready_callbacks: List[Callable[[], None]] = []

    def is_ready(self) -> bool:
        return self._ready

    def on_ready(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the storage is open (immediately if it already is)."""
        if self._ready:
            callback()
        else:
            self._ready_callbacks.append(callback)

    def open(self) -> None:
        """Read the backing file and notify waiting readers."""
        if self._ready:
            return
        self._data = self._read_file()
        self._ready = True
        logger.info("Storage opened at %s (%d keys)", self.path, len(self._data))

        callbacks, self._ready_callbacks = self._ready_callbacks, []
        for callback in callbacks:
            callback()

    def _read_file(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Could not read storage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Ignoring storage file %s: expected an object", self.path)
            return {}
        return data

    def get(self, key: str, callback: ReadCallback) -> None:
        """Deliver the value stored under ``key`` (``None`` if missing) to ``callback``."""
        callback(key, self._data.get(key))

    def put(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` and rewrite the backing file."""
        self._data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
        except OSError as e:
            logger.error("Could not write storage file %s: %s", self.path, e)
