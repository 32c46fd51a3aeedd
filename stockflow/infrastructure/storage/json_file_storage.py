"""KeyValueStorage backed by one JSON file per entry in a directory."""

import logging
import os
import re
from pathlib import Path

from stockflow.application.interfaces import KeyValueStorage

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9._-]+$")


class JsonFileStorage(KeyValueStorage):
    """Stores ``name`` as ``<directory>/<name>.json``.

    Writes go through a temporary file and an atomic rename, so a crash
    mid-write leaves the previous value in place.
    """

    def __init__(self, directory: str | Path):
        self._directory = Path(directory)

    def _path(self, name: str) -> Path:
        if not _SAFE_NAME.match(name):
            raise ValueError(f"Invalid storage name: {name!r}")
        return self._directory / f"{name}.json"

    def get_item(self, name: str) -> str | None:
        path = self._path(name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, name: str, value: str) -> None:
        path = self._path(name)
        self._directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)
        logger.debug("Persisted %s (%d bytes)", path, len(value))

    def remove_item(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)
