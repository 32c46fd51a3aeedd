"""Serialize-on-write / deserialize-on-init envelope for local stores.

Stored documents keep the browser client's layout so that both clients can
share a profile:

    {"state": {...}, "version": 0}
"""

import json
import logging
from typing import Any

from stockflow.application.interfaces import KeyValueStorage

logger = logging.getLogger(__name__)


class PersistedState:
    """One named, versioned JSON document in a KeyValueStorage."""

    def __init__(self, storage: KeyValueStorage, name: str, version: int = 0):
        self._storage = storage
        self._name = name
        self._version = version

    @property
    def name(self) -> str:
        return self._name

    def load(self) -> dict[str, Any]:
        """Return the stored state, or an empty dict if absent or unreadable."""
        raw = self._storage.get_item(self._name)
        if raw is None:
            return {}

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable persisted state '%s'", self._name)
            return {}

        if not isinstance(payload, dict) or not isinstance(payload.get("state"), dict):
            logger.warning("Discarding malformed persisted state '%s'", self._name)
            return {}
        if payload.get("version", 0) != self._version:
            logger.warning(
                "Discarding persisted state '%s' (version %s, expected %s)",
                self._name,
                payload.get("version"),
                self._version,
            )
            return {}
        return payload["state"]

    def save(self, state: dict[str, Any]) -> None:
        self._storage.set_item(
            self._name,
            json.dumps({"state": state, "version": self._version}),
        )

    def clear(self) -> None:
        self._storage.remove_item(self._name)
