"""Dashboard task dismissals — hidden for 24 hours, persisted locally."""

import time
from collections.abc import Callable

from stockflow.application.interfaces import KeyValueStorage
from stockflow.application.services.persisted_state import PersistedState

STORAGE_NAME = "task-dismissals"
DISMISSAL_TTL_MS = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


def task_key(task_type: str, entity_id: str) -> str:
    return f"{task_type}:{entity_id}"


class TaskDismissalStore:
    """Remembers which dashboard tasks the user dismissed, and when.

    Timestamps are epoch milliseconds; the clock is injectable for tests.
    """

    def __init__(self, storage: KeyValueStorage, clock: Callable[[], int] = _now_ms):
        self._persisted = PersistedState(storage, STORAGE_NAME)
        self._clock = clock

        stored = self._persisted.load().get("dismissedTasks") or {}
        self._dismissed: dict[str, int] = {
            str(key): int(ts)
            for key, ts in stored.items()
            if isinstance(ts, (int, float)) and not isinstance(ts, bool)
        }

    @property
    def dismissed_tasks(self) -> dict[str, int]:
        return dict(self._dismissed)

    def dismiss_task(self, task_type: str, entity_id: str) -> None:
        self._dismissed[task_key(task_type, entity_id)] = self._clock()
        self._save()

    def is_task_dismissed(self, task_type: str, entity_id: str) -> bool:
        timestamp = self._dismissed.get(task_key(task_type, entity_id))
        if timestamp is None:
            return False
        return self._clock() - timestamp < DISMISSAL_TTL_MS

    def clear_expired(self) -> None:
        now = self._clock()
        self._dismissed = {
            key: ts for key, ts in self._dismissed.items() if now - ts < DISMISSAL_TTL_MS
        }
        self._save()

    def clear(self) -> None:
        self._dismissed = {}
        self._save()

    def _save(self) -> None:
        self._persisted.save({"dismissedTasks": self._dismissed})
