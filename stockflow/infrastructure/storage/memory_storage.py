"""In-process KeyValueStorage — nothing survives the process."""

from stockflow.application.interfaces import KeyValueStorage


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, name: str) -> str | None:
        return self._items.get(name)

    def set_item(self, name: str, value: str) -> None:
        self._items[name] = value

    def remove_item(self, name: str) -> None:
        self._items.pop(name, None)
