"""Abstract interface (port) for the client's persisted key-value state."""

from abc import ABC, abstractmethod


class KeyValueStorage(ABC):
    """Port for small named JSON documents that outlive the process."""

    @abstractmethod
    def get_item(self, name: str) -> str | None:
        """Return the stored text for ``name``, or None if never written."""
        ...

    @abstractmethod
    def set_item(self, name: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, name: str) -> None:
        ...
