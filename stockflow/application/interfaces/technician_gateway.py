"""Abstract gateway (port) for technicians."""

from abc import ABC, abstractmethod
from typing import Any

from stockflow.application.schemas.technician import TechnicianCreate
from stockflow.domain.entities import Technician


class TechnicianGateway(ABC):
    """Port for technician persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def list_technicians(self, organization_id: str | None = None) -> list[Technician]:
        """Retrieve technicians with their inventory counters."""
        ...

    @abstractmethod
    async def get_technician(self, technician_id: str) -> Technician | None:
        """Retrieve a technician with inventory lines and last restock date."""
        ...

    @abstractmethod
    async def create_technician(self, data: TechnicianCreate) -> Technician:
        """Persist a new technician.

        Raises:
            DuplicateEntityError: another technician already uses the email.
        """
        ...

    @abstractmethod
    async def update_technician(self, technician_id: str, changes: dict[str, Any]) -> Technician:
        ...

    @abstractmethod
    async def delete_technician(self, technician_id: str) -> None:
        """Delete a technician (their inventory goes with them)."""
        ...
