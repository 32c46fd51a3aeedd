"""Technician create / update / delete orchestration."""

from stockflow.application.interfaces import TechnicianGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import TechnicianCreate, TechnicianUpdate
from stockflow.application.services.cache_updates import merge_fields, remove_from_list, update_in_list
from stockflow.application.services.mutation_service import MutationService
from stockflow.application.services.query_cache import QueryCache
from stockflow.domain.entities import Technician

_SETTLED_KEYS = (query_keys.technicians.all, query_keys.dashboard.all)


class TechnicianMutationService(MutationService):
    """Technician edits are projected on the detail and on every cached list."""

    def __init__(self, gateway: TechnicianGateway, cache: QueryCache):
        super().__init__(cache)
        self._gateway = gateway

    async def create_technician(self, data: TechnicianCreate) -> Technician:
        return await self._execute(
            "create_technician",
            lambda: self._gateway.create_technician(data),
            invalidate=_SETTLED_KEYS,
        )

    async def update_technician(self, technician_id: str, data: TechnicianUpdate) -> Technician:
        changes = data.changes()
        patches = self._patch(
            query_keys.technicians.detail(technician_id),
            lambda technician: merge_fields(technician, changes),
        )
        patches += self._patch_all(
            query_keys.technicians.lists(),
            lambda technicians: update_in_list(technicians, technician_id, changes),
        )
        return await self._execute(
            "update_technician",
            lambda: self._gateway.update_technician(technician_id, changes),
            patches=patches,
            invalidate=_SETTLED_KEYS,
        )

    async def delete_technician(self, technician_id: str) -> None:
        patches = self._patch_all(
            query_keys.technicians.lists(),
            lambda technicians: remove_from_list(technicians, technician_id),
        )
        return await self._execute(
            "delete_technician",
            lambda: self._gateway.delete_technician(technician_id),
            patches=patches,
            invalidate=_SETTLED_KEYS,
        )
