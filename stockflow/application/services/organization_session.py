"""Keeps the persisted organization selection consistent with the server."""

import logging

from stockflow.application.interfaces import OrganizationGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.services.organization_store import OrganizationStore
from stockflow.application.services.query_cache import QueryCache
from stockflow.domain.entities import Organization
from stockflow.domain.exceptions import StockflowError

logger = logging.getLogger(__name__)


class OrganizationSession:
    """Loads the user's organizations and revalidates the current selection.

    The selection restored from storage may point at an organization the
    user has since left; ``load`` replaces it with the server-side default
    (or the first membership) in that case.
    """

    def __init__(
        self,
        gateway: OrganizationGateway,
        store: OrganizationStore,
        cache: QueryCache | None = None,
    ):
        self._gateway = gateway
        self._store = store
        self._cache = cache

    @property
    def store(self) -> OrganizationStore:
        return self._store

    async def load(self) -> Organization | None:
        """Fetch memberships and settle ``current_organization``.

        ``is_loading`` is always False afterwards, even when a call fails.
        """
        self._store.set_is_loading(True)
        try:
            user_id = await self._gateway.get_current_user_id()
            if user_id is None:
                return self._store.current_organization

            organizations = await self._gateway.list_user_organizations()
            self._store.set_organizations(organizations)
            if self._cache is not None:
                self._cache.set_query_data(query_keys.organizations.list(), organizations)

            current = self._store.current_organization
            membership = None
            if current is not None:
                membership = next((o for o in organizations if o.id == current.id), None)

            if membership is not None:
                # Refresh name/role from the server copy.
                self._store.set_current_organization(membership)
            elif current is not None or organizations:
                self._store.set_current_organization(await self._fallback(organizations))

            return self._store.current_organization
        finally:
            self._store.set_is_loading(False)

    async def _fallback(self, organizations: list[Organization]) -> Organization | None:
        if not organizations:
            return None
        default = await self._gateway.get_default_organization()
        if default is not None:
            for organization in organizations:
                if organization.id == default.id:
                    return organization
        return organizations[0]

    async def switch(self, organization_id: str) -> bool:
        """Select another organization and make it the server-side default.

        Cached data belongs to the previous tenant and is dropped. Failing
        to persist the default is logged; the local switch stands.
        """
        if not self._store.switch_organization(organization_id):
            return False

        if self._cache is not None:
            self._cache.clear()
            self._cache.set_query_data(query_keys.organizations.list(), self._store.organizations)

        try:
            await self._gateway.set_default_organization(organization_id)
        except StockflowError:
            logger.exception("Could not persist default organization %s", organization_id)
        return True

    def sign_out(self) -> None:
        self._store.reset()
        if self._cache is not None:
            self._cache.clear()
