"""Current-organization selection — only the selection itself is persisted."""

import dataclasses
import logging
from typing import Any

from stockflow.application.interfaces import KeyValueStorage
from stockflow.application.services.persisted_state import PersistedState
from stockflow.domain.entities import Organization, OrganizationRole

logger = logging.getLogger(__name__)

STORAGE_NAME = "organization-storage"


def _organization_to_dict(organization: Organization) -> dict[str, Any]:
    data = dataclasses.asdict(organization)
    data["role"] = OrganizationRole(organization.role).value
    return data


def _organization_from_dict(data: Any) -> Organization | None:
    if not isinstance(data, dict):
        return None
    try:
        return Organization(
            id=data["id"],
            name=data["name"],
            slug=data["slug"],
            logo_url=data.get("logo_url"),
            role=OrganizationRole(data.get("role", OrganizationRole.MEMBER)),
        )
    except (KeyError, ValueError):
        logger.warning("Ignoring malformed persisted organization: %r", data)
        return None


class OrganizationStore:
    """Holds the member organizations and the one currently selected.

    ``organizations`` and ``is_loading`` live in memory only; the current
    organization is written through to storage on every change.
    """

    def __init__(self, storage: KeyValueStorage):
        self._persisted = PersistedState(storage, STORAGE_NAME)
        self.organizations: list[Organization] = []
        self.is_loading = True
        self.current_organization = _organization_from_dict(
            self._persisted.load().get("currentOrganization")
        )

    def set_current_organization(self, organization: Organization | None) -> None:
        self.current_organization = organization
        self._save()

    def set_organizations(self, organizations: list[Organization]) -> None:
        self.organizations = list(organizations)

    def set_is_loading(self, loading: bool) -> None:
        self.is_loading = loading

    def switch_organization(self, organization_id: str) -> bool:
        """Select a known organization; unknown ids are ignored.

        Returns True when the selection changed to ``organization_id``.
        """
        organization = next((o for o in self.organizations if o.id == organization_id), None)
        if organization is None:
            return False
        self.set_current_organization(organization)
        return True

    def reset(self) -> None:
        self.current_organization = None
        self.organizations = []
        self.is_loading = True
        self._save()

    def _save(self) -> None:
        current = self.current_organization
        self._persisted.save({
            "currentOrganization": _organization_to_dict(current) if current else None,
        })
