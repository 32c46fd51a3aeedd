"""Abstract gateway (port) for organizations, memberships and invitations."""

from abc import ABC, abstractmethod
from typing import Any

from stockflow.domain.entities import (
    Organization,
    OrganizationInvitation,
    OrganizationMember,
)


class OrganizationGateway(ABC):
    """Port for tenant management — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_current_user_id(self) -> str | None:
        """ID of the signed-in user, or None when signed out."""
        ...

    @abstractmethod
    async def list_user_organizations(self) -> list[Organization]:
        """Organizations the signed-in user belongs to, oldest membership first."""
        ...

    @abstractmethod
    async def get_default_organization(self) -> Organization | None:
        """The user's default organization, falling back to the first one."""
        ...

    @abstractmethod
    async def set_default_organization(self, organization_id: str) -> None:
        ...

    @abstractmethod
    async def create_organization(
        self, name: str, slug: str, logo_url: str | None = None
    ) -> Organization:
        """Create an organization owned by the signed-in user."""
        ...

    @abstractmethod
    async def update_organization(self, organization_id: str, changes: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete_organization(self, organization_id: str) -> None:
        """Delete an organization and all its data (owner only)."""
        ...

    @abstractmethod
    async def list_members(self, organization_id: str) -> list[OrganizationMember]:
        ...

    @abstractmethod
    async def update_member_role(self, organization_id: str, user_id: str, role: str) -> None:
        ...

    @abstractmethod
    async def remove_member(self, organization_id: str, user_id: str) -> None:
        ...

    @abstractmethod
    async def invite_user(self, organization_id: str, email: str, role: str = "member") -> OrganizationInvitation:
        ...

    @abstractmethod
    async def list_pending_invitations(self, organization_id: str) -> list[OrganizationInvitation]:
        """Invitations neither accepted nor expired, most recent first."""
        ...

    @abstractmethod
    async def cancel_invitation(self, invitation_id: str) -> None:
        ...
