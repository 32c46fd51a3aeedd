"""Organization, membership and invitation orchestration."""

from stockflow.application.interfaces import OrganizationGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import (
    InvitationCancel,
    InvitationCreate,
    MemberRemoval,
    MemberRoleUpdate,
    OrganizationCreate,
    OrganizationUpdate,
)
from stockflow.application.services.cache_updates import remove_from_list, update_in_list
from stockflow.application.services.mutation_service import MutationService
from stockflow.application.services.query_cache import QueryCache
from stockflow.domain.entities import Organization, OrganizationInvitation


class OrganizationMutationService(MutationService):
    def __init__(self, gateway: OrganizationGateway, cache: QueryCache):
        super().__init__(cache)
        self._gateway = gateway

    # ── Organizations ───────────────────────────────────────────────

    async def create_organization(self, data: OrganizationCreate) -> Organization:
        return await self._execute(
            "create_organization",
            lambda: self._gateway.create_organization(data.name, data.slug, data.logo_url),
            invalidate=[query_keys.organizations.list()],
        )

    async def update_organization(self, data: OrganizationUpdate) -> None:
        changes = data.changes()
        patches = self._patch(
            query_keys.organizations.list(),
            lambda organizations: update_in_list(organizations, data.id, changes),
        )
        return await self._execute(
            "update_organization",
            lambda: self._gateway.update_organization(data.id, changes),
            patches=patches,
            invalidate=[query_keys.organizations.list()],
        )

    async def delete_organization(self, organization_id: str) -> None:
        patches = self._patch(
            query_keys.organizations.list(),
            lambda organizations: remove_from_list(organizations, organization_id),
        )
        return await self._execute(
            "delete_organization",
            lambda: self._gateway.delete_organization(organization_id),
            patches=patches,
            invalidate=[query_keys.organizations.list()],
        )

    # ── Members ─────────────────────────────────────────────────────

    async def update_member_role(self, data: MemberRoleUpdate) -> None:
        return await self._execute(
            "update_member_role",
            lambda: self._gateway.update_member_role(data.organization_id, data.user_id, data.role),
            invalidate=[query_keys.organizations.members(data.organization_id)],
        )

    async def remove_member(self, data: MemberRemoval) -> None:
        key = query_keys.organizations.members(data.organization_id)
        patches = self._patch(
            key,
            lambda members: remove_from_list(members, data.user_id, id_field="user_id"),
        )
        return await self._execute(
            "remove_member",
            lambda: self._gateway.remove_member(data.organization_id, data.user_id),
            patches=patches,
            invalidate=[key],
        )

    # ── Invitations ─────────────────────────────────────────────────

    async def invite_user(self, data: InvitationCreate) -> OrganizationInvitation:
        return await self._execute(
            "invite_user",
            lambda: self._gateway.invite_user(data.organization_id, data.email, data.role),
            invalidate=[query_keys.organizations.invitations(data.organization_id)],
        )

    async def cancel_invitation(self, data: InvitationCancel) -> None:
        key = query_keys.organizations.invitations(data.organization_id)
        patches = self._patch(
            key,
            lambda invitations: remove_from_list(invitations, data.invitation_id),
        )
        return await self._execute(
            "cancel_invitation",
            lambda: self._gateway.cancel_invitation(data.invitation_id),
            patches=patches,
            invalidate=[key],
        )
