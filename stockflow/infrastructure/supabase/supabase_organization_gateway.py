"""Backend implementation of OrganizationGateway.

Every operation acts on behalf of the signed-in user, resolved through
the auth endpoint on each call.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any

from stockflow.application.interfaces import OrganizationGateway
from stockflow.domain.entities import (
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationRole,
)
from stockflow.domain.exceptions import (
    BackendError,
    NotAuthenticatedError,
    PermissionDeniedError,
)
from stockflow.infrastructure.supabase.errors import duplicate_or_operation_error, operation_error
from stockflow.infrastructure.supabase.supabase_client import NO_ROWS, SupabaseClient

logger = logging.getLogger(__name__)

DUPLICATE_SLUG = "Ce slug est déjà utilisé par une autre organisation"
DUPLICATE_INVITATION = "Une invitation a déjà été envoyée à cet email"
OWNER_ONLY_DELETE = "Seul le propriétaire peut supprimer l'organisation"

_MEMBERSHIP_COLUMNS = """
    role,
    is_default,
    organization:organizations(id, name, slug, logo_url)
"""


def normalize_slug(slug: str) -> str:
    """Lower-case, with anything outside ``[a-z0-9-]`` replaced by ``-``."""
    return re.sub(r"[^a-z0-9-]", "-", slug.lower())


def _role(value: str | None) -> OrganizationRole | None:
    return OrganizationRole(value) if value else None


class SupabaseOrganizationGateway(OrganizationGateway):
    def __init__(self, client: SupabaseClient):
        self._client = client

    async def get_current_user_id(self) -> str | None:
        user = await self._client.get_user()
        return user.get("id") if user else None

    async def _require_user_id(self) -> str:
        user_id = await self.get_current_user_id()
        if not user_id:
            raise NotAuthenticatedError()
        return user_id

    # ── Memberships of the signed-in user ───────────────────────────

    async def list_user_organizations(self) -> list[Organization]:
        user_id = await self.get_current_user_id()
        if not user_id:
            return []
        try:
            result = await self._client.select(
                "user_organizations",
                columns=_MEMBERSHIP_COLUMNS,
                filters=[("user_id", f"eq.{user_id}")],
                order="created_at.asc",
            )
        except BackendError as e:
            raise operation_error("de la récupération des organisations", e) from e
        return [self._membership_to_entity(row) for row in result.data]

    async def get_default_organization(self) -> Organization | None:
        user_id = await self.get_current_user_id()
        if not user_id:
            return None
        try:
            row = await self._client.select_single(
                "user_organizations",
                columns=_MEMBERSHIP_COLUMNS,
                filters=[("user_id", f"eq.{user_id}"), ("is_default", "eq.true")],
            )
        except BackendError as e:
            logger.info("No default organization (%s), using the first membership", e.code or e.message)
            organizations = await self.list_user_organizations()
            return organizations[0] if organizations else None
        return self._membership_to_entity(row)

    async def set_default_organization(self, organization_id: str) -> None:
        user_id = await self._require_user_id()
        try:
            await self._client.update(
                "user_organizations", {"is_default": False}, filters=[("user_id", f"eq.{user_id}")]
            )
            await self._client.update(
                "user_organizations",
                {"is_default": True},
                filters=[("user_id", f"eq.{user_id}"), ("organization_id", f"eq.{organization_id}")],
            )
        except BackendError as e:
            raise operation_error("de la définition de l'organisation par défaut", e) from e

    # ── Organizations ───────────────────────────────────────────────

    async def create_organization(
        self, name: str, slug: str, logo_url: str | None = None
    ) -> Organization:
        params: dict[str, Any] = {"org_name": name, "org_slug": slug}
        if logo_url:
            params["org_logo_url"] = logo_url
        try:
            data = await self._client.rpc("create_organization_with_owner", params)
        except BackendError as e:
            raise duplicate_or_operation_error("de la création", e, DUPLICATE_SLUG) from e
        return Organization(
            id=data["id"],
            name=data.get("name", name),
            slug=data.get("slug", slug),
            logo_url=data.get("logo_url"),
            role=OrganizationRole.OWNER,
        )

    async def update_organization(self, organization_id: str, changes: dict[str, Any]) -> None:
        values: dict[str, Any] = {}
        if changes.get("name"):
            values["name"] = changes["name"]
        if changes.get("slug"):
            values["slug"] = normalize_slug(changes["slug"])
        if "logo_url" in changes:
            values["logo_url"] = changes["logo_url"]
        try:
            await self._client.update(
                "organizations", values, filters=[("id", f"eq.{organization_id}")]
            )
        except BackendError as e:
            raise duplicate_or_operation_error("de la mise à jour", e, DUPLICATE_SLUG) from e

    async def delete_organization(self, organization_id: str) -> None:
        user_id = await self._require_user_id()
        try:
            membership = await self._client.select_single(
                "user_organizations",
                columns="role",
                filters=[("user_id", f"eq.{user_id}"), ("organization_id", f"eq.{organization_id}")],
            )
        except BackendError as e:
            if e.code != NO_ROWS:
                raise operation_error("de la suppression", e) from e
            membership = {}
        if membership.get("role") != OrganizationRole.OWNER.value:
            raise PermissionDeniedError(OWNER_ONLY_DELETE)

        try:
            await self._client.delete("organizations", filters=[("id", f"eq.{organization_id}")])
        except BackendError as e:
            raise operation_error("de la suppression", e) from e

    # ── Members ─────────────────────────────────────────────────────

    async def list_members(self, organization_id: str) -> list[OrganizationMember]:
        try:
            result = await self._client.select(
                "user_organizations",
                filters=[("organization_id", f"eq.{organization_id}")],
                order="created_at.asc",
            )
        except BackendError as e:
            raise operation_error("de la récupération des membres", e) from e
        return [
            OrganizationMember(
                id=row["id"],
                user_id=row.get("user_id", ""),
                organization_id=row.get("organization_id", organization_id),
                role=_role(row.get("role")),
                is_default=bool(row.get("is_default")),
                created_at=row.get("created_at"),
            )
            for row in result.data
        ]

    async def update_member_role(self, organization_id: str, user_id: str, role: str) -> None:
        try:
            await self._client.update(
                "user_organizations",
                {"role": role},
                filters=[("organization_id", f"eq.{organization_id}"), ("user_id", f"eq.{user_id}")],
            )
        except BackendError as e:
            raise operation_error("de la mise à jour du rôle", e) from e

    async def remove_member(self, organization_id: str, user_id: str) -> None:
        try:
            await self._client.delete(
                "user_organizations",
                filters=[("organization_id", f"eq.{organization_id}"), ("user_id", f"eq.{user_id}")],
            )
        except BackendError as e:
            raise operation_error("du retrait du membre", e) from e

    # ── Invitations ─────────────────────────────────────────────────

    async def invite_user(self, organization_id: str, email: str, role: str = "member") -> OrganizationInvitation:
        inviter = await self.get_current_user_id()
        try:
            rows = await self._client.insert(
                "organization_invitations",
                {
                    "organization_id": organization_id,
                    "email": email.lower(),
                    "role": role,
                    "invited_by": inviter,
                },
            )
        except BackendError as e:
            raise duplicate_or_operation_error("de l'invitation", e, DUPLICATE_INVITATION) from e
        return self._to_invitation(rows[0])

    async def list_pending_invitations(self, organization_id: str) -> list[OrganizationInvitation]:
        now = datetime.now(timezone.utc).isoformat()
        try:
            result = await self._client.select(
                "organization_invitations",
                filters=[
                    ("organization_id", f"eq.{organization_id}"),
                    ("accepted_at", "is.null"),
                    ("expires_at", f"gt.{now}"),
                ],
                order="created_at.desc",
            )
        except BackendError as e:
            raise operation_error("de la récupération des invitations", e) from e
        return [self._to_invitation(row) for row in result.data]

    async def cancel_invitation(self, invitation_id: str) -> None:
        try:
            await self._client.delete("organization_invitations", filters=[("id", f"eq.{invitation_id}")])
        except BackendError as e:
            raise operation_error("de l'annulation de l'invitation", e) from e

    # ── Mapping ─────────────────────────────────────────────────────

    @staticmethod
    def _membership_to_entity(row: dict[str, Any]) -> Organization:
        org = row.get("organization") or {}
        if isinstance(org, list):
            org = org[0] if org else {}
        return Organization(
            id=org.get("id", ""),
            name=org.get("name", ""),
            slug=org.get("slug", ""),
            logo_url=org.get("logo_url"),
            role=_role(row.get("role")) or OrganizationRole.MEMBER,
        )

    @staticmethod
    def _to_invitation(row: dict[str, Any]) -> OrganizationInvitation:
        return OrganizationInvitation(
            id=row["id"],
            organization_id=row.get("organization_id", ""),
            email=row.get("email", ""),
            role=_role(row.get("role")),
            token=row.get("token"),
            invited_by=row.get("invited_by"),
            expires_at=row.get("expires_at"),
            accepted_at=row.get("accepted_at"),
            created_at=row.get("created_at"),
        )
