"""Organizations (tenants), their members and pending invitations."""

from dataclasses import dataclass
from enum import Enum


class OrganizationRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


@dataclass
class Organization:
    """A tenant as seen by the signed-in user, including that user's role."""

    id: str
    name: str
    slug: str
    logo_url: str | None = None
    role: OrganizationRole = OrganizationRole.MEMBER


@dataclass
class OrganizationMember:
    id: str
    user_id: str
    organization_id: str
    role: OrganizationRole | None = None
    is_default: bool = False
    created_at: str | None = None


@dataclass
class OrganizationInvitation:
    id: str
    organization_id: str
    email: str
    role: OrganizationRole | None = None
    token: str | None = None
    invited_by: str | None = None
    expires_at: str | None = None
    accepted_at: str | None = None
    created_at: str | None = None


def can_invite(role: str) -> bool:
    return role in (OrganizationRole.OWNER, OrganizationRole.ADMIN)


def can_manage_members(role: str) -> bool:
    return role in (OrganizationRole.OWNER, OrganizationRole.ADMIN)


def can_delete_organization(role: str) -> bool:
    return role == OrganizationRole.OWNER


def can_manage_admins(role: str) -> bool:
    return role == OrganizationRole.OWNER
