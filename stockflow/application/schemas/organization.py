"""Pydantic DTOs for organizations, memberships and invitations."""

from typing import Any, Literal

from pydantic import BaseModel, Field

AssignableRole = Literal["admin", "member"]


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    logo_url: str | None = None


class OrganizationUpdate(BaseModel):
    """Schema for updating an organization — the slug is normalized on save."""

    id: str
    name: str | None = None
    slug: str | None = None
    logo_url: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"id"})


class MemberRoleUpdate(BaseModel):
    organization_id: str
    user_id: str
    role: AssignableRole


class MemberRemoval(BaseModel):
    organization_id: str
    user_id: str


class InvitationCreate(BaseModel):
    organization_id: str
    email: str = Field(..., min_length=3)
    role: AssignableRole = "member"


class InvitationCancel(BaseModel):
    organization_id: str
    invitation_id: str
