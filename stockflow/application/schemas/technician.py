"""Pydantic DTOs for technicians."""

from typing import Any

from pydantic import BaseModel, Field


class TechnicianCreate(BaseModel):
    organization_id: str
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str
    phone: str | None = None
    city: str | None = None


class TechnicianUpdate(BaseModel):
    """All fields optional — only the fields that were set are sent."""

    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)
    email: str | None = None
    phone: str | None = None
    city: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
