"""User Schemas: registration of identified participants."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from parley.schemas.base import CamelModel


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    relationship_name: str | None = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class UserResponse(CamelModel):
    id: UUID
    name: str
    relationship_name: str | None
    created_at: datetime
