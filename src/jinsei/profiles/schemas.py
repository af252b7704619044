"""Request/response schemas for profile endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from jinsei.skilltree.schemas import LevelProgress


class ProfileCreateRequest(BaseModel):
    """Create a profile. Credentials are handled by the auth gateway."""

    name: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    bio: str = Field("", max_length=2000)
    avatar_url: str = Field("", max_length=2048)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    email: EmailStr | None = None
    bio: str | None = Field(None, max_length=2000)
    avatar_url: str | None = Field(None, max_length=2048)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        """Normalize email to lowercase."""
        return v.lower().strip() if v is not None else None


class PublicProfileResponse(BaseModel):
    """Profile as seen by other profiles. Email is not exposed."""

    id: int
    name: str
    bio: str
    avatar_url: str
    total_xp: int
    total_level: int
    progress: LevelProgress
    created_at: datetime | None = None


class ProfileResponse(PublicProfileResponse):
    email: str
    updated_at: datetime | None = None
