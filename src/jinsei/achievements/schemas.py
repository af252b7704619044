"""Pydantic schemas for achievement endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from jinsei.achievements.service import as_utc
from jinsei.db.models import MAX_ID
from jinsei.skilltree.schemas import (
    CategoryResponse,
    ChallengeResponse,
    SkillResponse,
    SubSkillResponse,
)


class AchievementCreateRequest(BaseModel):
    challenge_id: int = Field(..., ge=1, le=MAX_ID)
    notes: str = Field("", max_length=2000)
    completed_at: datetime | None = None


class AchievementUpdateRequest(BaseModel):
    notes: str | None = Field(None, max_length=2000)
    completed_at: datetime | None = None


# --- Resolved hierarchy ---


class SkillWithCategory(SkillResponse):
    category: CategoryResponse


class SubSkillWithSkill(SubSkillResponse):
    skill: SkillWithCategory


class ChallengeWithHierarchy(ChallengeResponse):
    sub_skill: SubSkillWithSkill


class AchievementResponse(BaseModel):
    id: int
    profile_id: int
    challenge_id: int
    completed_at: datetime
    notes: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    challenge: ChallengeWithHierarchy

    @field_validator("completed_at")
    @classmethod
    def completed_at_utc(cls, v: datetime) -> datetime:
        """Stores without zone support hand back naive UTC."""
        return as_utc(v)


class XPAwardResponse(BaseModel):
    entity: str  # "skill" | "category"
    entity_id: int
    amount: int
    xp: int
    level: int
    leveled_up: bool


class AchievementCreateResponse(AchievementResponse):
    xp_awarded: list[XPAwardResponse] = []
