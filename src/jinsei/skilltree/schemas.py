"""Pydantic schemas for the skill tree: categories, skills, sub-skills, challenges."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from jinsei.db.models import MAX_ID


# --- Requests ---


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field("", max_length=2000)


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = Field(None, max_length=2000)


class SkillCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field("", max_length=2000)
    category_id: int = Field(..., ge=1, le=MAX_ID)


class SkillUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = Field(None, max_length=2000)
    category_id: int | None = Field(None, ge=1, le=MAX_ID)


class SubSkillCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field("", max_length=2000)
    skill_id: int = Field(..., ge=1, le=MAX_ID)


class SubSkillUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = Field(None, max_length=2000)
    skill_id: int | None = Field(None, ge=1, le=MAX_ID)


class ChallengeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field("", max_length=2000)
    sub_skill_id: int = Field(..., ge=1, le=MAX_ID)
    xp_reward: int = Field(10, ge=1)


class ChallengeUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = Field(None, max_length=2000)
    sub_skill_id: int | None = Field(None, ge=1, le=MAX_ID)
    xp_reward: int | None = Field(None, ge=1)


# --- Read views (immutable projections) ---


class _View(BaseModel):
    model_config = ConfigDict(frozen=True)


class LevelProgress(_View):
    level: int
    xp_into_level: int
    xp_for_level: int
    xp_to_next_level: int
    progress: float


class CategoryResponse(_View):
    id: int
    name: str
    description: str
    xp: int
    level: int
    progress: LevelProgress
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SkillResponse(_View):
    id: int
    name: str
    description: str
    category_id: int
    xp: int
    level: int
    progress: LevelProgress
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubSkillResponse(_View):
    id: int
    name: str
    description: str
    skill_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChallengeResponse(_View):
    id: int
    name: str
    description: str
    sub_skill_id: int
    xp_reward: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


# --- Trees ---


class SubSkillTree(SubSkillResponse):
    challenges: list[ChallengeResponse] = []


class SkillTree(SkillResponse):
    sub_skills: list[SubSkillTree] = []


class CategoryTree(CategoryResponse):
    skills: list[SkillTree] = []


class LevelPolicyEntry(BaseModel):
    entity: str
    xp_per_level: int


class LevelPolicyResponse(BaseModel):
    levels: list[LevelPolicyEntry]
