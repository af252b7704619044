"""Skill tree API endpoints — categories, skills, sub-skills, challenges."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jinsei.auth.dependencies import get_current_profile
from jinsei.database import get_session
from jinsei.db.models import MAX_ID, Profile
from jinsei.progression import hierarchy
from jinsei.progression.hierarchy import category_view, challenge_view, skill_view, sub_skill_view
from jinsei.progression.levels import XP_PER_LEVEL
from jinsei.skilltree import service
from jinsei.skilltree.schemas import (
    CategoryCreateRequest,
    CategoryResponse,
    CategoryTree,
    CategoryUpdateRequest,
    ChallengeCreateRequest,
    ChallengeResponse,
    ChallengeUpdateRequest,
    LevelPolicyEntry,
    LevelPolicyResponse,
    SkillCreateRequest,
    SkillResponse,
    SkillTree,
    SkillUpdateRequest,
    SubSkillCreateRequest,
    SubSkillResponse,
    SubSkillTree,
    SubSkillUpdateRequest,
)

router = APIRouter(prefix="/api/v1", tags=["Skill Tree"])


@router.get("/levels", response_model=LevelPolicyResponse)
async def list_levels():
    """XP needed per level for each entity type."""
    return LevelPolicyResponse(
        levels=[LevelPolicyEntry(entity=entity, xp_per_level=xp) for entity, xp in XP_PER_LEVEL.items()]
    )


# ── Categories ──


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """List own categories by name."""
    categories = await service.list_categories(db, profile.id)
    return [category_view(c) for c in categories]


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    body: CategoryCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    category = await service.create_category(db, profile.id, body.name, body.description)
    await db.commit()
    return category_view(category)


@router.get("/categories/{category_id}", response_model=CategoryTree)
async def get_category(
    category_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Category with its full skill tree."""
    return await hierarchy.category_tree(db, profile.id, category_id)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    body: CategoryUpdateRequest,
    category_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    category = await service.update_category(
        db, profile.id, category_id, name=body.name, description=body.description
    )
    await db.commit()
    return category_view(category)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Delete a category and everything beneath it."""
    await service.delete_category(db, profile.id, category_id)
    await db.commit()


# ── Skills ──


@router.get("/skills", response_model=list[SkillResponse])
async def list_skills(
    category_id: int | None = Query(None, ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    skills = await service.list_skills(db, profile.id, category_id)
    return [skill_view(s) for s in skills]


@router.post("/skills", response_model=SkillResponse, status_code=201)
async def create_skill(
    body: SkillCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    skill = await service.create_skill(db, profile.id, body.category_id, body.name, body.description)
    await db.commit()
    return skill_view(skill)


@router.get("/skills/{skill_id}", response_model=SkillTree)
async def get_skill(
    skill_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Skill with its sub-skills and their challenges."""
    return await hierarchy.skill_tree(db, profile.id, skill_id)


@router.patch("/skills/{skill_id}", response_model=SkillResponse)
async def update_skill(
    body: SkillUpdateRequest,
    skill_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    skill = await service.update_skill(
        db,
        profile.id,
        skill_id,
        name=body.name,
        description=body.description,
        category_id=body.category_id,
    )
    await db.commit()
    return skill_view(skill)


@router.delete("/skills/{skill_id}", status_code=204)
async def delete_skill(
    skill_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    await service.delete_skill(db, profile.id, skill_id)
    await db.commit()


# ── Sub-skills ──


@router.get("/sub-skills", response_model=list[SubSkillResponse])
async def list_sub_skills(
    skill_id: int | None = Query(None, ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    sub_skills = await service.list_sub_skills(db, profile.id, skill_id)
    return [sub_skill_view(s) for s in sub_skills]


@router.post("/sub-skills", response_model=SubSkillResponse, status_code=201)
async def create_sub_skill(
    body: SubSkillCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    sub_skill = await service.create_sub_skill(db, profile.id, body.skill_id, body.name, body.description)
    await db.commit()
    return sub_skill_view(sub_skill)


@router.get("/sub-skills/{sub_skill_id}", response_model=SubSkillTree)
async def get_sub_skill(
    sub_skill_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Sub-skill with its challenges."""
    return await hierarchy.sub_skill_tree(db, profile.id, sub_skill_id)


@router.patch("/sub-skills/{sub_skill_id}", response_model=SubSkillResponse)
async def update_sub_skill(
    body: SubSkillUpdateRequest,
    sub_skill_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    sub_skill = await service.update_sub_skill(
        db,
        profile.id,
        sub_skill_id,
        name=body.name,
        description=body.description,
        skill_id=body.skill_id,
    )
    await db.commit()
    return sub_skill_view(sub_skill)


@router.delete("/sub-skills/{sub_skill_id}", status_code=204)
async def delete_sub_skill(
    sub_skill_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    await service.delete_sub_skill(db, profile.id, sub_skill_id)
    await db.commit()


# ── Challenges ──


@router.get("/challenges", response_model=list[ChallengeResponse])
async def list_challenges(
    sub_skill_id: int | None = Query(None, ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    challenges = await service.list_challenges(db, profile.id, sub_skill_id)
    return [challenge_view(c) for c in challenges]


@router.post("/challenges", response_model=ChallengeResponse, status_code=201)
async def create_challenge(
    body: ChallengeCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    challenge = await service.create_challenge(
        db,
        profile.id,
        body.sub_skill_id,
        body.name,
        body.description,
        xp_reward=body.xp_reward,
    )
    await db.commit()
    return challenge_view(challenge)


@router.get("/challenges/{challenge_id}", response_model=ChallengeResponse)
async def get_challenge(
    challenge_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    challenge = await service.get_challenge(db, profile.id, challenge_id)
    return challenge_view(challenge)


@router.patch("/challenges/{challenge_id}", response_model=ChallengeResponse)
async def update_challenge(
    body: ChallengeUpdateRequest,
    challenge_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    challenge = await service.update_challenge(
        db,
        profile.id,
        challenge_id,
        name=body.name,
        description=body.description,
        sub_skill_id=body.sub_skill_id,
        xp_reward=body.xp_reward,
    )
    await db.commit()
    return challenge_view(challenge)


@router.delete("/challenges/{challenge_id}", status_code=204)
async def delete_challenge(
    challenge_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Delete a challenge and its achievements."""
    await service.delete_challenge(db, profile.id, challenge_id)
    await db.commit()
