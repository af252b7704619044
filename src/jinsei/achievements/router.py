"""Achievement API endpoints — recording a completion drives the XP cascade."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from jinsei.achievements.schemas import (
    AchievementCreateRequest,
    AchievementCreateResponse,
    AchievementResponse,
    AchievementUpdateRequest,
    ChallengeWithHierarchy,
    SkillWithCategory,
    SubSkillWithSkill,
    XPAwardResponse,
)
from jinsei.achievements.service import (
    AchievementRecord,
    delete_achievement,
    get_achievement,
    list_achievements,
    record_achievement,
    update_achievement,
)
from jinsei.auth.dependencies import get_current_profile
from jinsei.database import get_session
from jinsei.db.models import MAX_ID, Profile
from jinsei.progression.hierarchy import category_view, challenge_view, skill_view, sub_skill_view
from jinsei.progression.xp_service import publish_level_ups
from jinsei.redis_client import get_optional_redis

router = APIRouter(prefix="/api/v1", tags=["Achievements"])


def _achievement_response(record: AchievementRecord) -> AchievementResponse:
    """Build an AchievementResponse with the challenge's full ancestry."""
    path = record.path
    achievement = record.achievement
    return AchievementResponse(
        id=achievement.id,
        profile_id=achievement.profile_id,
        challenge_id=achievement.challenge_id,
        completed_at=achievement.completed_at,
        notes=achievement.notes,
        created_at=achievement.created_at,
        updated_at=achievement.updated_at,
        challenge=ChallengeWithHierarchy(
            **challenge_view(path.challenge).model_dump(),
            sub_skill=SubSkillWithSkill(
                **sub_skill_view(path.sub_skill).model_dump(),
                skill=SkillWithCategory(
                    **skill_view(path.skill).model_dump(),
                    category=category_view(path.category),
                ),
            ),
        ),
    )


@router.get("/achievements", response_model=list[AchievementResponse])
async def list_achievements_endpoint(
    challenge_id: int | None = Query(None, ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """List own achievements, newest first, optionally for one challenge."""
    records = await list_achievements(db, profile.id, challenge_id)
    return [_achievement_response(r) for r in records]


@router.post("/achievements", response_model=AchievementCreateResponse, status_code=201)
async def create_achievement_endpoint(
    body: AchievementCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_optional_redis),
):
    """Complete a challenge: record the achievement and award XP to its skill and category."""
    record = await record_achievement(
        db,
        profile.id,
        body.challenge_id,
        notes=body.notes,
        completed_at=body.completed_at,
    )
    await db.commit()

    await publish_level_ups(redis, profile.id, record.xp_updates)

    return AchievementCreateResponse(
        **_achievement_response(record).model_dump(),
        xp_awarded=[
            XPAwardResponse(
                entity=u.entity,
                entity_id=u.entity_id,
                amount=u.amount,
                xp=u.xp,
                level=u.level,
                leveled_up=u.leveled_up,
            )
            for u in record.xp_updates
        ],
    )


@router.get("/achievements/{achievement_id}", response_model=AchievementResponse)
async def get_achievement_endpoint(
    achievement_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Get one achievement with its challenge hierarchy."""
    record = await get_achievement(db, profile.id, achievement_id)
    return _achievement_response(record)


@router.patch("/achievements/{achievement_id}", response_model=AchievementResponse)
async def update_achievement_endpoint(
    body: AchievementUpdateRequest,
    achievement_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Edit an achievement's notes or completion time."""
    record = await update_achievement(
        db, profile.id, achievement_id, notes=body.notes, completed_at=body.completed_at
    )
    await db.commit()
    return _achievement_response(record)


@router.delete("/achievements/{achievement_id}", status_code=204)
async def delete_achievement_endpoint(
    achievement_id: int = Path(..., ge=1, le=MAX_ID),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Delete an achievement. Awarded XP is kept."""
    await delete_achievement(db, profile.id, achievement_id)
    await db.commit()
