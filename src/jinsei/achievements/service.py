"""Achievement recording and the XP award cascade.

Recording an achievement:
1. Resolve the challenge through sub-skill, skill and category, restricted to
   the acting profile. Missing or foreign -> NotFoundError, nothing written.
2. Insert the achievement (completed_at defaults to now).
3. Award the challenge's xp_reward to the skill, then to the category.
4. Return the achievement with its resolved hierarchy and the XP updates.

Steps 2 and 3 run in the caller's transaction. If the award fails the caller
must roll back, so an achievement never exists without its XP.

Deleting an achievement does not take back the XP it awarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Select, select

from jinsei.db.models import Achievement, Category, Challenge, Skill, SubSkill
from jinsei.errors import NotFoundError
from jinsei.progression.xp_service import XPUpdate, award_challenge_xp

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def as_utc(value: datetime) -> datetime:
    """Convert to UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ChallengePath:
    """A challenge with every ancestor up to its category."""

    challenge: Challenge
    sub_skill: SubSkill
    skill: Skill
    category: Category


@dataclass(frozen=True)
class AchievementRecord:
    achievement: Achievement
    path: ChallengePath
    xp_updates: list[XPUpdate] = field(default_factory=list)


def _join_path(query: Select) -> Select:
    return (
        query
        .join(SubSkill, Challenge.sub_skill_id == SubSkill.id)
        .join(Skill, SubSkill.skill_id == Skill.id)
        .join(Category, Skill.category_id == Category.id)
    )


async def resolve_challenge(
    db: AsyncSession,
    profile_id: int,
    challenge_id: int,
) -> ChallengePath | None:
    """Load a challenge and its ancestors if the profile owns it."""
    result = await db.execute(
        _join_path(select(Challenge, SubSkill, Skill, Category))
        .where(Challenge.id == challenge_id, Skill.profile_id == profile_id)
    )
    row = result.one_or_none()
    if row is None:
        return None
    return ChallengePath(challenge=row.Challenge, sub_skill=row.SubSkill, skill=row.Skill, category=row.Category)


async def record_achievement(
    db: AsyncSession,
    profile_id: int,
    challenge_id: int,
    notes: str = "",
    completed_at: datetime | None = None,
) -> AchievementRecord:
    """Record one completion of a challenge and award its XP.

    Flushes but does not commit. Raises NotFoundError before writing anything
    if the challenge is not the profile's, and XPAwardError if the award
    cannot be applied.
    """
    path = await resolve_challenge(db, profile_id, challenge_id)
    if path is None:
        raise NotFoundError("Challenge")

    achievement = Achievement(
        challenge_id=path.challenge.id,
        profile_id=profile_id,
        completed_at=as_utc(completed_at) if completed_at is not None else datetime.now(timezone.utc),
        notes=(notes or "").strip(),
    )
    db.add(achievement)
    await db.flush()

    xp_updates = await award_challenge_xp(
        db,
        skill_id=path.skill.id,
        category_id=path.category.id,
        amount=path.challenge.xp_reward,
    )

    logger.info(
        "achievement_recorded",
        profile_id=profile_id,
        achievement_id=achievement.id,
        challenge_id=path.challenge.id,
        xp_reward=path.challenge.xp_reward,
    )
    return AchievementRecord(achievement=achievement, path=path, xp_updates=xp_updates)


def _record_from_row(row: Any) -> AchievementRecord:  # noqa: ANN401
    return AchievementRecord(
        achievement=row.Achievement,
        path=ChallengePath(
            challenge=row.Challenge,
            sub_skill=row.SubSkill,
            skill=row.Skill,
            category=row.Category,
        ),
    )


def _achievements_query(profile_id: int) -> Select:
    return (
        _join_path(
            select(Achievement, Challenge, SubSkill, Skill, Category)
            .join(Challenge, Achievement.challenge_id == Challenge.id)
        )
        .where(Achievement.profile_id == profile_id)
    )


async def list_achievements(
    db: AsyncSession,
    profile_id: int,
    challenge_id: int | None = None,
) -> list[AchievementRecord]:
    """List the profile's achievements, newest completion first."""
    query = _achievements_query(profile_id)
    if challenge_id is not None:
        query = query.where(Achievement.challenge_id == challenge_id)
    result = await db.execute(
        query.order_by(Achievement.completed_at.desc(), Achievement.id.desc())
    )
    return [_record_from_row(row) for row in result]


async def get_achievement(db: AsyncSession, profile_id: int, achievement_id: int) -> AchievementRecord:
    """Get one of the profile's achievements with its hierarchy."""
    result = await db.execute(
        _achievements_query(profile_id).where(Achievement.id == achievement_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Achievement")
    return _record_from_row(row)


async def update_achievement(
    db: AsyncSession,
    profile_id: int,
    achievement_id: int,
    notes: str | None = None,
    completed_at: datetime | None = None,
) -> AchievementRecord:
    """Edit notes and/or completion time. XP is unaffected."""
    record = await get_achievement(db, profile_id, achievement_id)
    if notes is not None:
        record.achievement.notes = notes.strip()
    if completed_at is not None:
        record.achievement.completed_at = as_utc(completed_at)
    await db.flush()
    return record


async def delete_achievement(db: AsyncSession, profile_id: int, achievement_id: int) -> None:
    """Delete an achievement. The XP it awarded stays with the skill and category."""
    record = await get_achievement(db, profile_id, achievement_id)
    await db.delete(record.achievement)
    await db.flush()
    logger.info("achievement_deleted", profile_id=profile_id, achievement_id=achievement_id)

