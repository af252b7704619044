"""Skill tree business logic: categories, skills, sub-skills and challenges.

Rules:
- Every lookup is scoped to the acting profile. Categories and skills carry a
  profile_id; sub-skills and challenges are owned through their skill.
- A foreign or missing id is reported as NotFoundError, never as forbidden.
- Deleting a node deletes its whole subtree, achievements included. Awarded
  XP is not reversed.
- xp and level are never written here; see jinsei.progression.xp_service.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select

from jinsei.db.models import Achievement, Category, Challenge, Skill, SubSkill
from jinsei.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        msg = "Name is required"
        raise ValidationError(msg)
    return cleaned


def _check_xp_reward(xp_reward: int) -> int:
    if xp_reward < 1:
        msg = "xp_reward must be at least 1"
        raise ValidationError(msg)
    return xp_reward


# ---------------------------------------------------------------------------
# Cascading deletes (children first so FK constraints hold)
# ---------------------------------------------------------------------------


async def _purge_challenges(db: AsyncSession, challenge_ids: Sequence[int]) -> int:
    if not challenge_ids:
        return 0
    await db.execute(
        delete(Achievement)
        .where(Achievement.challenge_id.in_(challenge_ids))
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Challenge)
        .where(Challenge.id.in_(challenge_ids))
        .execution_options(synchronize_session=False)
    )
    return len(challenge_ids)


async def _purge_sub_skills(db: AsyncSession, sub_skill_ids: Sequence[int]) -> int:
    if not sub_skill_ids:
        return 0
    result = await db.execute(select(Challenge.id).where(Challenge.sub_skill_id.in_(sub_skill_ids)))
    await _purge_challenges(db, result.scalars().all())
    await db.execute(
        delete(SubSkill)
        .where(SubSkill.id.in_(sub_skill_ids))
        .execution_options(synchronize_session=False)
    )
    return len(sub_skill_ids)


async def _purge_skills(db: AsyncSession, skill_ids: Sequence[int]) -> int:
    if not skill_ids:
        return 0
    result = await db.execute(select(SubSkill.id).where(SubSkill.skill_id.in_(skill_ids)))
    await _purge_sub_skills(db, result.scalars().all())
    await db.execute(
        delete(Skill)
        .where(Skill.id.in_(skill_ids))
        .execution_options(synchronize_session=False)
    )
    return len(skill_ids)


async def purge_categories(db: AsyncSession, category_ids: Sequence[int]) -> int:
    """Delete categories and everything beneath them."""
    if not category_ids:
        return 0
    result = await db.execute(select(Skill.id).where(Skill.category_id.in_(category_ids)))
    await _purge_skills(db, result.scalars().all())
    await db.execute(
        delete(Category)
        .where(Category.id.in_(category_ids))
        .execution_options(synchronize_session=False)
    )
    return len(category_ids)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


async def get_category(db: AsyncSession, profile_id: int, category_id: int) -> Category:
    """Get a category owned by the profile."""
    result = await db.execute(
        select(Category).where(Category.id == category_id, Category.profile_id == profile_id)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFoundError("Category")
    return category


async def list_categories(db: AsyncSession, profile_id: int) -> Sequence[Category]:
    """List the profile's categories by name."""
    result = await db.execute(
        select(Category)
        .where(Category.profile_id == profile_id)
        .order_by(Category.name.asc(), Category.id.asc())
    )
    return result.scalars().all()


async def create_category(
    db: AsyncSession,
    profile_id: int,
    name: str,
    description: str = "",
) -> Category:
    """Create a category with zero XP at level 1."""
    category = Category(
        profile_id=profile_id,
        name=_clean_name(name),
        description=description.strip(),
        xp=0,
        level=1,
    )
    db.add(category)
    await db.flush()
    logger.info("category_created", profile_id=profile_id, category_id=category.id)
    return category


async def update_category(
    db: AsyncSession,
    profile_id: int,
    category_id: int,
    name: str | None = None,
    description: str | None = None,
) -> Category:
    """Update a category's name and/or description."""
    category = await get_category(db, profile_id, category_id)
    if name is not None:
        category.name = _clean_name(name)
    if description is not None:
        category.description = description.strip()
    await db.flush()
    return category


async def delete_category(db: AsyncSession, profile_id: int, category_id: int) -> None:
    """Delete a category with all of its skills, sub-skills, challenges and achievements."""
    category = await get_category(db, profile_id, category_id)
    await purge_categories(db, [category.id])
    logger.info("category_deleted", profile_id=profile_id, category_id=category_id)


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


async def get_skill(db: AsyncSession, profile_id: int, skill_id: int) -> Skill:
    """Get a skill owned by the profile."""
    result = await db.execute(
        select(Skill).where(Skill.id == skill_id, Skill.profile_id == profile_id)
    )
    skill = result.scalar_one_or_none()
    if skill is None:
        raise NotFoundError("Skill")
    return skill


async def list_skills(
    db: AsyncSession,
    profile_id: int,
    category_id: int | None = None,
) -> Sequence[Skill]:
    """List the profile's skills by name, optionally within one category."""
    query = select(Skill).where(Skill.profile_id == profile_id)
    if category_id is not None:
        query = query.where(Skill.category_id == category_id)
    result = await db.execute(query.order_by(Skill.name.asc(), Skill.id.asc()))
    return result.scalars().all()


async def create_skill(
    db: AsyncSession,
    profile_id: int,
    category_id: int,
    name: str,
    description: str = "",
) -> Skill:
    """Create a skill in one of the profile's categories."""
    category = await get_category(db, profile_id, category_id)
    skill = Skill(
        profile_id=profile_id,
        category_id=category.id,
        name=_clean_name(name),
        description=description.strip(),
        xp=0,
        level=1,
    )
    db.add(skill)
    await db.flush()
    logger.info("skill_created", profile_id=profile_id, skill_id=skill.id, category_id=category.id)
    return skill


async def update_skill(
    db: AsyncSession,
    profile_id: int,
    skill_id: int,
    name: str | None = None,
    description: str | None = None,
    category_id: int | None = None,
) -> Skill:
    """Update a skill. Moving it to another category keeps XP already awarded where it is."""
    skill = await get_skill(db, profile_id, skill_id)
    if category_id is not None and category_id != skill.category_id:
        category = await get_category(db, profile_id, category_id)
        skill.category_id = category.id
    if name is not None:
        skill.name = _clean_name(name)
    if description is not None:
        skill.description = description.strip()
    await db.flush()
    return skill


async def delete_skill(db: AsyncSession, profile_id: int, skill_id: int) -> None:
    """Delete a skill with its sub-skills, their challenges and achievements."""
    skill = await get_skill(db, profile_id, skill_id)
    await _purge_skills(db, [skill.id])
    logger.info("skill_deleted", profile_id=profile_id, skill_id=skill_id)


# ---------------------------------------------------------------------------
# Sub-skills
# ---------------------------------------------------------------------------


async def get_sub_skill(db: AsyncSession, profile_id: int, sub_skill_id: int) -> SubSkill:
    """Get a sub-skill whose skill is owned by the profile."""
    result = await db.execute(
        select(SubSkill)
        .join(SubSkill.skill)
        .where(SubSkill.id == sub_skill_id, Skill.profile_id == profile_id)
    )
    sub_skill = result.scalar_one_or_none()
    if sub_skill is None:
        raise NotFoundError("SubSkill")
    return sub_skill


async def list_sub_skills(
    db: AsyncSession,
    profile_id: int,
    skill_id: int | None = None,
) -> Sequence[SubSkill]:
    """List the profile's sub-skills by name, optionally within one skill."""
    query = select(SubSkill).join(SubSkill.skill).where(Skill.profile_id == profile_id)
    if skill_id is not None:
        query = query.where(SubSkill.skill_id == skill_id)
    result = await db.execute(query.order_by(SubSkill.name.asc(), SubSkill.id.asc()))
    return result.scalars().all()


async def create_sub_skill(
    db: AsyncSession,
    profile_id: int,
    skill_id: int,
    name: str,
    description: str = "",
) -> SubSkill:
    """Create a sub-skill under one of the profile's skills."""
    skill = await get_skill(db, profile_id, skill_id)
    sub_skill = SubSkill(
        skill_id=skill.id,
        name=_clean_name(name),
        description=description.strip(),
    )
    db.add(sub_skill)
    await db.flush()
    logger.info("sub_skill_created", profile_id=profile_id, sub_skill_id=sub_skill.id, skill_id=skill.id)
    return sub_skill


async def update_sub_skill(
    db: AsyncSession,
    profile_id: int,
    sub_skill_id: int,
    name: str | None = None,
    description: str | None = None,
    skill_id: int | None = None,
) -> SubSkill:
    """Update a sub-skill, optionally moving it under another owned skill."""
    sub_skill = await get_sub_skill(db, profile_id, sub_skill_id)
    if skill_id is not None and skill_id != sub_skill.skill_id:
        skill = await get_skill(db, profile_id, skill_id)
        sub_skill.skill_id = skill.id
    if name is not None:
        sub_skill.name = _clean_name(name)
    if description is not None:
        sub_skill.description = description.strip()
    await db.flush()
    return sub_skill


async def delete_sub_skill(db: AsyncSession, profile_id: int, sub_skill_id: int) -> None:
    """Delete a sub-skill with its challenges and their achievements."""
    sub_skill = await get_sub_skill(db, profile_id, sub_skill_id)
    await _purge_sub_skills(db, [sub_skill.id])
    logger.info("sub_skill_deleted", profile_id=profile_id, sub_skill_id=sub_skill_id)


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


async def get_challenge(db: AsyncSession, profile_id: int, challenge_id: int) -> Challenge:
    """Get a challenge owned by the profile through its sub-skill and skill."""
    result = await db.execute(
        select(Challenge)
        .join(Challenge.sub_skill)
        .join(SubSkill.skill)
        .where(Challenge.id == challenge_id, Skill.profile_id == profile_id)
    )
    challenge = result.scalar_one_or_none()
    if challenge is None:
        raise NotFoundError("Challenge")
    return challenge


async def list_challenges(
    db: AsyncSession,
    profile_id: int,
    sub_skill_id: int | None = None,
) -> Sequence[Challenge]:
    """List the profile's challenges by name, optionally within one sub-skill."""
    query = (
        select(Challenge)
        .join(Challenge.sub_skill)
        .join(SubSkill.skill)
        .where(Skill.profile_id == profile_id)
    )
    if sub_skill_id is not None:
        query = query.where(Challenge.sub_skill_id == sub_skill_id)
    result = await db.execute(query.order_by(Challenge.name.asc(), Challenge.id.asc()))
    return result.scalars().all()


async def create_challenge(
    db: AsyncSession,
    profile_id: int,
    sub_skill_id: int,
    name: str,
    description: str = "",
    xp_reward: int = 10,
) -> Challenge:
    """Create a challenge under one of the profile's sub-skills."""
    sub_skill = await get_sub_skill(db, profile_id, sub_skill_id)
    challenge = Challenge(
        sub_skill_id=sub_skill.id,
        name=_clean_name(name),
        description=description.strip(),
        xp_reward=_check_xp_reward(xp_reward),
    )
    db.add(challenge)
    await db.flush()
    logger.info("challenge_created", profile_id=profile_id, challenge_id=challenge.id, xp_reward=xp_reward)
    return challenge


async def update_challenge(
    db: AsyncSession,
    profile_id: int,
    challenge_id: int,
    name: str | None = None,
    description: str | None = None,
    sub_skill_id: int | None = None,
    xp_reward: int | None = None,
) -> Challenge:
    """Update a challenge. A new xp_reward only affects future completions."""
    challenge = await get_challenge(db, profile_id, challenge_id)
    if sub_skill_id is not None and sub_skill_id != challenge.sub_skill_id:
        sub_skill = await get_sub_skill(db, profile_id, sub_skill_id)
        challenge.sub_skill_id = sub_skill.id
    if name is not None:
        challenge.name = _clean_name(name)
    if description is not None:
        challenge.description = description.strip()
    if xp_reward is not None:
        challenge.xp_reward = _check_xp_reward(xp_reward)
    await db.flush()
    return challenge


async def delete_challenge(db: AsyncSession, profile_id: int, challenge_id: int) -> None:
    """Delete a challenge and its achievements."""
    challenge = await get_challenge(db, profile_id, challenge_id)
    await _purge_challenges(db, [challenge.id])
    logger.info("challenge_deleted", profile_id=profile_id, challenge_id=challenge_id)
