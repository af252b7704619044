"""Read-side composition of skill trees and profile aggregate stats.

Nothing here writes. Trees are ordered by name (then id) at every level and
empty levels come back as empty lists. Profile totals are computed from the
current xp columns on every call.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from jinsei.db.models import Category, Challenge, Skill, SubSkill
from jinsei.progression.levels import (
    CATEGORY_XP_PER_LEVEL,
    PROFILE_XP_PER_LEVEL,
    SKILL_XP_PER_LEVEL,
    level_for,
    level_info,
)
from jinsei.skilltree.schemas import (
    CategoryResponse,
    CategoryTree,
    ChallengeResponse,
    LevelProgress,
    SkillResponse,
    SkillTree,
    SubSkillResponse,
    SubSkillTree,
)
from jinsei.skilltree.service import get_category, get_skill, get_sub_skill

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


# ---------------------------------------------------------------------------
# Flat views
# ---------------------------------------------------------------------------


def level_progress(xp: int, xp_per_level: int) -> LevelProgress:
    return LevelProgress(**level_info(xp, xp_per_level))


def category_view(category: Category) -> CategoryResponse:
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        xp=category.xp,
        level=category.level,
        progress=level_progress(category.xp, CATEGORY_XP_PER_LEVEL),
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def skill_view(skill: Skill) -> SkillResponse:
    return SkillResponse(
        id=skill.id,
        name=skill.name,
        description=skill.description,
        category_id=skill.category_id,
        xp=skill.xp,
        level=skill.level,
        progress=level_progress(skill.xp, SKILL_XP_PER_LEVEL),
        created_at=skill.created_at,
        updated_at=skill.updated_at,
    )


def sub_skill_view(sub_skill: SubSkill) -> SubSkillResponse:
    return SubSkillResponse(
        id=sub_skill.id,
        name=sub_skill.name,
        description=sub_skill.description,
        skill_id=sub_skill.skill_id,
        created_at=sub_skill.created_at,
        updated_at=sub_skill.updated_at,
    )


def challenge_view(challenge: Challenge) -> ChallengeResponse:
    return ChallengeResponse(
        id=challenge.id,
        name=challenge.name,
        description=challenge.description,
        sub_skill_id=challenge.sub_skill_id,
        xp_reward=challenge.xp_reward,
        created_at=challenge.created_at,
        updated_at=challenge.updated_at,
    )


# ---------------------------------------------------------------------------
# Trees
# ---------------------------------------------------------------------------


async def _sub_skill_trees(db: AsyncSession, sub_skills: Sequence[SubSkill]) -> list[SubSkillTree]:
    challenges_by_parent: dict[int, list[ChallengeResponse]] = defaultdict(list)
    if sub_skills:
        result = await db.execute(
            select(Challenge)
            .where(Challenge.sub_skill_id.in_([s.id for s in sub_skills]))
            .order_by(Challenge.name.asc(), Challenge.id.asc())
        )
        for challenge in result.scalars():
            challenges_by_parent[challenge.sub_skill_id].append(challenge_view(challenge))

    return [
        SubSkillTree(
            **sub_skill_view(sub_skill).model_dump(),
            challenges=challenges_by_parent.get(sub_skill.id, []),
        )
        for sub_skill in sub_skills
    ]


async def _skill_trees(db: AsyncSession, skills: Sequence[Skill]) -> list[SkillTree]:
    sub_skills: Sequence[SubSkill] = []
    if skills:
        result = await db.execute(
            select(SubSkill)
            .where(SubSkill.skill_id.in_([s.id for s in skills]))
            .order_by(SubSkill.name.asc(), SubSkill.id.asc())
        )
        sub_skills = result.scalars().all()

    trees_by_parent: dict[int, list[SubSkillTree]] = defaultdict(list)
    for tree in await _sub_skill_trees(db, sub_skills):
        trees_by_parent[tree.skill_id].append(tree)

    return [
        SkillTree(**skill_view(skill).model_dump(), sub_skills=trees_by_parent.get(skill.id, []))
        for skill in skills
    ]


async def sub_skill_tree(db: AsyncSession, profile_id: int, sub_skill_id: int) -> SubSkillTree:
    """SubSkill -> [Challenge]."""
    sub_skill = await get_sub_skill(db, profile_id, sub_skill_id)
    (tree,) = await _sub_skill_trees(db, [sub_skill])
    return tree


async def skill_tree(db: AsyncSession, profile_id: int, skill_id: int) -> SkillTree:
    """Skill -> [SubSkill -> [Challenge]]."""
    skill = await get_skill(db, profile_id, skill_id)
    (tree,) = await _skill_trees(db, [skill])
    return tree


async def category_tree(db: AsyncSession, profile_id: int, category_id: int) -> CategoryTree:
    """Category -> [Skill -> [SubSkill -> [Challenge]]]."""
    category = await get_category(db, profile_id, category_id)
    result = await db.execute(
        select(Skill)
        .where(Skill.category_id == category.id)
        .order_by(Skill.name.asc(), Skill.id.asc())
    )
    skills = await _skill_trees(db, result.scalars().all())
    return CategoryTree(**category_view(category).model_dump(), skills=skills)


# ---------------------------------------------------------------------------
# Profile aggregate
# ---------------------------------------------------------------------------


async def total_xp(db: AsyncSession, profile_id: int) -> int:
    """Sum of xp over the profile's categories plus the sum over its skills.

    Category XP is earned through skill completions, so every award is counted
    once at each granularity.
    """
    category_xp = await db.scalar(
        select(func.coalesce(func.sum(Category.xp), 0)).where(Category.profile_id == profile_id)
    )
    skill_xp = await db.scalar(
        select(func.coalesce(func.sum(Skill.xp), 0)).where(Skill.profile_id == profile_id)
    )
    return int(category_xp or 0) + int(skill_xp or 0)


async def total_xp_by_profile(db: AsyncSession, profile_ids: Sequence[int]) -> dict[int, int]:
    """Same aggregate as total_xp for many profiles in two grouped queries."""
    totals: dict[int, int] = dict.fromkeys(profile_ids, 0)
    if not profile_ids:
        return totals
    for model in (Category, Skill):
        result = await db.execute(
            select(model.profile_id, func.sum(model.xp))
            .where(model.profile_id.in_(profile_ids))
            .group_by(model.profile_id)
        )
        for profile_id, xp in result:
            totals[profile_id] += int(xp or 0)
    return totals


def stats_for(xp: int) -> dict:
    return {
        "total_xp": xp,
        "total_level": level_for(xp, PROFILE_XP_PER_LEVEL),
        "progress": level_info(xp, PROFILE_XP_PER_LEVEL),
    }


async def profile_stats(db: AsyncSession, profile_id: int) -> dict:
    """Compute total XP and total level for a profile."""
    return stats_for(await total_xp(db, profile_id))
