"""Test data builders shared by unit and integration tests."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from jinsei.db.models import Category, Challenge, Profile, Skill, SubSkill
from jinsei.profiles.service import create_profile
from jinsei.skilltree import service as skilltree


@dataclass
class Tree:
    """One full branch: profile -> category -> skill -> sub-skill -> challenge."""

    profile: Profile
    category: Category
    skill: Skill
    sub_skill: SubSkill
    challenge: Challenge


async def build_tree(
    db: AsyncSession,
    email: str = "ada@example.com",
    xp_reward: int = 25,
) -> Tree:
    """Create and commit a complete branch owned by a new profile."""
    profile = await create_profile(db, name=email.split("@")[0].title(), email=email)
    category = await skilltree.create_category(db, profile.id, "Fitness")
    skill = await skilltree.create_skill(db, profile.id, category.id, "Running")
    sub_skill = await skilltree.create_sub_skill(db, profile.id, skill.id, "Endurance")
    challenge = await skilltree.create_challenge(
        db, profile.id, sub_skill.id, "Run 5k", xp_reward=xp_reward
    )
    await db.commit()
    return Tree(profile=profile, category=category, skill=skill, sub_skill=sub_skill, challenge=challenge)


def principal(profile: Profile) -> dict[str, str]:
    """Headers the auth gateway sets for a verified profile."""
    return {"X-Profile-Id": str(profile.id)}
