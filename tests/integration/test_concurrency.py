"""Concurrent awards never lose an increment."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jinsei.achievements.service import record_achievement
from jinsei.database import get_session_factory
from jinsei.db.models import Achievement, Skill
from jinsei.progression.xp_service import add_xp
from tests.factories import Tree

N = 10


@pytest.mark.asyncio
async def test_parallel_achievements_sum_exactly(db_session: AsyncSession, tree: Tree):
    """N concurrent completions of a 25 XP challenge add N x 25, each in its own session."""
    factory = get_session_factory()

    async def complete() -> None:
        async with factory() as session:
            await record_achievement(session, tree.profile.id, tree.challenge.id)
            await session.commit()

    await asyncio.gather(*(complete() for _ in range(N)))

    await db_session.refresh(tree.skill)
    await db_session.refresh(tree.category)
    assert tree.skill.xp == N * 25
    assert tree.skill.level == N * 25 // 100 + 1
    assert tree.category.xp == N * 25
    assert tree.category.level == N * 25 // 200 + 1
    assert await db_session.scalar(select(func.count()).select_from(Achievement)) == N


@pytest.mark.asyncio
async def test_stale_reader_does_not_overwrite(db_session: AsyncSession, tree: Tree):
    """An award computed from a stale in-memory copy still adds to the stored value."""
    factory = get_session_factory()

    async with factory() as first, factory() as second:
        stale = await first.get(Skill, tree.skill.id)
        assert stale is not None
        assert stale.xp == 0

        await add_xp(second, Skill, tree.skill.id, 40)
        await second.commit()

        update = await add_xp(first, Skill, tree.skill.id, 40)
        await first.commit()

    assert update is not None
    assert update.xp == 80
    await db_session.refresh(tree.skill)
    assert tree.skill.xp == 80
