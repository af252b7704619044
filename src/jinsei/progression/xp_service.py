"""XP accumulation with atomic level recompute and level-up detection."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.orm.util import identity_key

from jinsei.db.models import Category, Skill
from jinsei.errors import ValidationError, XPAwardError
from jinsei.progression.levels import XP_PER_LEVEL, level_for

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

LEVEL_UP_CHANNEL = "pubsub:level_up"

_ENTITY_KINDS: dict[type, str] = {Skill: "skill", Category: "category"}


@dataclass(frozen=True)
class XPUpdate:
    """Result of one atomic XP increment."""

    entity: str
    entity_id: int
    amount: int
    xp: int
    level: int

    @property
    def old_level(self) -> int:
        return level_for(self.xp - self.amount, XP_PER_LEVEL[self.entity])

    @property
    def leveled_up(self) -> bool:
        return self.level > self.old_level


async def add_xp(
    db: AsyncSession,
    model: type[Skill] | type[Category],
    entity_id: int,
    amount: int,
) -> XPUpdate | None:
    """Add ``amount`` XP to one Skill or Category row and recompute its level.

    Both columns are written by a single UPDATE evaluated against the stored
    row, so concurrent awards never lose an increment. Not idempotent: each
    call adds ``amount`` again. Returns None if the row does not exist.
    """
    if amount < 1:
        msg = f"XP amount must be at least 1, got {amount}"
        raise ValidationError(msg)

    entity = _ENTITY_KINDS[model]
    xp_per_level = XP_PER_LEVEL[entity]
    new_xp = model.xp + amount

    result = await db.execute(
        update(model)
        .where(model.id == entity_id)
        .values(xp=new_xp, level=new_xp // xp_per_level + 1)
        .returning(model.xp, model.level, model.updated_at)
        .execution_options(synchronize_session=False)
    )
    row = result.one_or_none()
    if row is None:
        return None

    # Keep an already-loaded instance in step with the row without marking it dirty.
    instance = db.identity_map.get(identity_key(model, entity_id))
    if instance is not None:
        set_committed_value(instance, "xp", row.xp)
        set_committed_value(instance, "level", row.level)
        set_committed_value(instance, "updated_at", row.updated_at)

    return XPUpdate(entity=entity, entity_id=entity_id, amount=amount, xp=row.xp, level=row.level)


async def award_challenge_xp(
    db: AsyncSession,
    skill_id: int,
    category_id: int,
    amount: int,
) -> list[XPUpdate]:
    """Award a challenge's full reward to its Skill, then to its Category.

    The reward is applied to each independently, not split. Raises
    XPAwardError if either row is missing; the caller's transaction must then
    be rolled back.
    """
    skill_update = await add_xp(db, Skill, skill_id, amount)
    if skill_update is None:
        msg = f"Skill {skill_id} disappeared before XP could be awarded"
        raise XPAwardError(msg)

    category_update = await add_xp(db, Category, category_id, amount)
    if category_update is None:
        msg = f"Category {category_id} disappeared before XP could be awarded"
        raise XPAwardError(msg)

    logger.info(
        "xp_awarded",
        amount=amount,
        skill_id=skill_id,
        skill_xp=skill_update.xp,
        category_id=category_id,
        category_xp=category_update.xp,
    )
    return [skill_update, category_update]


async def publish_level_ups(
    redis: Redis | None,
    profile_id: int,
    updates: list[XPUpdate],
) -> None:
    """Broadcast level-up events for activity feeds. Best-effort, call after commit."""
    for xp_update in updates:
        if not xp_update.leveled_up:
            continue

        logger.info(
            "level_up",
            profile_id=profile_id,
            entity=xp_update.entity,
            entity_id=xp_update.entity_id,
            old_level=xp_update.old_level,
            new_level=xp_update.level,
        )
        if redis is None:
            continue
        try:
            await redis.publish(
                LEVEL_UP_CHANNEL,
                json.dumps({
                    "profile_id": profile_id,
                    "entity": xp_update.entity,
                    "entity_id": xp_update.entity_id,
                    "old_level": xp_update.old_level,
                    "new_level": xp_update.level,
                }),
            )
        except Exception:
            logger.warning("level_up_publish_failed", exc_info=True)
