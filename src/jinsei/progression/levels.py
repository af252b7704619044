"""Level policy and computation.

Levels are a linear function of XP with a per-entity divisor. The values
here MUST match the client's progress bars.
"""

from __future__ import annotations

SKILL_XP_PER_LEVEL = 100
CATEGORY_XP_PER_LEVEL = 200  # categories level more slowly
PROFILE_XP_PER_LEVEL = 100

XP_PER_LEVEL: dict[str, int] = {
    "skill": SKILL_XP_PER_LEVEL,
    "category": CATEGORY_XP_PER_LEVEL,
    "profile": PROFILE_XP_PER_LEVEL,
}


def level_for(xp: int, xp_per_level: int) -> int:
    """Return the level for ``xp``: ``max(1, xp // xp_per_level + 1)``."""
    if xp < 0:
        msg = f"xp must be non-negative, got {xp}"
        raise ValueError(msg)
    if xp_per_level < 1:
        msg = f"xp_per_level must be positive, got {xp_per_level}"
        raise ValueError(msg)
    return max(1, xp // xp_per_level + 1)


def level_info(xp: int, xp_per_level: int) -> dict:
    """Compute level progress info from accumulated XP."""
    level = level_for(xp, xp_per_level)
    level_floor = (level - 1) * xp_per_level
    xp_into_level = xp - level_floor

    return {
        "level": level,
        "xp_into_level": xp_into_level,
        "xp_for_level": xp_per_level,
        "xp_to_next_level": level * xp_per_level - xp,
        "progress": min(1.0, max(0.0, xp_into_level / xp_per_level)),
    }
