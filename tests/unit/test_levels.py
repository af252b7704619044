"""Level calculator tests — values MUST match the client's progress bars."""

import pytest

from jinsei.progression.levels import (
    CATEGORY_XP_PER_LEVEL,
    PROFILE_XP_PER_LEVEL,
    SKILL_XP_PER_LEVEL,
    XP_PER_LEVEL,
    level_for,
    level_info,
)


class TestLevelFor:
    """level_for(xp, per_level) == max(1, xp // per_level + 1)."""

    def test_zero_xp_is_level_1(self):
        assert level_for(0, SKILL_XP_PER_LEVEL) == 1

    def test_boundary_99_is_still_level_1(self):
        assert level_for(99, 100) == 1

    def test_level_2_at_100(self):
        assert level_for(100, 100) == 2

    def test_level_3_at_250(self):
        assert level_for(250, 100) == 3

    def test_category_level_2_at_200(self):
        assert level_for(199, CATEGORY_XP_PER_LEVEL) == 1
        assert level_for(200, CATEGORY_XP_PER_LEVEL) == 2

    def test_monotonic_non_decreasing(self):
        levels = [level_for(xp, 100) for xp in range(0, 2000, 7)]
        assert levels == sorted(levels)

    def test_negative_xp_rejected(self):
        with pytest.raises(ValueError):
            level_for(-1, 100)

    @pytest.mark.parametrize("per_level", [0, -100])
    def test_non_positive_divisor_rejected(self, per_level):
        with pytest.raises(ValueError):
            level_for(10, per_level)


class TestPolicy:
    def test_per_entity_divisors(self):
        assert XP_PER_LEVEL == {"skill": 100, "category": 200, "profile": 100}
        assert PROFILE_XP_PER_LEVEL == SKILL_XP_PER_LEVEL


class TestLevelInfo:
    def test_fresh_entity(self):
        info = level_info(0, 100)
        assert info == {
            "level": 1,
            "xp_into_level": 0,
            "xp_for_level": 100,
            "xp_to_next_level": 100,
            "progress": 0.0,
        }

    def test_mid_level(self):
        info = level_info(250, 200)
        assert info["level"] == 2
        assert info["xp_into_level"] == 50
        assert info["xp_to_next_level"] == 150
        assert info["progress"] == pytest.approx(0.25)

    def test_exact_boundary_starts_new_level(self):
        info = level_info(300, 100)
        assert info["level"] == 4
        assert info["xp_into_level"] == 0
        assert info["xp_to_next_level"] == 100

    def test_progress_bounds(self):
        for xp in range(0, 1000, 13):
            info = level_info(xp, 100)
            assert 0.0 <= info["progress"] < 1.0
            assert info["xp_to_next_level"] > 0
