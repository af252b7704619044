"""ORM models for the skill tree.

Containment: Category -> Skill -> SubSkill -> Challenge -> Achievement.
Foreign keys cascade on delete so removing a parent removes its subtree.
Only Category and Skill carry xp/level; level is always written in the same
statement as xp (see jinsei.progression.xp_service).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jinsei.db.base import Base

# Upper bound of the INTEGER primary keys; larger ids cannot exist.
MAX_ID = 2**31 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class Profile(TimestampMixin, Base):
    """Maps to the 'profiles' table. total_xp/total_level are derived, never stored."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    credential_hash: Mapped[str | None] = mapped_column(String(256), nullable=True)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    avatar_url: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")

    categories: Mapped[list[Category]] = relationship(
        "Category", back_populates="profile", passive_deletes=True
    )


# ---------------------------------------------------------------------------
# Skill tree
# ---------------------------------------------------------------------------


class Category(TimestampMixin, Base):
    """Maps to the 'categories' table. Levels at 200 XP per level."""

    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("xp >= 0", name="xp_non_negative"),
        CheckConstraint("level >= 1", name="level_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    profile: Mapped[Profile] = relationship("Profile", back_populates="categories")
    skills: Mapped[list[Skill]] = relationship("Skill", back_populates="category", passive_deletes=True)


class Skill(TimestampMixin, Base):
    """Maps to the 'skills' table. Levels at 100 XP per level."""

    __tablename__ = "skills"
    __table_args__ = (
        CheckConstraint("xp >= 0", name="xp_non_negative"),
        CheckConstraint("level >= 1", name="level_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    category: Mapped[Category] = relationship("Category", back_populates="skills")
    sub_skills: Mapped[list[SubSkill]] = relationship("SubSkill", back_populates="skill", passive_deletes=True)


class SubSkill(TimestampMixin, Base):
    """Maps to the 'sub_skills' table. Organizational only: no xp, no level."""

    __tablename__ = "sub_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    skill_id: Mapped[int] = mapped_column(
        ForeignKey("skills.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")

    skill: Mapped[Skill] = relationship("Skill", back_populates="sub_skills")
    challenges: Mapped[list[Challenge]] = relationship(
        "Challenge", back_populates="sub_skill", passive_deletes=True
    )


class Challenge(TimestampMixin, Base):
    """Maps to the 'challenges' table."""

    __tablename__ = "challenges"
    __table_args__ = (CheckConstraint("xp_reward >= 1", name="xp_reward_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sub_skill_id: Mapped[int] = mapped_column(
        ForeignKey("sub_skills.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=10, server_default="10")

    sub_skill: Mapped[SubSkill] = relationship("SubSkill", back_populates="challenges")


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class Achievement(TimestampMixin, Base):
    """Maps to the 'achievements' table. One row per completion event."""

    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(
        ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
