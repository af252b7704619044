"""Profile management business logic."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select

from jinsei.db.models import Achievement, Category, Profile
from jinsei.errors import NotFoundError, ValidationError
from jinsei.skilltree.service import purge_categories

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def _normalize_email(email: str) -> str:
    normalized = email.strip().lower()
    if not normalized:
        msg = "Email is required"
        raise ValidationError(msg)
    return normalized


async def _check_email_free(db: AsyncSession, email: str, exclude_id: int | None = None) -> None:
    query = select(Profile.id).where(Profile.email == email)
    if exclude_id is not None:
        query = query.where(Profile.id != exclude_id)
    if await db.scalar(query) is not None:
        msg = "Email already registered"
        raise ValidationError(msg)


async def get_profile(db: AsyncSession, profile_id: int) -> Profile | None:
    """Get a profile by id, or None."""
    return await db.get(Profile, profile_id)


async def require_profile(db: AsyncSession, profile_id: int) -> Profile:
    profile = await get_profile(db, profile_id)
    if profile is None:
        raise NotFoundError("Profile")
    return profile


async def list_profiles(db: AsyncSession) -> Sequence[Profile]:
    """List all profiles by name."""
    result = await db.execute(select(Profile).order_by(Profile.name.asc(), Profile.id.asc()))
    return result.scalars().all()


async def create_profile(
    db: AsyncSession,
    name: str,
    email: str,
    bio: str = "",
    avatar_url: str = "",
) -> Profile:
    """
    Create a profile.

    Raises:
        ValidationError: If the name is blank or the email is already registered.
    """
    cleaned_name = name.strip()
    if not cleaned_name:
        msg = "Name is required"
        raise ValidationError(msg)
    normalized = _normalize_email(email)
    await _check_email_free(db, normalized)

    profile = Profile(name=cleaned_name, email=normalized, bio=bio.strip(), avatar_url=avatar_url.strip())
    db.add(profile)
    await db.flush()
    logger.info("profile_created", profile_id=profile.id)
    return profile


async def update_profile(
    db: AsyncSession,
    profile: Profile,
    name: str | None = None,
    email: str | None = None,
    bio: str | None = None,
    avatar_url: str | None = None,
) -> Profile:
    """
    Update profile fields.

    Raises:
        ValidationError: If the name is blank or the email belongs to another profile.
    """
    if name is not None:
        cleaned_name = name.strip()
        if not cleaned_name:
            msg = "Name is required"
            raise ValidationError(msg)
        profile.name = cleaned_name
    if email is not None:
        normalized = _normalize_email(email)
        await _check_email_free(db, normalized, exclude_id=profile.id)
        profile.email = normalized
    if bio is not None:
        profile.bio = bio.strip()
    if avatar_url is not None:
        profile.avatar_url = avatar_url.strip()

    await db.flush()
    return profile


async def delete_profile(db: AsyncSession, profile: Profile) -> None:
    """Delete a profile with every category, skill and achievement it owns."""
    result = await db.execute(select(Category.id).where(Category.profile_id == profile.id))
    await purge_categories(db, result.scalars().all())
    await db.execute(
        delete(Achievement)
        .where(Achievement.profile_id == profile.id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Profile)
        .where(Profile.id == profile.id)
        .execution_options(synchronize_session=False)
    )
    logger.info("profile_deleted", profile_id=profile.id)
