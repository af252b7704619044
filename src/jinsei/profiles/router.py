"""Profile router — all /api/v1/profiles/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from jinsei.auth.dependencies import get_current_profile
from jinsei.database import get_session
from jinsei.db.models import MAX_ID, Profile
from jinsei.profiles.schemas import (
    ProfileCreateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    PublicProfileResponse,
)
from jinsei.profiles.service import (
    create_profile,
    delete_profile,
    list_profiles,
    require_profile,
    update_profile,
)
from jinsei.progression.hierarchy import profile_stats, stats_for, total_xp_by_profile

router = APIRouter(prefix="/api/v1/profiles", tags=["Profiles"])


def _public_response(profile: Profile, stats: dict) -> PublicProfileResponse:
    return PublicProfileResponse(
        id=profile.id,
        name=profile.name,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        created_at=profile.created_at,
        **stats,
    )


def _profile_response(profile: Profile, stats: dict) -> ProfileResponse:
    return ProfileResponse(
        **_public_response(profile, stats).model_dump(),
        email=profile.email,
        updated_at=profile.updated_at,
    )


@router.get("", response_model=list[PublicProfileResponse])
async def list_profiles_endpoint(
    db: AsyncSession = Depends(get_session),
):
    """List profiles by name with their totals."""
    profiles = await list_profiles(db)
    totals = await total_xp_by_profile(db, [p.id for p in profiles])
    return [_public_response(p, stats_for(totals[p.id])) for p in profiles]


@router.post("", response_model=ProfileResponse, status_code=201)
async def create_profile_endpoint(
    body: ProfileCreateRequest,
    db: AsyncSession = Depends(get_session),
):
    """Register a profile. Called by the auth gateway on sign-up."""
    profile = await create_profile(
        db, name=body.name, email=body.email, bio=body.bio, avatar_url=body.avatar_url
    )
    await db.commit()
    return _profile_response(profile, stats_for(0))


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Get own full profile with total XP and level."""
    return _profile_response(profile, await profile_stats(db, profile.id))


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    profile = await update_profile(
        db,
        profile,
        name=body.name,
        email=body.email,
        bio=body.bio,
        avatar_url=body.avatar_url,
    )
    await db.commit()
    return _profile_response(profile, await profile_stats(db, profile.id))


@router.delete("/me", status_code=204)
async def delete_my_profile(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
):
    """Delete own profile and everything it owns."""
    await delete_profile(db, profile)
    await db.commit()


@router.get("/{profile_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    profile_id: int = Path(..., ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_session),
):
    profile = await require_profile(db, profile_id)
    return _public_response(profile, await profile_stats(db, profile.id))
