"""FastAPI authentication dependencies.

Credential verification happens upstream. The gateway forwards the verified
profile id in the principal header (``X-Profile-Id`` by default) and this
module only resolves it to a Profile.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from jinsei.config import get_settings
from jinsei.database import get_session
from jinsei.db.models import MAX_ID, Profile
from jinsei.profiles.service import get_profile


async def get_current_profile(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> Profile:
    """
    Resolve the acting profile from the principal header.

    Raises 401 if the header is missing, malformed, or names no profile.
    """
    raw = request.headers.get(get_settings().principal_header)
    if not raw:
        raise HTTPException(status_code=401, detail="Missing principal")
    try:
        profile_id = int(raw)
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid principal") from e
    if not 1 <= profile_id <= MAX_ID:
        raise HTTPException(status_code=401, detail="Invalid principal")

    profile = await get_profile(db, profile_id)
    if profile is None:
        raise HTTPException(status_code=401, detail="Profile not found")
    return profile
