"""
Profile API endpoints.

The caller's own profile plus nickname search over public profiles.
"""
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from invest_journal.api.dependencies import get_current_user_id
from invest_journal.config import settings
from invest_journal.database import get_db
from invest_journal.models import UserProfile
from invest_journal.schemas.profile import ProfileCreate, ProfileUpdate, ProfileResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/profiles", tags=["profiles"])


async def get_profile(db: AsyncSession, user_id: str):
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's profile."""
    profile = await get_profile(db, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.post("/me", response_model=ProfileResponse, status_code=201)
async def create_my_profile(
    profile_data: ProfileCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Create the caller's profile."""
    if await get_profile(db, user_id):
        raise HTTPException(status_code=409, detail="Profile already exists")

    profile = UserProfile(user_id=user_id, **profile_data.model_dump())
    db.add(profile)

    try:
        await db.commit()
        await db.refresh(profile)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Profile already exists")

    logger.info(f"Created profile for user {user_id} (public={profile.is_public})")
    return profile


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_update: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Update the caller's profile; only provided fields change."""
    profile = await get_profile(db, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")

    updates = profile_update.model_dump(exclude_unset=True)
    if not updates:
        return profile

    for key, value in updates.items():
        if key == "is_public" and value is None:
            continue
        setattr(profile, key, value)

    await db.commit()
    await db.refresh(profile)

    logger.info(f"Updated profile for user {user_id}: {sorted(updates)}")
    return profile


@router.get("/search", response_model=List[ProfileResponse])
async def search_profiles(
    nickname: str = Query(..., min_length=1, description="Nickname fragment"),
    db: AsyncSession = Depends(get_db)
):
    """Public profiles whose nickname contains the query (case-insensitive)."""
    result = await db.execute(
        select(UserProfile)
        .where(
            UserProfile.is_public.is_(True),
            UserProfile.nickname.ilike(f"%{nickname.strip()}%")
        )
        .order_by(UserProfile.nickname)
        .limit(settings.profile_search_limit)
    )
    return result.scalars().all()
