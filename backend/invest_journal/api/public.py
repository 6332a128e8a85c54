"""
Public journal API endpoints.

Read-only access to journals of users who made their profile public. The
caller's own journals are always visible to them. Identity is optional here.
"""
from collections import defaultdict
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, desc, or_
from sqlalchemy.ext.asyncio import AsyncSession

from invest_journal.api.dependencies import get_optional_user_id
from invest_journal.api.journals import build_journal_detail
from invest_journal.config import settings
from invest_journal.database import get_db
from invest_journal.models import InvestmentJournal, UserProfile
from invest_journal.schemas.journal import JournalResponse, JournalDetailResponse
from invest_journal.schemas.performance import PerformanceResponse
from invest_journal.schemas.profile import (
    ProfileResponse,
    PublicJournalResult,
    PublicUserSummary,
)
from invest_journal.services.journal_adapter import to_decimal
from invest_journal.services.metrics import ValuationSource, floor_currency, percent_change
from invest_journal.services.performance import build_performance
from invest_journal.utils.formatters import format_korean_currency, format_percentage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/public", tags=["public"])


def _visible(viewer_id: Optional[str]):
    """Filter for journals or profiles the viewer may read."""
    condition = UserProfile.is_public.is_(True)
    if viewer_id:
        condition = or_(condition, UserProfile.user_id == viewer_id)
    return condition


async def ensure_visible(db: AsyncSession, owner_id: str, viewer_id: Optional[str]) -> None:
    """Raise 404/403 unless the viewer may read owner_id's journals."""
    if viewer_id == owner_id:
        return

    result = await db.execute(select(UserProfile).where(UserProfile.user_id == owner_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    if not profile.is_public:
        raise HTTPException(status_code=403, detail="This user's journals are private")


@router.get("/journals", response_model=List[PublicJournalResult])
async def search_public_journals(
    nickname: Optional[str] = Query(None, description="Filter by author nickname (partial match)"),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Public journals (plus the caller's own), newest first."""
    condition = UserProfile.is_public.is_(True)
    if viewer_id:
        condition = or_(condition, InvestmentJournal.user_id == viewer_id)

    query = (
        select(InvestmentJournal, UserProfile)
        .outerjoin(UserProfile, UserProfile.user_id == InvestmentJournal.user_id)
        .where(condition)
    )
    if nickname and nickname.strip():
        query = query.where(UserProfile.nickname.ilike(f"%{nickname.strip()}%"))

    result = await db.execute(
        query
        .order_by(desc(InvestmentJournal.date), desc(InvestmentJournal.created_at))
        .limit(settings.public_search_limit)
    )

    return [
        PublicJournalResult(
            journal=JournalResponse.model_validate(journal),
            profile=ProfileResponse.model_validate(profile) if profile else None,
        )
        for journal, profile in result.all()
    ]


@router.get("/journals/{journal_id}", response_model=JournalDetailResponse)
async def get_public_journal(
    journal_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Read-only journal detail."""
    journal = await db.get(InvestmentJournal, journal_id)
    if not journal:
        raise HTTPException(status_code=404, detail="Journal not found")

    await ensure_visible(db, journal.user_id, viewer_id)
    return await build_journal_detail(journal)


@router.get("/users", response_model=List[PublicUserSummary])
async def list_public_users(
    nickname: Optional[str] = Query(None, description="Filter by nickname (partial match)"),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Users with at least one journal, ranked by latest stored total.

    total_return compares the stored totals of the first and latest journals,
    so it reflects the exchange rates of those two save dates.
    """
    query = select(UserProfile).where(_visible(viewer_id))
    if nickname and nickname.strip():
        query = query.where(UserProfile.nickname.ilike(f"%{nickname.strip()}%"))
    profiles = (await db.execute(query)).scalars().all()
    if not profiles:
        return []

    result = await db.execute(
        select(InvestmentJournal.user_id, InvestmentJournal.total_assets)
        .where(InvestmentJournal.user_id.in_([profile.user_id for profile in profiles]))
        .order_by(InvestmentJournal.date, InvestmentJournal.created_at)
    )
    totals = defaultdict(list)
    for owner_id, total_assets in result.all():
        totals[owner_id].append(to_decimal(total_assets))

    summaries = []
    for profile in profiles:
        history = totals.get(profile.user_id)
        if not history:
            continue
        latest = floor_currency(history[-1])
        total_return = percent_change(history[-1], history[0])
        summaries.append(PublicUserSummary(
            profile=ProfileResponse.model_validate(profile),
            journal_count=len(history),
            latest_assets=latest,
            latest_assets_label=format_korean_currency(latest),
            total_return=total_return,
            total_return_label=format_percentage(total_return),
        ))

    summaries.sort(key=lambda summary: summary.latest_assets, reverse=True)
    return summaries


@router.get("/users/{user_id}/performance", response_model=PerformanceResponse)
async def get_public_user_performance(
    user_id: str,
    range: str = Query("all", description="Time window: all, 1y, 3y"),
    benchmark: bool = Query(False, description="Overlay the reference index"),
    source: ValuationSource = Query(ValuationSource.STORED, description="live or stored totals"),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Performance chart of another user's journals, stored totals by default."""
    await ensure_visible(db, user_id, viewer_id)
    return await build_performance(db, user_id, range, benchmark, source)
