"""
Performance API endpoints.

Journal valuation chart with optional benchmark comparison.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from invest_journal.api.dependencies import get_current_user_id
from invest_journal.database import get_db
from invest_journal.schemas.performance import PerformanceResponse
from invest_journal.services.metrics import ValuationSource
from invest_journal.services.performance import build_performance

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/performance", tags=["performance"])


@router.get("", response_model=PerformanceResponse)
async def get_performance(
    range: str = Query("all", description="Time window: all, 1y, 3y"),
    benchmark: bool = Query(False, description="Overlay the reference index"),
    source: ValuationSource = Query(ValuationSource.LIVE, description="live or stored totals"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the caller's journal performance.

    Values every journal (live at today's rate by default), keeps the points
    inside the window and rebases them to percent change from the first one.
    With benchmark=true the reference index is aligned to the journal dates
    and rebased on the same anchor; if it cannot be fetched the response says
    so through benchmark_status instead of failing.
    """
    logger.debug(f"Performance for {user_id}: range={range} benchmark={benchmark} source={source.value}")
    return await build_performance(db, user_id, range, benchmark, source)
