"""
Performance chart assembly.

Loads a user's journals, values them, and runs them through the metrics
pipeline: time series -> optional benchmark alignment -> window
normalization. Shared by the owner's chart and the public user view.
"""
from datetime import date
from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from invest_journal.config import settings
from invest_journal.models import InvestmentJournal
from invest_journal.schemas.performance import (
    BenchmarkStatus,
    PerformancePoint,
    PerformanceResponse,
)
from invest_journal.services.fx_rate_service import get_fx_service
from invest_journal.services.journal_adapter import record_from_row
from invest_journal.services.market_data import get_reference_series
from invest_journal.services.metrics import (
    TimeWindow,
    ValuationSource,
    build_comparison,
    build_time_series,
    filter_window,
    floor_currency,
)
from invest_journal.utils.formatters import (
    format_chart_currency,
    format_korean_currency,
    format_percentage,
)

logger = logging.getLogger(__name__)


def _percent_label(value: Optional[float]) -> Optional[str]:
    return format_percentage(value) if value is not None else None


async def build_performance(
    db: AsyncSession,
    user_id: str,
    window=TimeWindow.ALL,
    include_benchmark: bool = False,
    source: ValuationSource = ValuationSource.LIVE,
    today: Optional[date] = None
) -> PerformanceResponse:
    """
    Performance chart data for one user.

    Args:
        db: Database session
        user_id: Owner of the journals
        window: Time window selector (unrecognized values mean all)
        include_benchmark: Whether to fetch and overlay the reference index
        source: Live revaluation at today's rate, or the stored totals
        today: Reference date for the window boundary (defaults to today)
    """
    window = TimeWindow.parse(window)

    result = await db.execute(
        select(InvestmentJournal)
        .where(InvestmentJournal.user_id == user_id)
        .order_by(InvestmentJournal.date, InvestmentJournal.created_at)
    )
    records = [record_from_row(row) for row in result.scalars().all()]

    usd_rate = await get_fx_service().get_usd_rate()
    points = build_time_series(records, usd_rate, source)
    visible = filter_window(points, window, today)

    reference = None
    status = BenchmarkStatus.DISABLED
    if include_benchmark and visible:
        reference = await get_reference_series(start=date.fromisoformat(visible[0].date))
        status = BenchmarkStatus.AVAILABLE if reference else BenchmarkStatus.UNAVAILABLE
        if not reference:
            logger.info(f"Benchmark overlay unavailable for user {user_id}")

    comparison = build_comparison(visible, TimeWindow.ALL, reference)
    if comparison.overlay_available:
        visible = comparison.aligned

    data = [
        PerformancePoint(
            date=point.date,
            total_value=point.total_value,
            percent_change=normalized.percent_change,
            reference_value=point.reference_value,
            reference_percent_change=normalized.reference_percent_change,
            has_note=point.has_note,
            label=format_chart_currency(point.total_value),
        )
        for point, normalized in zip(visible, comparison.points)
    ]

    latest_total = floor_currency(visible[-1].total_value) if visible else None

    return PerformanceResponse(
        range=window.value,
        source=ValuationSource(source).value,
        exchange_rate=usd_rate,
        has_history=bool(visible),
        data=data,
        benchmark_symbol=settings.benchmark_symbol if include_benchmark else None,
        benchmark_status=status,
        period_return=comparison.period_return,
        benchmark_return=comparison.reference_return,
        alpha=comparison.alpha,
        period_return_label=_percent_label(comparison.period_return),
        benchmark_return_label=_percent_label(comparison.reference_return),
        alpha_label=_percent_label(comparison.alpha),
        latest_total_value=latest_total,
        latest_total_label=format_korean_currency(latest_total) if latest_total is not None else None,
    )
