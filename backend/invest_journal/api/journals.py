"""
Journal API endpoints.

Handles journal CRUD for the authenticated user plus the memo list.
"""
from decimal import Decimal
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from invest_journal.api.dependencies import get_current_user_id
from invest_journal.database import get_db
from invest_journal.models import InvestmentJournal
from invest_journal.schemas.journal import (
    JournalCreate,
    JournalUpdate,
    JournalResponse,
    JournalDetailResponse,
    HoldingsBreakdownSchema,
    MemoEntry,
)
from invest_journal.services.checklists import inherit_checklist
from invest_journal.services.fx_rate_service import get_fx_service
from invest_journal.services.journal_adapter import record_from_payload, record_from_row
from invest_journal.services.metrics import floor_currency, holdings_breakdown, value_holdings
from invest_journal.utils.formatters import format_korean_currency, format_number

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/journals", tags=["journals"])

HOLDING_FIELDS = ("foreign_stocks", "domestic_stocks", "cryptocurrency", "cash")
LIST_FIELDS = (
    "foreign_stocks", "domestic_stocks", "cryptocurrency",
    "bull_market_checklist", "bear_market_checklist",
)


async def get_owned_journal(db: AsyncSession, journal_id: str, user_id: str) -> InvestmentJournal:
    """Fetch a journal belonging to user_id or raise 404."""
    result = await db.execute(
        select(InvestmentJournal).where(
            InvestmentJournal.id == journal_id,
            InvestmentJournal.user_id == user_id
        )
    )
    journal = result.scalar_one_or_none()
    if not journal:
        raise HTTPException(status_code=404, detail="Journal not found")
    return journal


async def latest_journal(db: AsyncSession, user_id: str) -> Optional[InvestmentJournal]:
    result = await db.execute(
        select(InvestmentJournal)
        .where(InvestmentJournal.user_id == user_id)
        .order_by(desc(InvestmentJournal.date), desc(InvestmentJournal.created_at))
        .limit(1)
    )
    return result.scalars().first()


async def computed_total_assets(payload: dict) -> Decimal:
    """Floored holdings value at the current rate, used when no total is given."""
    usd_rate = await get_fx_service().get_usd_rate()
    return Decimal(floor_currency(value_holdings(record_from_payload(payload), usd_rate)))


async def build_journal_detail(journal: InvestmentJournal) -> JournalDetailResponse:
    """Journal response with a live valuation breakdown at today's rate."""
    record = record_from_row(journal)
    usd_rate = await get_fx_service().get_usd_rate()
    breakdown = holdings_breakdown(record, usd_rate)
    live_total = floor_currency(breakdown.total)

    return JournalDetailResponse(
        **JournalResponse.model_validate(journal).model_dump(),
        exchange_rate=usd_rate,
        breakdown=HoldingsBreakdownSchema(
            foreign_usd=breakdown.foreign_usd,
            foreign=breakdown.foreign,
            domestic=breakdown.domestic,
            crypto_usd=breakdown.crypto_usd,
            crypto=breakdown.crypto,
            cash=breakdown.cash,
            total=live_total,
        ),
        live_total_assets=live_total,
        total_assets_label=format_korean_currency(record.total_assets),
        live_total_assets_text=f"{format_number(live_total)}원",
    )


@router.get("", response_model=List[JournalResponse])
async def list_journals(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's journals, newest first."""
    result = await db.execute(
        select(InvestmentJournal)
        .where(InvestmentJournal.user_id == user_id)
        .order_by(desc(InvestmentJournal.date), desc(InvestmentJournal.created_at))
    )
    return result.scalars().all()


@router.get("/memos", response_model=List[MemoEntry])
async def list_memos(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Journals carrying a memo or market issues, newest first."""
    result = await db.execute(
        select(InvestmentJournal)
        .where(InvestmentJournal.user_id == user_id)
        .order_by(desc(InvestmentJournal.date), desc(InvestmentJournal.created_at))
    )
    return [journal for journal in result.scalars().all() if journal.memo or journal.market_issues]


@router.post("", response_model=JournalResponse, status_code=201)
async def create_journal(
    journal_data: JournalCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a journal, or overwrite one of the caller's journals when an id is given.

    Omitted total_assets is computed from the holdings at the current rate.
    Omitted checklists are inherited unchecked from the latest journal.
    """
    existing = None
    if journal_data.id:
        existing = await db.get(InvestmentJournal, journal_data.id)
        if existing and existing.user_id != user_id:
            raise HTTPException(status_code=409, detail="Journal id already in use")

    payload = journal_data.model_dump(
        mode="json",
        exclude={
            "id", "date", "evaluation", "total_assets",
            "bull_market_checklist", "bear_market_checklist",
        }
    )

    total_assets = journal_data.total_assets
    if total_assets is None:
        total_assets = await computed_total_assets(payload)

    previous = None
    if journal_data.bull_market_checklist is None or journal_data.bear_market_checklist is None:
        previous = await latest_journal(db, user_id)

    checklists = {}
    for kind, field in (("bull", "bull_market_checklist"), ("bear", "bear_market_checklist")):
        items = getattr(journal_data, field)
        if items is None:
            checklists[field] = inherit_checklist(kind, getattr(previous, field, None))
        else:
            checklists[field] = [item.model_dump(mode="json") for item in items]

    if existing:
        journal = existing
        for key, value in {**payload, **checklists}.items():
            setattr(journal, key, value)
        journal.date = journal_data.date
        journal.evaluation = journal_data.evaluation
        journal.total_assets = total_assets
    else:
        journal = InvestmentJournal(
            user_id=user_id,
            date=journal_data.date,
            evaluation=journal_data.evaluation,
            total_assets=total_assets,
            **payload,
            **checklists
        )
        if journal_data.id:
            journal.id = journal_data.id
        db.add(journal)

    try:
        await db.commit()
        await db.refresh(journal)
    except Exception:
        await db.rollback()
        logger.exception(f"Failed to save journal for user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to save journal")

    logger.info(f"Saved journal {journal.id} for user {user_id} on {journal.date}")
    return journal


@router.get("/{journal_id}", response_model=JournalDetailResponse)
async def get_journal(
    journal_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Journal detail with the stored total and a live breakdown."""
    journal = await get_owned_journal(db, journal_id, user_id)
    return await build_journal_detail(journal)


@router.put("/{journal_id}", response_model=JournalResponse)
async def update_journal(
    journal_id: str,
    journal_update: JournalUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Update journal fields.

    When holdings change without an explicit total_assets, the total is
    recomputed at the current rate.
    """
    journal = await get_owned_journal(db, journal_id, user_id)

    updates = journal_update.model_dump(mode="json", exclude_unset=True)
    if not updates:
        return journal

    for key, value in updates.items():
        if key in ("date", "evaluation"):
            value = getattr(journal_update, key)
        elif key == "total_assets":
            continue
        elif value is None and key in LIST_FIELDS:
            value = []
        setattr(journal, key, value)

    if journal_update.total_assets is not None:
        journal.total_assets = journal_update.total_assets
    elif any(key in updates for key in HOLDING_FIELDS) or "total_assets" in updates:
        journal.total_assets = await computed_total_assets({
            field: getattr(journal, field) for field in HOLDING_FIELDS
        })

    try:
        await db.commit()
        await db.refresh(journal)
    except Exception:
        await db.rollback()
        logger.exception(f"Failed to update journal {journal_id}")
        raise HTTPException(status_code=500, detail="Failed to update journal")

    logger.info(f"Updated journal {journal_id}: {sorted(updates)}")
    return journal


@router.delete("/{journal_id}")
async def delete_journal(
    journal_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete one of the caller's journals."""
    journal = await get_owned_journal(db, journal_id, user_id)

    await db.delete(journal)
    await db.commit()

    logger.info(f"Deleted journal {journal_id} for user {user_id}")
    return {"message": "Journal deleted successfully"}
