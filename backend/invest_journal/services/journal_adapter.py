"""
Persistence boundary for journal data.

Journal rows keep holdings, cash and psychology data as loosely typed JSON
written by the entry form. This module turns those documents into fully
populated metrics.JournalRecord values: missing, null or unparsable numbers
become 0, missing lists become empty, missing text becomes "". Code past this
boundary never repeats that coercion.
"""
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple
import logging

from invest_journal.services.metrics import (
    ZERO,
    CashHolding,
    HoldingLine,
    JournalRecord,
    PsychologySnapshot,
)

logger = logging.getLogger(__name__)


def to_decimal(value: Any) -> Decimal:
    """Coerce a user-entered number to Decimal; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return ZERO

    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        logger.debug(f"Treating non-numeric value {value!r} as 0")
        return ZERO

    if not result.is_finite():
        return ZERO
    return result


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, dict):
        return raw.get(name)
    return getattr(raw, name, None)


def holding_lines(raw: Any) -> Tuple[HoldingLine, ...]:
    """Parse a JSON list of {symbol, price, quantity} entries."""
    if not isinstance(raw, (list, tuple)):
        return ()

    lines = []
    for entry in raw:
        if entry is None or isinstance(entry, (str, int, float, Decimal)):
            continue
        lines.append(HoldingLine(
            symbol=_text(_field(entry, "symbol")),
            quantity=to_decimal(_field(entry, "quantity")),
            price=to_decimal(_field(entry, "price")),
        ))
    return tuple(lines)


def cash_holding(raw: Any) -> CashHolding:
    if raw is None:
        return CashHolding()
    return CashHolding(
        krw=to_decimal(_field(raw, "krw")),
        usd=to_decimal(_field(raw, "usd")),
    )


def psychology_snapshot(raw: Any) -> PsychologySnapshot:
    if raw is None:
        return PsychologySnapshot()

    index = to_decimal(_field(raw, "fear_greed_index"))
    if _field(raw, "fear_greed_index") is None:
        index = Decimal(PsychologySnapshot.fear_greed_index)

    sentiments = _field(raw, "market_sentiments")
    if not isinstance(sentiments, (list, tuple)):
        sentiments = ()

    return PsychologySnapshot(
        fear_greed_index=int(min(max(index, ZERO), Decimal(100))),
        confidence_level=_field(raw, "confidence_level") or None,
        m2_money_supply=_field(raw, "m2_money_supply") or None,
        margin_debt=_field(raw, "margin_debt") or None,
        margin_ratio=_field(raw, "margin_ratio") or None,
        market_sentiments=tuple(str(s) for s in sentiments if s),
    )


def _iso_date(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value or "")


def record_from_fields(
    date: Any,
    foreign_stocks: Any = None,
    domestic_stocks: Any = None,
    cryptocurrency: Any = None,
    cash: Any = None,
    total_assets: Any = None,
    trades: Any = None,
    market_issues: Any = None,
    memo: Any = None,
    psychology_check: Any = None,
    id: Optional[str] = None,
) -> JournalRecord:
    """Build a JournalRecord from raw journal fields."""
    return JournalRecord(
        id=id,
        date=_iso_date(date),
        foreign_stocks=holding_lines(foreign_stocks),
        domestic_stocks=holding_lines(domestic_stocks),
        cryptocurrency=holding_lines(cryptocurrency),
        cash=cash_holding(cash),
        total_assets=to_decimal(total_assets),
        trades=_text(trades),
        market_issues=_text(market_issues),
        memo=_text(memo),
        psychology=psychology_snapshot(psychology_check),
    )


def record_from_row(row) -> JournalRecord:
    """Build a JournalRecord from an InvestmentJournal row."""
    return record_from_fields(
        id=row.id,
        date=row.date,
        foreign_stocks=row.foreign_stocks,
        domestic_stocks=row.domestic_stocks,
        cryptocurrency=row.cryptocurrency,
        cash=row.cash,
        total_assets=row.total_assets,
        trades=row.trades,
        market_issues=row.market_issues,
        memo=row.memo,
        psychology_check=row.psychology_check,
    )


def record_from_payload(payload: dict) -> JournalRecord:
    """Build a JournalRecord from a dumped request schema."""
    return record_from_fields(
        id=payload.get("id"),
        date=payload.get("date"),
        foreign_stocks=payload.get("foreign_stocks"),
        domestic_stocks=payload.get("domestic_stocks"),
        cryptocurrency=payload.get("cryptocurrency"),
        cash=payload.get("cash"),
        total_assets=payload.get("total_assets"),
        trades=payload.get("trades"),
        market_issues=payload.get("market_issues"),
        memo=payload.get("memo"),
        psychology_check=payload.get("psychology_check"),
    )
