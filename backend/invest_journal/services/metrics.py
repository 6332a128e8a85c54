"""
Derived journal metrics.

Turns raw journal holdings into comparable time series:

- Holdings valuation: one local-currency total per journal record
- Time series: date-ordered valuation points for a user's journals
- Return normalization: percentage change from the first point of the
  active time window
- Benchmark alignment: a reference index carried onto the journal dates and
  rebased on the same anchor date

Everything here is pure and synchronous. Callers fetch journals, the FX rate
and the reference series first, then recompute from scratch on every request.
"""
from bisect import bisect_right
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, ROUND_FLOOR
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple
import enum
import logging

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PERCENT_QUANTUM = Decimal("0.01")


class ValuationSource(str, enum.Enum):
    """Which total a view trusts for a record."""
    LIVE = "live"  # recomputed from holdings at the current rate
    STORED = "stored"  # total saved with the record (rate at save time)


class TimeWindow(str, enum.Enum):
    """Trailing chart window."""
    ALL = "all"
    ONE_YEAR = "1y"
    THREE_YEARS = "3y"

    @classmethod
    def parse(cls, value) -> "TimeWindow":
        """Parse a selector, treating anything unrecognized as ALL."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ALL

    @property
    def years(self) -> Optional[int]:
        return {
            TimeWindow.ALL: None,
            TimeWindow.ONE_YEAR: 1,
            TimeWindow.THREE_YEARS: 3,
        }[self]

    def start_date(self, today: Optional[date] = None) -> Optional[date]:
        """
        First calendar date inside the window, or None for ALL.

        Computed from `today` on every call, so evaluating the same window on
        two different days yields different boundaries.
        """
        if self.years is None:
            return None
        return subtract_years(today or date.today(), self.years)


def subtract_years(day: date, years: int) -> date:
    """Same calendar day `years` earlier; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


@dataclass(frozen=True)
class HoldingLine:
    """One position: symbol, quantity and unit price."""
    symbol: str = ""
    quantity: Decimal = ZERO
    price: Decimal = ZERO

    @property
    def value(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class CashHolding:
    """Cash balances in local currency and in USD."""
    krw: Decimal = ZERO
    usd: Decimal = ZERO


@dataclass(frozen=True)
class PsychologySnapshot:
    """Market psychology indicators recorded with a journal."""
    fear_greed_index: int = 50
    confidence_level: Optional[str] = None
    m2_money_supply: Optional[str] = None
    margin_debt: Optional[str] = None
    margin_ratio: Optional[str] = None
    market_sentiments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class JournalRecord:
    """
    One dated holdings snapshot with every field populated.

    `total_assets` is the value stored at save time and may differ from
    value_holdings() at today's rate; both are kept so each view can choose.
    """
    date: str
    foreign_stocks: Tuple[HoldingLine, ...] = ()
    domestic_stocks: Tuple[HoldingLine, ...] = ()
    cryptocurrency: Tuple[HoldingLine, ...] = ()
    cash: CashHolding = field(default_factory=CashHolding)
    total_assets: Decimal = ZERO
    trades: str = ""
    market_issues: str = ""
    memo: str = ""
    psychology: PsychologySnapshot = field(default_factory=PsychologySnapshot)
    id: Optional[str] = None

    @property
    def has_note(self) -> bool:
        return bool(self.memo or self.market_issues)


@dataclass(frozen=True)
class HoldingsBreakdown:
    """Per-category subtotals of one record, local currency unless noted."""
    foreign_usd: Decimal
    foreign: Decimal
    domestic: Decimal
    crypto_usd: Decimal
    crypto: Decimal
    cash: Decimal
    total: Decimal


@dataclass(frozen=True)
class ValuationPoint:
    date: str
    total_value: Decimal
    reference_value: Optional[Decimal] = None
    has_note: bool = False


@dataclass(frozen=True)
class NormalizedPoint:
    date: str
    percent_change: float
    reference_percent_change: Optional[float] = None


@dataclass(frozen=True)
class ComparisonResult:
    """Rebased primary series plus the optional benchmark overlay."""
    window: TimeWindow
    points: List[NormalizedPoint]
    overlay_available: bool
    period_return: Optional[float]
    reference_return: Optional[float]
    alpha: Optional[float]
    aligned: Optional[List[ValuationPoint]] = None  # points with reference values, when available


def _sum_lines(lines: Iterable[HoldingLine]) -> Decimal:
    return sum((line.value for line in lines), ZERO)


def holdings_breakdown(record: JournalRecord, usd_rate: Decimal) -> HoldingsBreakdown:
    """Subtotals for each holding category, converted at `usd_rate`."""
    foreign_usd = _sum_lines(record.foreign_stocks)
    crypto_usd = _sum_lines(record.cryptocurrency)
    foreign = foreign_usd * usd_rate
    domestic = _sum_lines(record.domestic_stocks)
    crypto = crypto_usd * usd_rate
    cash = record.cash.krw + record.cash.usd * usd_rate

    return HoldingsBreakdown(
        foreign_usd=foreign_usd,
        foreign=foreign,
        domestic=domestic,
        crypto_usd=crypto_usd,
        crypto=crypto,
        cash=cash,
        total=foreign + domestic + crypto + cash,
    )


def value_holdings(record: JournalRecord, usd_rate: Decimal) -> Decimal:
    """
    Total value of a record in local currency.

    total = foreign x rate + domestic + crypto x rate + cash.krw + cash.usd x rate

    No rounding is applied; use floor_currency() when displaying.
    """
    return holdings_breakdown(record, usd_rate).total


def floor_currency(value: Decimal) -> int:
    """Floor a currency amount to whole units for display."""
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def build_time_series(
    records: Iterable[JournalRecord],
    usd_rate: Decimal,
    source: ValuationSource = ValuationSource.LIVE
) -> List[ValuationPoint]:
    """
    Valuation points in ascending date order, one per record.

    ISO dates sort lexicographically in chronological order. Records sharing
    a date are kept as separate points in input order.
    """
    ordered = sorted(records, key=lambda record: record.date)

    points = []
    for record in ordered:
        if source == ValuationSource.STORED:
            total = record.total_assets
        else:
            total = value_holdings(record, usd_rate)
        points.append(ValuationPoint(date=record.date, total_value=total, has_note=record.has_note))

    return points


def round_percent(value: Decimal) -> float:
    """Round a percentage half-up to 2 decimal places."""
    return float(value.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP))


def percent_change(value: Decimal, base: Decimal) -> float:
    """Percentage change from `base`; 0 when there is no positive base."""
    if base > 0:
        return round_percent((value - base) / base * HUNDRED)
    return 0.0


def filter_window(
    points: Sequence[ValuationPoint],
    window,
    today: Optional[date] = None
) -> List[ValuationPoint]:
    """Points whose date falls inside the trailing window."""
    start = TimeWindow.parse(window).start_date(today)
    if start is None:
        return list(points)
    boundary = start.isoformat()
    return [point for point in points if point.date >= boundary]


def normalize_returns(
    points: Sequence[ValuationPoint],
    window=TimeWindow.ALL,
    today: Optional[date] = None
) -> List[NormalizedPoint]:
    """
    Rebase a valuation sequence to percent change within a time window.

    The anchor (0%) is the first point inside the window, so changing the
    window changes every visible percentage. Reference values, when present,
    are rebased on the same anchor date.
    """
    visible = filter_window(points, window, today)
    if not visible:
        return []

    base = visible[0].total_value
    reference_base = visible[0].reference_value

    normalized = []
    for point in visible:
        reference_pct = None
        if point.reference_value is not None and reference_base is not None:
            reference_pct = percent_change(point.reference_value, reference_base)
        normalized.append(NormalizedPoint(
            date=point.date,
            percent_change=percent_change(point.total_value, base),
            reference_percent_change=reference_pct,
        ))

    return normalized


def align_reference_series(
    target_dates: Sequence[str],
    reference: Optional[Mapping[str, Decimal]]
) -> Optional[List[Decimal]]:
    """
    Reference value for every target date.

    Each date takes the latest reference close on or before it. Dates before
    the whole reference series take its earliest close. Returns None when the
    reference is missing or empty, so callers can mark the overlay as
    unavailable instead of plotting a flat line.
    """
    if not reference:
        return None

    known = sorted(
        (ref_date, Decimal(str(value)))
        for ref_date, value in reference.items()
        if value is not None
    )
    if not known:
        return None

    ref_dates = [ref_date for ref_date, _ in known]
    aligned = []
    for target in target_dates:
        idx = bisect_right(ref_dates, target) - 1
        aligned.append(known[max(idx, 0)][1])

    return aligned


def attach_reference(
    points: Sequence[ValuationPoint],
    reference: Optional[Mapping[str, Decimal]]
) -> Optional[List[ValuationPoint]]:
    """Copy of `points` with aligned reference values, or None if unavailable."""
    aligned = align_reference_series([point.date for point in points], reference)
    if aligned is None:
        return None
    return [
        replace(point, reference_value=value)
        for point, value in zip(points, aligned)
    ]


def build_comparison(
    points: Sequence[ValuationPoint],
    window=TimeWindow.ALL,
    reference: Optional[Mapping[str, Decimal]] = None,
    today: Optional[date] = None
) -> ComparisonResult:
    """
    Normalized chart data with period returns and alpha.

    Pass reference=None when the overlay is not requested or could not be
    fetched; the result then reports overlay_available=False and no
    reference figures.
    """
    window = TimeWindow.parse(window)
    with_reference = attach_reference(points, reference)
    overlay_available = with_reference is not None
    if not overlay_available and reference is not None:
        logger.debug("Reference series is empty, overlay unavailable")

    normalized = normalize_returns(
        with_reference if overlay_available else points,
        window,
        today
    )

    period_return = normalized[-1].percent_change if normalized else None
    reference_return = None
    alpha = None
    if overlay_available and normalized:
        reference_return = normalized[-1].reference_percent_change
        if reference_return is not None:
            alpha = round_percent(
                Decimal(str(period_return)) - Decimal(str(reference_return))
            )

    return ComparisonResult(
        window=window,
        points=normalized,
        overlay_available=overlay_available,
        period_return=period_return,
        reference_return=reference_return,
        alpha=alpha,
        aligned=with_reference,
    )
