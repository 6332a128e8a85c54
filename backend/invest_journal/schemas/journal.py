"""Journal schemas."""
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field, field_validator

from invest_journal.services.journal_adapter import psychology_snapshot, to_decimal


class HoldingLineSchema(BaseModel):
    """One position line (foreign stock, domestic stock or crypto)."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Client-side line id")
    symbol: str = Field("", description="Ticker or coin name")
    price: Decimal = Field(Decimal("0"), description="Unit price (USD for foreign/crypto, local for domestic)")
    quantity: Decimal = Field(Decimal("0"), description="Number of units held")

    @field_validator("price", "quantity", mode="before")
    @classmethod
    def coerce_number(cls, v):
        """Blank or malformed numbers are stored as 0."""
        return to_decimal(v)

    @field_validator("symbol", mode="before")
    @classmethod
    def coerce_symbol(cls, v):
        return v if isinstance(v, str) else ""


class CashSchema(BaseModel):
    """Cash balances."""
    krw: Decimal = Field(Decimal("0"), description="Local currency cash")
    usd: Decimal = Field(Decimal("0"), description="USD cash")

    @field_validator("krw", "usd", mode="before")
    @classmethod
    def coerce_number(cls, v):
        return to_decimal(v)


class PsychologyCheck(BaseModel):
    """Market psychology indicators."""
    fear_greed_index: int = Field(50, ge=0, le=100, description="Fear & greed index (0-100)")
    confidence_level: Optional[str] = Field(None, description="Self-assessed confidence")
    m2_money_supply: Optional[str] = None
    margin_debt: Optional[str] = None
    margin_ratio: Optional[str] = None
    market_sentiments: List[str] = Field(default_factory=list, description="Selected sentiment tags")


class ChecklistItem(BaseModel):
    """One market-cycle checklist item."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str
    checked: bool = False


def _list_or_empty(v):
    if not isinstance(v, list):
        return []
    return [item for item in v if isinstance(item, (dict, BaseModel))]


class JournalBase(BaseModel):
    """Fields shared by create requests and responses."""
    date: date_type = Field(..., description="Journal date")
    evaluation: Decimal = Field(Decimal("0"), description="User-entered evaluation gain/loss")
    foreign_stocks: List[HoldingLineSchema] = Field(default_factory=list)
    domestic_stocks: List[HoldingLineSchema] = Field(default_factory=list)
    cryptocurrency: List[HoldingLineSchema] = Field(default_factory=list)
    cash: CashSchema = Field(default_factory=CashSchema)
    psychology_check: Optional[PsychologyCheck] = None
    trades: Optional[str] = None
    market_issues: Optional[str] = None
    memo: Optional[str] = None

    @field_validator("foreign_stocks", "domestic_stocks", "cryptocurrency", mode="before")
    @classmethod
    def coerce_lines(cls, v):
        return _list_or_empty(v)

    @field_validator("cash", mode="before")
    @classmethod
    def coerce_cash(cls, v):
        return {} if v is None else v

    @field_validator("evaluation", mode="before")
    @classmethod
    def coerce_evaluation(cls, v):
        return to_decimal(v)


class JournalCreate(JournalBase):
    """
    Schema for creating a journal.

    When total_assets is omitted it is computed from the holdings at the
    current exchange rate. When a checklist is omitted it is inherited
    (unchecked) from the latest journal, or the defaults are used.
    """
    id: Optional[str] = Field(None, max_length=36, description="Existing id to overwrite (upsert)")
    total_assets: Optional[Decimal] = Field(None, ge=0, description="Total assets in local currency")
    bull_market_checklist: Optional[List[ChecklistItem]] = None
    bear_market_checklist: Optional[List[ChecklistItem]] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2025-01-15",
                    "foreign_stocks": [{"symbol": "AAPL", "price": "190.5", "quantity": "10"}],
                    "domestic_stocks": [{"symbol": "005930", "price": "72000", "quantity": "20"}],
                    "cryptocurrency": [{"symbol": "BTC", "price": "42000", "quantity": "0.05"}],
                    "cash": {"krw": "1500000", "usd": "300"},
                    "psychology_check": {"fear_greed_index": 62, "market_sentiments": ["greed"]},
                    "memo": "Trimmed tech exposure"
                }
            ]
        }
    }


class JournalUpdate(BaseModel):
    """Schema for updating a journal; only provided fields change."""
    date: Optional[date_type] = None
    total_assets: Optional[Decimal] = Field(None, ge=0)
    evaluation: Optional[Decimal] = None
    foreign_stocks: Optional[List[HoldingLineSchema]] = None
    domestic_stocks: Optional[List[HoldingLineSchema]] = None
    cryptocurrency: Optional[List[HoldingLineSchema]] = None
    cash: Optional[CashSchema] = None
    psychology_check: Optional[PsychologyCheck] = None
    bull_market_checklist: Optional[List[ChecklistItem]] = None
    bear_market_checklist: Optional[List[ChecklistItem]] = None
    trades: Optional[str] = None
    market_issues: Optional[str] = None
    memo: Optional[str] = None

    @field_validator("date", "evaluation")
    @classmethod
    def reject_null(cls, v, info):
        # Both columns are NOT NULL; omit the field to keep the stored value
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class JournalResponse(JournalBase):
    """Schema for journal response."""
    id: str
    user_id: str
    total_assets: Decimal
    bull_market_checklist: List[ChecklistItem] = Field(default_factory=list)
    bear_market_checklist: List[ChecklistItem] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("bull_market_checklist", "bear_market_checklist", mode="before")
    @classmethod
    def coerce_checklist(cls, v):
        return _list_or_empty(v)

    @field_validator("psychology_check", mode="before")
    @classmethod
    def coerce_psychology(cls, v):
        if isinstance(v, BaseModel):
            v = v.model_dump()
        if not isinstance(v, dict):
            return None
        # Stored rows may predate the 0-100 bound
        return {**v, "fear_greed_index": psychology_snapshot(v).fear_greed_index}

    @field_validator("total_assets", mode="before")
    @classmethod
    def coerce_total(cls, v):
        return to_decimal(v)

    class Config:
        from_attributes = True


class HoldingsBreakdownSchema(BaseModel):
    """Per-category subtotals at the current exchange rate."""
    foreign_usd: Decimal = Field(..., description="Foreign stocks in USD")
    foreign: Decimal = Field(..., description="Foreign stocks in local currency")
    domestic: Decimal = Field(..., description="Domestic stocks in local currency")
    crypto_usd: Decimal = Field(..., description="Cryptocurrency in USD")
    crypto: Decimal = Field(..., description="Cryptocurrency in local currency")
    cash: Decimal = Field(..., description="Cash in local currency")
    total: int = Field(..., description="Floored total in local currency")

    class Config:
        from_attributes = True


class JournalDetailResponse(JournalResponse):
    """
    Journal with a live valuation next to the stored one.

    total_assets stays the value saved with the journal; live_total_assets
    revalues the same holdings at today's rate.
    """
    exchange_rate: Decimal = Field(..., description="USD rate used for the live valuation")
    breakdown: HoldingsBreakdownSchema
    live_total_assets: int
    total_assets_label: str = Field(..., description="Stored total in Korean units")
    live_total_assets_text: str = Field(..., description="Live total with thousands separators, e.g. \"202,000원\"")


class MemoEntry(BaseModel):
    """Journal notes for the memo list."""
    id: str
    date: date_type
    memo: Optional[str] = None
    market_issues: Optional[str] = None

    class Config:
        from_attributes = True
