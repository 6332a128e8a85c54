"""
InvestmentJournal model - One dated snapshot of a user's holdings and notes.
"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Optional
from sqlalchemy import String, Numeric, Date, DateTime, Text, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from invest_journal.database import Base


class InvestmentJournal(Base):
    """
    InvestmentJournal model storing one journal entry per user and date.

    Holding lists, cash, psychology data and checklists are stored as JSON
    documents exactly as submitted; missing or malformed fields are coerced
    when rows are read back (see services.journal_adapter). Date uniqueness
    per user is expected but not enforced.
    """
    __tablename__ = "investment_journals"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Owner
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Owning user account"
    )

    date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Journal date"
    )

    # Valuation stored at save time (exchange rate of that moment)
    total_assets: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2),
        nullable=False,
        default=Decimal("0"),
        comment="Total assets in local currency at save time"
    )

    evaluation: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2),
        nullable=False,
        default=Decimal("0"),
        comment="User-entered evaluation gain/loss"
    )

    # Holdings
    foreign_stocks: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    domestic_stocks: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    cryptocurrency: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    cash: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Psychology and checklists
    psychology_check: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    bull_market_checklist: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    bear_market_checklist: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Notes
    trades: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    market_issues: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index('ix_investment_journals_user_date', 'user_id', 'date'),
    )

    def __repr__(self) -> str:
        return (
            f"InvestmentJournal(id={self.id!r}, "
            f"user_id={self.user_id!r}, "
            f"date={self.date!r}, "
            f"total_assets={self.total_assets!r})"
        )
