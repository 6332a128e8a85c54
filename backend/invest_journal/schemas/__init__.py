"""
Schemas package - request and response models for the API.
"""
from invest_journal.schemas.journal import (
    HoldingLineSchema,
    CashSchema,
    PsychologyCheck,
    ChecklistItem,
    JournalCreate,
    JournalUpdate,
    JournalResponse,
    JournalDetailResponse,
    HoldingsBreakdownSchema,
    MemoEntry,
)
from invest_journal.schemas.profile import (
    ProfileCreate,
    ProfileUpdate,
    ProfileResponse,
    PublicUserSummary,
    PublicJournalResult,
)
from invest_journal.schemas.performance import (
    BenchmarkStatus,
    PerformancePoint,
    PerformanceResponse,
)

__all__ = [
    "HoldingLineSchema",
    "CashSchema",
    "PsychologyCheck",
    "ChecklistItem",
    "JournalCreate",
    "JournalUpdate",
    "JournalResponse",
    "JournalDetailResponse",
    "HoldingsBreakdownSchema",
    "MemoEntry",
    "ProfileCreate",
    "ProfileUpdate",
    "ProfileResponse",
    "PublicUserSummary",
    "PublicJournalResult",
    "BenchmarkStatus",
    "PerformancePoint",
    "PerformanceResponse",
]
