"""API router package."""
from invest_journal.api.journals import router as journals_router
from invest_journal.api.profiles import router as profiles_router
from invest_journal.api.public import router as public_router
from invest_journal.api.performance import router as performance_router

__all__ = [
    "journals_router",
    "profiles_router",
    "public_router",
    "performance_router",
]
