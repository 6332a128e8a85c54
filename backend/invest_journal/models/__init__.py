"""
Models package - Import all database models for easy access.
"""
from invest_journal.models.journal import InvestmentJournal
from invest_journal.models.user_profile import UserProfile

__all__ = [
    "InvestmentJournal",
    "UserProfile",
]
