"""User profile schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from invest_journal.schemas.journal import JournalResponse


class ProfileBase(BaseModel):
    """Editable profile fields."""
    nickname: Optional[str] = Field(None, max_length=50, description="Searchable nickname")
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    is_public: bool = Field(False, description="Allow other users to read my journals")


class ProfileCreate(ProfileBase):
    """Schema for creating the caller's profile."""
    pass


class ProfileUpdate(BaseModel):
    """Schema for updating a profile; only provided fields change."""
    nickname: Optional[str] = Field(None, max_length=50)
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    is_public: Optional[bool] = None


class ProfileResponse(ProfileBase):
    """Schema for profile response."""
    id: int
    user_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PublicUserSummary(BaseModel):
    """A user with public journals and their stored-total statistics."""
    profile: ProfileResponse
    journal_count: int = Field(..., description="Number of journals")
    latest_assets: int = Field(..., description="Stored total of the latest journal")
    latest_assets_label: str = Field(..., description="Latest total in Korean units")
    total_return: float = Field(..., description="Return from the first to the latest journal (%)")
    total_return_label: str = Field(..., description="Signed return, e.g. \"+25.00%\"")


class PublicJournalResult(BaseModel):
    """A journal together with its author's profile."""
    journal: JournalResponse
    profile: Optional[ProfileResponse] = None
