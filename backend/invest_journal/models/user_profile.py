"""
UserProfile model - Public-facing profile and journal visibility flag.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from invest_journal.database import Base


class UserProfile(Base):
    """
    UserProfile model, one row per user account.

    When is_public is set, other users may search and read this user's
    journals.
    """
    __tablename__ = "user_profiles"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        comment="Account identifier supplied by the auth layer"
    )

    nickname: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        index=True
    )
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether other users may read this user's journals"
    )

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

    def __repr__(self) -> str:
        return (
            f"UserProfile(id={self.id!r}, "
            f"user_id={self.user_id!r}, "
            f"nickname={self.nickname!r}, "
            f"is_public={self.is_public!r})"
        )
