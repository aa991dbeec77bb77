"""
Rating model — one row per (user, store), value 1..5.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (CheckConstraint, Column, DateTime, ForeignKey, Index,
                        Integer, UniqueConstraint)

from app.db.base import Base

MIN_RATING = 1
MAX_RATING = 5


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "store_id", name="uq_rating_user_store"),
        CheckConstraint(
            f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}",
            name="ck_rating_range",
        ),
        Index("ix_rating_store_updated", "store_id", "updated_at"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    store_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    rating: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
