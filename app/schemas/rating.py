"""Pydantic schemas for rating submission and the admin dashboard."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, StrictInt

from app.schemas.fields import RecordId
from app.schemas.store import StoreSummary


class RatingSubmit(BaseModel):
    store_id: RecordId
    rating: StrictInt  # range checked by the ledger


class RatingRead(BaseModel):
    id: int
    user_id: int
    store_id: int
    rating: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class RatingSubmitResponse(BaseModel):
    rating: RatingRead
    average_rating: float


class RatingDeleteResponse(BaseModel):
    success: bool
    message: str
    average_rating: float


class AdminDashboardResponse(BaseModel):
    total_users: int
    total_stores: int
    total_ratings: int
    average_rating: float
    top_stores: list[StoreSummary]
