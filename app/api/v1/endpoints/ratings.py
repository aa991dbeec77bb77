"""
Rating endpoints: submit or withdraw a rating, admin dashboard.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import (RecordIdPath, get_db, require_admin,
                             require_normal_user)
from app.models.user import User
from app.schemas.rating import (AdminDashboardResponse, RatingDeleteResponse,
                                RatingRead, RatingSubmit, RatingSubmitResponse)
from app.services import aggregates, ratings

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("", response_model=RatingSubmitResponse, status_code=201)
async def submit_rating(
    body: RatingSubmit,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_normal_user),
) -> RatingSubmitResponse:
    """Submit a rating, or replace the caller's existing rating for the store."""
    result = await ratings.submit_rating(db, user.id, body.store_id, body.rating)
    return RatingSubmitResponse(
        rating=RatingRead.model_validate(result.rating),
        average_rating=result.average_rating,
    )


@router.get("/dashboard", response_model=AdminDashboardResponse)
async def admin_dashboard(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> AdminDashboardResponse:
    return await aggregates.admin_dashboard(db)


@router.delete("/{store_id}", response_model=RatingDeleteResponse)
async def delete_rating(
    store_id: RecordIdPath,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_normal_user),
) -> RatingDeleteResponse:
    average = await ratings.delete_rating(db, user.id, store_id)
    return RatingDeleteResponse(success=True, message="Rating deleted", average_rating=average)
