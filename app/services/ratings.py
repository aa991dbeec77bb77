"""
Rating ledger — upsert / delete of per-user store ratings.

Every write is followed by an average recomputed from the full rating set of
the store, so callers never see an incrementally drifted aggregate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidValueError, NotFoundError
from app.models.rating import MAX_RATING, MIN_RATING, Rating
from app.models.store import Store
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class RatingResult:
    rating: Rating
    average_rating: float


def _check_value(value: object) -> int:
    # bool is an int subclass; True must not pass as a 1-star rating
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValueError()
    if not MIN_RATING <= value <= MAX_RATING:
        raise InvalidValueError()
    return value


async def _find_rating(db: AsyncSession, user_id: int, store_id: int) -> Rating | None:
    result = await db.execute(
        select(Rating)
        .where(Rating.user_id == user_id, Rating.store_id == store_id)
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def store_average(db: AsyncSession, store_id: int) -> float:
    """Mean rating of *store_id*, or ``0.0`` when it has no ratings."""
    result = await db.execute(
        select(func.coalesce(func.avg(Rating.rating), 0)).where(Rating.store_id == store_id)
    )
    return float(result.scalar_one())


async def submit_rating(
    db: AsyncSession, user_id: int, store_id: int, value: int
) -> RatingResult:
    """Create or replace *user_id*'s rating of *store_id*."""
    value = _check_value(value)

    if await db.get(Store, store_id) is None:
        raise NotFoundError("Store not found")
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    now = datetime.now(timezone.utc)
    rating = await _find_rating(db, user_id, store_id)
    if rating is not None:
        rating.rating = value
        rating.updated_at = now
        await db.commit()
        logger.info("Rating %d updated: user %d -> store %d = %d", rating.id, user_id, store_id, value)
    else:
        rating = Rating(user_id=user_id, store_id=store_id, rating=value, created_at=now, updated_at=now)
        db.add(rating)
        try:
            await db.commit()
            logger.info("Rating created: user %d -> store %d = %d", user_id, store_id, value)
        except IntegrityError:
            # A concurrent submission inserted the pair first; update that row.
            await db.rollback()
            rating = await _find_rating(db, user_id, store_id)
            if rating is None:
                raise
            rating.rating = value
            rating.updated_at = datetime.now(timezone.utc)
            await db.commit()
            logger.info("Race condition handled for rating user %d -> store %d", user_id, store_id)

    await db.refresh(rating)
    return RatingResult(rating=rating, average_rating=await store_average(db, store_id))


async def delete_rating(db: AsyncSession, user_id: int, store_id: int) -> float:
    """Remove *user_id*'s rating of *store_id* and return the new average."""
    rating = await _find_rating(db, user_id, store_id)
    if rating is None:
        raise NotFoundError("Rating not found")

    await db.delete(rating)
    await db.commit()
    logger.info("Rating deleted: user %d -> store %d", user_id, store_id)
    return await store_average(db, store_id)
