"""
Read-side rating aggregates.

Every projection aggregates the current ``ratings`` rows in SQL at call
time (one query per projection, no caching).  A store with no ratings
reports an average of ``0.0``; only the viewer's own rating may be null.
"""

from __future__ import annotations

from sqlalchemy import Select, and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.exceptions import NotFoundError
from app.models.rating import Rating
from app.models.store import Store
from app.models.user import User
from app.schemas.rating import AdminDashboardResponse
from app.schemas.store import (OwnedStoreStats, OwnerStoreDashboard,
                               StoreRater, StoreSummary)

TOP_STORES_LIMIT = 5

_average = func.coalesce(func.avg(Rating.rating), 0).label("average_rating")
_count = func.count(Rating.id).label("rating_count")


def contains_pattern(term: str) -> str:
    """``%term%`` with LIKE metacharacters escaped (use with ``escape="\\\\"``)."""
    safe = term.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")
    return f"%{safe}%"


def _store_stats(viewer_id: int | None = None) -> Select:
    """Stores LEFT JOIN ratings, grouped per store, with the viewer's own rating."""
    stmt = select(Store, _average, _count).outerjoin(Rating, Rating.store_id == Store.id)
    if viewer_id is not None:
        # unique (user_id, store_id) keeps this join at <= 1 row per store
        mine = aliased(Rating)
        stmt = stmt.add_columns(func.max(mine.rating).label("user_rating")).outerjoin(
            mine, and_(mine.store_id == Store.id, mine.user_id == viewer_id)
        )
    return stmt.group_by(Store.id)


def _to_summary(row) -> StoreSummary:
    store = row[0]
    return StoreSummary(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        owner_id=store.owner_id,
        average_rating=float(row.average_rating),
        rating_count=int(row.rating_count),
        user_rating=getattr(row, "user_rating", None),
    )


async def store_summary(db: AsyncSession, store_id: int, viewer_id: int) -> StoreSummary:
    result = await db.execute(_store_stats(viewer_id).where(Store.id == store_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Store not found")
    return _to_summary(row)


async def list_stores(
    db: AsyncSession,
    viewer_id: int,
    name: str | None = None,
    address: str | None = None,
) -> list[StoreSummary]:
    """All stores matching the case-insensitive filters, ordered by name."""
    stmt = _store_stats(viewer_id)
    if name:
        stmt = stmt.where(Store.name.ilike(contains_pattern(name), escape="\\"))
    if address:
        stmt = stmt.where(Store.address.ilike(contains_pattern(address), escape="\\"))
    result = await db.execute(stmt.order_by(Store.name, Store.id))
    return [_to_summary(row) for row in result.all()]


async def admin_dashboard(db: AsyncSession) -> AdminDashboardResponse:
    """Totals, global average and the five best-rated stores.

    Stores with equal averages rank by rating count, then by id.
    """
    total_users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    total_stores = (await db.execute(select(func.count()).select_from(Store))).scalar_one()
    total_ratings = (await db.execute(select(func.count()).select_from(Rating))).scalar_one()
    global_average = (
        await db.execute(select(func.coalesce(func.avg(Rating.rating), 0)))
    ).scalar_one()

    top = await db.execute(
        _store_stats()
        .order_by(_average.desc(), _count.desc(), Store.id)
        .limit(TOP_STORES_LIMIT)
    )
    return AdminDashboardResponse(
        total_users=int(total_users),
        total_stores=int(total_stores),
        total_ratings=int(total_ratings),
        average_rating=float(global_average),
        top_stores=[_to_summary(row) for row in top.all()],
    )


async def owner_store_stats(db: AsyncSession, owner_id: int) -> list[OwnedStoreStats]:
    result = await db.execute(
        _store_stats().where(Store.owner_id == owner_id).order_by(Store.name, Store.id)
    )
    return [
        OwnedStoreStats(
            id=row[0].id,
            name=row[0].name,
            address=row[0].address,
            average_rating=float(row.average_rating),
            rating_count=int(row.rating_count),
        )
        for row in result.all()
    ]


async def owner_dashboard(db: AsyncSession, owner_id: int) -> list[OwnerStoreDashboard]:
    """Each of the owner's stores with its raters, most recent rating first."""
    stores = await db.execute(
        _store_stats().where(Store.owner_id == owner_id).order_by(Store.name, Store.id)
    )
    summaries = [_to_summary(row) for row in stores.all()]
    if not summaries:
        raise NotFoundError("No store found for this owner")

    raters = await db.execute(
        select(User.id, User.name, User.email, Rating.store_id, Rating.rating, Rating.updated_at)
        .select_from(Rating)
        .join(User, Rating.user_id == User.id)
        .where(Rating.store_id.in_([s.id for s in summaries]))
        .order_by(Rating.updated_at.desc(), Rating.id.desc())
    )
    by_store: dict[int, list[StoreRater]] = {s.id: [] for s in summaries}
    for user_id, name, email, store_id, value, rated_at in raters.all():
        by_store[store_id].append(
            StoreRater(id=user_id, name=name, email=email, rating=value, rating_date=rated_at)
        )

    return [
        OwnerStoreDashboard(store=summary, users_with_ratings=by_store[summary.id])
        for summary in summaries
    ]
