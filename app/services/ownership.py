"""
Store ownership engine — store create / update / delete plus role derivation.

The ``store_owner`` / ``normal_user`` role is a function of ownership: a user
holds ``store_owner`` exactly while they own at least one store.  Every
store mutation re-derives the role of each affected user inside the same
transaction, so the invariant holds at every commit.  ``system_admin`` is
never touched here.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (DuplicateEmailError, NotFoundError,
                                 OwnerNotFoundError)
from app.models.rating import Rating
from app.models.store import Store
from app.models.user import (ROLE_NORMAL_USER, ROLE_STORE_OWNER,
                             ROLE_SYSTEM_ADMIN, User)

logger = logging.getLogger(__name__)


async def _get_store(db: AsyncSession, store_id: int) -> Store:
    result = await db.execute(select(Store).where(Store.id == store_id).with_for_update())
    store = result.scalar_one_or_none()
    if store is None:
        raise NotFoundError("Store not found")
    return store


async def _check_owner(db: AsyncSession, owner_id: int) -> None:
    if await db.get(User, owner_id) is None:
        raise OwnerNotFoundError()


async def _email_taken(db: AsyncSession, email: str, exclude_store_id: int | None = None) -> bool:
    stmt = select(Store.id).where(Store.email == email)
    if exclude_store_id is not None:
        stmt = stmt.where(Store.id != exclude_store_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def count_owned_stores(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(Store).where(Store.owner_id == user_id)
    )
    return int(result.scalar_one())


async def sync_owner_role(db: AsyncSession, user_id: int) -> str | None:
    """Set *user_id*'s role from the number of stores they currently own.

    Must run after the store change has been flushed. Returns the resulting
    role, or ``None`` if the user no longer exists.
    """
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        return None
    if user.role == ROLE_SYSTEM_ADMIN:
        return user.role

    owned = await count_owned_stores(db, user_id)
    role = ROLE_STORE_OWNER if owned else ROLE_NORMAL_USER
    if user.role != role:
        logger.info("User %d role %s -> %s (%d stores owned)", user_id, user.role, role, owned)
        user.role = role
    return role


async def _flush_store(db: AsyncSession, email: str, store_id: int | None = None) -> None:
    """Flush the store row, reporting a lost race on the unique email as a domain error."""
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        if await _email_taken(db, email, exclude_store_id=store_id):
            raise DuplicateEmailError() from None
        raise


async def create_store(
    db: AsyncSession,
    name: str,
    email: str,
    address: str | None,
    owner_id: int,
) -> Store:
    if await _email_taken(db, email):
        raise DuplicateEmailError("Store already exists")
    await _check_owner(db, owner_id)

    store = Store(name=name, email=email, address=address, owner_id=owner_id)
    db.add(store)
    await _flush_store(db, email)
    await sync_owner_role(db, owner_id)
    await db.commit()
    await db.refresh(store)

    logger.info("Created store %d (%s) owned by user %d", store.id, store.name, owner_id)
    return store


async def update_store(
    db: AsyncSession,
    store_id: int,
    name: str,
    email: str,
    address: str | None,
    owner_id: int,
) -> Store:
    store = await _get_store(db, store_id)
    if await _email_taken(db, email, exclude_store_id=store_id):
        raise DuplicateEmailError()
    await _check_owner(db, owner_id)

    previous_owner_id = store.owner_id
    store.name = name
    store.email = email
    store.address = address
    store.owner_id = owner_id
    await _flush_store(db, email, store_id=store_id)

    await sync_owner_role(db, owner_id)
    if previous_owner_id != owner_id:
        await sync_owner_role(db, previous_owner_id)
    await db.commit()
    await db.refresh(store)

    if previous_owner_id != owner_id:
        logger.info("Store %d reassigned: user %d -> user %d", store_id, previous_owner_id, owner_id)
    logger.info("Updated store %d", store_id)
    return store


async def delete_store(db: AsyncSession, store_id: int) -> None:
    store = await _get_store(db, store_id)
    owner_id = store.owner_id

    await db.execute(sa_delete(Rating).where(Rating.store_id == store_id))
    await db.delete(store)
    await db.flush()
    await sync_owner_role(db, owner_id)
    await db.commit()

    logger.info("Deleted store %d (former owner %d)", store_id, owner_id)
