"""
User management endpoints (admin only).

Accounts can be created as ``normal_user`` or ``system_admin``; the
``store_owner`` role only ever comes from store assignment.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import RecordIdPath, get_db, require_admin
from app.core.security import get_password_hash
from app.models.user import ROLE_STORE_OWNER, User
from app.schemas.user import UserCreate, UserDetail, UserRead
from app.services.aggregates import contains_pattern, owner_store_stats

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[UserRead])
async def list_users(
    name: str | None = None,
    email: str | None = None,
    role: str | None = None,
    address: str | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[User]:
    query = select(User).order_by(User.name, User.id)
    if name:
        query = query.where(User.name.ilike(contains_pattern(name), escape="\\"))
    if email:
        query = query.where(User.email.ilike(contains_pattern(email), escape="\\"))
    if role:
        query = query.where(User.role == role)
    if address:
        query = query.where(User.address.ilike(contains_pattern(address), escape="\\"))
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> User:
    """Create a new user account (admin only)."""
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        name=body.name,
        email=body.email,
        address=body.address,
        hashed_password=get_password_hash(body.password),
        role=body.role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Admin created user %d (%s, %s)", user.id, user.email, user.role)
    return user


@router.get("/{user_id}", response_model=UserDetail)
async def get_user(
    user_id: RecordIdPath,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> UserDetail:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    detail = UserDetail.model_validate(user)
    if user.role == ROLE_STORE_OWNER:
        detail.stores = await owner_store_stats(db, user.id)
    return detail
