"""
Store endpoints.

- GET list / detail: any authenticated user, annotated with the caller's rating.
- POST / PUT / DELETE: admin only; owner roles follow store assignment.
- GET /stores/owner/dashboard: store owners only.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import (RecordIdPath, get_current_user, get_db,
                             require_admin, require_store_owner)
from app.models.store import Store
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.store import (OwnerDashboardResponse, StoreRead, StoreSummary,
                               StoreWrite)
from app.services import aggregates, ownership

router = APIRouter(prefix="/stores", tags=["stores"])


@router.get("", response_model=list[StoreSummary])
async def list_stores(
    name: str | None = None,
    address: str | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[StoreSummary]:
    return await aggregates.list_stores(db, current_user.id, name=name, address=address)


# Declared before /{store_id} so "owner" is not parsed as an id
@router.get("/owner/dashboard", response_model=OwnerDashboardResponse)
async def owner_dashboard(
    db: AsyncSession = Depends(get_db),
    owner: User = Depends(require_store_owner),
) -> OwnerDashboardResponse:
    """Ratings received by each of the caller's stores, newest first."""
    return OwnerDashboardResponse(stores=await aggregates.owner_dashboard(db, owner.id))


@router.get("/{store_id}", response_model=StoreSummary)
async def get_store(
    store_id: RecordIdPath,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StoreSummary:
    return await aggregates.store_summary(db, store_id, current_user.id)


@router.post("", response_model=StoreRead, status_code=201)
async def create_store(
    body: StoreWrite,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Store:
    return await ownership.create_store(
        db, name=body.name, email=body.email, address=body.address, owner_id=body.owner_id
    )


@router.put("/{store_id}", response_model=StoreRead)
async def update_store(
    store_id: RecordIdPath,
    body: StoreWrite,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Store:
    return await ownership.update_store(
        db,
        store_id,
        name=body.name,
        email=body.email,
        address=body.address,
        owner_id=body.owner_id,
    )


@router.delete("/{store_id}", response_model=MessageResponse)
async def delete_store(
    store_id: RecordIdPath,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> MessageResponse:
    await ownership.delete_store(db, store_id)
    return MessageResponse(success=True, message="Store deleted")
