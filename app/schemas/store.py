"""Pydantic schemas for stores and their rating aggregates."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from app.schemas.fields import (RecordId, check_address, check_name,
                                normalise_email)


class StoreWrite(BaseModel):
    """Body of store create and update; both replace every field."""

    name: str
    email: str
    address: str | None = None
    owner_id: RecordId

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return check_name(v)

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        return normalise_email(v)

    @field_validator("address")
    @classmethod
    def _address(cls, v: str | None) -> str | None:
        return check_address(v)


class StoreRead(BaseModel):
    id: int
    name: str
    email: str
    address: str | None
    owner_id: int

    model_config = {"from_attributes": True}


class StoreSummary(StoreRead):
    average_rating: float = 0.0
    rating_count: int = 0
    user_rating: int | None = None


class OwnedStoreStats(BaseModel):
    id: int
    name: str
    address: str | None
    average_rating: float = 0.0
    rating_count: int = 0


class StoreRater(BaseModel):
    id: int
    name: str
    email: str
    rating: int
    rating_date: datetime | None


class OwnerStoreDashboard(BaseModel):
    store: StoreSummary
    users_with_ratings: list[StoreRater]


class OwnerDashboardResponse(BaseModel):
    stores: list[OwnerStoreDashboard]
