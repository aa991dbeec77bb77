"""Pydantic schemas for User signup, admin management and profile reads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from app.models.user import ROLE_NORMAL_USER, ROLE_SYSTEM_ADMIN
from app.schemas.fields import (check_address, check_name, check_password,
                                normalise_email)
from app.schemas.store import OwnedStoreStats

# store_owner is derived from store ownership and can never be assigned directly
_ASSIGNABLE_ROLES = {ROLE_SYSTEM_ADMIN, ROLE_NORMAL_USER}


class UserRegister(BaseModel):
    name: str
    email: str
    password: str
    address: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return check_name(v)

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        return normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return check_password(v)

    @field_validator("address")
    @classmethod
    def _address(cls, v: str | None) -> str | None:
        return check_address(v)


class UserCreate(UserRegister):
    role: str = ROLE_NORMAL_USER

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        if v not in _ASSIGNABLE_ROLES:
            raise ValueError(f"Role must be one of: {sorted(_ASSIGNABLE_ROLES)}")
        return v


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    address: str | None
    role: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserDetail(UserRead):
    stores: list[OwnedStoreStats] = []


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _password(cls, v: str) -> str:
        return check_password(v)
