"""Pydantic schemas for JWT tokens."""

from __future__ import annotations

from pydantic import BaseModel

from app.schemas.user import UserRead


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
