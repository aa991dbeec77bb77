"""Shared field rules for user and store payloads."""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import Field

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_UPPERCASE_RE = re.compile(r"[A-Z]")
_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

NAME_MIN_LENGTH = 20
NAME_MAX_LENGTH = 60
ADDRESS_MAX_LENGTH = 400
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16

# ids are INTEGER columns; anything outside the signed 32-bit range never matches a row
MAX_RECORD_ID = 2_147_483_647

RecordId = Annotated[int, Field(strict=True, ge=1, le=MAX_RECORD_ID)]


def normalise_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("Please include a valid email")
    return v


def check_name(v: str) -> str:
    v = v.strip()
    if not NAME_MIN_LENGTH <= len(v) <= NAME_MAX_LENGTH:
        raise ValueError(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    return v


def check_address(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if len(v) > ADDRESS_MAX_LENGTH:
        raise ValueError(f"Address must not exceed {ADDRESS_MAX_LENGTH} characters")
    return v


def check_password(v: str) -> str:
    """8-16 characters with at least one uppercase and one special character."""
    if not PASSWORD_MIN_LENGTH <= len(v) <= PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters"
        )
    if not _UPPERCASE_RE.search(v) or not _SPECIAL_RE.search(v):
        raise ValueError(
            "Password must contain at least one uppercase and one special character"
        )
    return v
