"""
Auth endpoints — signup, login (OAuth2 password flow), profile & password.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_user, get_db
from app.core.config import settings
from app.core.security import (create_access_token, get_password_hash,
                               verify_password)
from app.models.user import ROLE_NORMAL_USER, ROLE_STORE_OWNER, User
from app.schemas.common import MessageResponse
from app.schemas.token import Token
from app.schemas.user import PasswordUpdate, UserDetail, UserRead, UserRegister
from app.services.aggregates import owner_store_stats

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _issue_token(response: Response, user: User) -> Token:
    access_token = create_access_token(user.id, role=user.role)
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return Token(access_token=access_token, user=UserRead.model_validate(user))


@router.post("/register", response_model=Token, status_code=201)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def register(
    request: Request,
    response: Response,
    body: UserRegister,
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Public signup. New accounts always start as normal users."""
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        name=body.name,
        email=body.email,
        address=body.address,
        hashed_password=get_password_hash(body.password),
        role=ROLE_NORMAL_USER,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %d (%s)", user.id, user.email)
    return _issue_token(response, user)


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate with email/password. Also sets an HttpOnly cookie."""
    result = await db.execute(
        select(User).where(User.email == form_data.username.lower().strip())
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_token(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the auth cookie and end the session."""
    response.delete_cookie("access_token")
    return MessageResponse(success=True, message="Logged out")


@router.get("/me", response_model=UserDetail)
async def read_current_user(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserDetail:
    """Return the caller's profile; store owners also get their store ratings."""
    detail = UserDetail.model_validate(current_user)
    if current_user.role == ROLE_STORE_OWNER:
        detail.stores = await owner_store_stats(db, current_user.id)
    return detail


@router.put("/password", response_model=MessageResponse)
async def update_password(
    body: PasswordUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    if not verify_password(body.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.hashed_password = get_password_hash(body.new_password)
    await db.commit()
    logger.info("Password updated for user %d", current_user.id)
    return MessageResponse(success=True, message="Password updated successfully")
