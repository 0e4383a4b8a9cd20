"""Auth endpoints: register, login, refresh, logout."""
import logging

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.config import settings
from app.models.user import User
from app.schemas.post import MessageResponse
from app.schemas.user import (
    LoginByUsernameRequest,
    LoginRequest,
    Token,
    TokenRefresh,
    UserCreate,
    UserProfile,
)
from app.services.auth_service import (
    authenticate_user,
    authenticate_user_by_username,
    create_user,
    issue_tokens,
    revoke_refresh_token,
    rotate_refresh_token,
)
from app.services.user_service import user_to_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite="lax",
        path="/",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )


async def _token_response(db: AsyncSession, response: Response, user: User) -> Token:
    access_token, refresh_token = await issue_tokens(db, user)
    token = Token(
        access_token=access_token,
        refresh_token=refresh_token,
        user=user_to_profile(user, include_email=True),
    )
    await db.commit()
    _set_refresh_cookie(response, refresh_token)
    return token


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    user = await create_user(db, data)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return await _token_response(db, response, user)


@router.post("/login", response_model=Token)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(db, data.email, data.password)
    if not user:
        logger.info("Login failed for email %s", data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return await _token_response(db, response, user)


@router.post("/login/username", response_model=Token)
async def login_by_username(
    data: LoginByUsernameRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user_by_username(db, data.username, data.password)
    if not user:
        logger.info("Login failed for username %s", data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    return await _token_response(db, response, user)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    response: Response,
    body: TokenRefresh | None = None,
    refresh_cookie: str | None = Cookie(None, alias=settings.REFRESH_COOKIE_NAME),
    db: AsyncSession = Depends(get_db),
):
    token = (body.refresh_token if body else None) or refresh_cookie
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token missing")
    rotated = await rotate_refresh_token(db, token)
    if not rotated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    user, access_token, new_refresh = rotated
    result = Token(
        access_token=access_token,
        refresh_token=new_refresh,
        user=user_to_profile(user, include_email=True),
    )
    await db.commit()
    _set_refresh_cookie(response, new_refresh)
    return result


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    body: TokenRefresh | None = None,
    refresh_cookie: str | None = Cookie(None, alias=settings.REFRESH_COOKIE_NAME),
    db: AsyncSession = Depends(get_db),
):
    token = (body.refresh_token if body else None) or refresh_cookie
    if token:
        await revoke_refresh_token(db, token)
        await db.commit()
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path="/")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserProfile)
async def me(current_user: User = Depends(get_current_user)):
    return user_to_profile(current_user, include_email=True)
