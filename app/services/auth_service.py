"""Authentication business logic: registration, login and refresh-token sessions."""
import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    subject_to_user_id,
    verify_password,
)
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.schemas.user import UserCreate
from app.services.user_service import get_user

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    if await get_user_by_email(db, data.email):
        raise ConflictError("Email already registered")
    if await get_user_by_username(db, data.username):
        raise ConflictError("Username already taken")
    user = User(
        username=data.username,
        email=data.email,
        password_hash=get_password_hash(data.password),
        display_name=data.display_name or data.username,
        bio=data.bio,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # A concurrent registration won the unique index after the checks above
        raise ConflictError("Username or email already in use")
    await db.refresh(user)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(db, email)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user


async def authenticate_user_by_username(db: AsyncSession, username: str, password: str) -> User | None:
    user = await get_user_by_username(db, username)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user


async def issue_tokens(db: AsyncSession, user: User) -> tuple[str, str]:
    """Mint an access token and persist a new refresh token for the user."""
    refresh_token, expires_at = create_refresh_token(user.id)
    db.add(RefreshToken(user_id=user.id, token=refresh_token, expires_at=expires_at))
    await db.flush()
    return create_access_token(user.id), refresh_token


async def rotate_refresh_token(db: AsyncSession, token: str) -> tuple[User, str, str] | None:
    """Exchange a stored, unexpired refresh token for a fresh pair."""
    user_id = subject_to_user_id(decode_token(token), "refresh")
    if user_id is None:
        return None
    result = await db.execute(
        select(RefreshToken).where(RefreshToken.token == token, RefreshToken.user_id == user_id)
    )
    stored = result.scalar_one_or_none()
    if not stored or stored.expires_at < datetime.utcnow():
        return None
    user = await get_user(db, user_id)
    if not user:
        return None
    await db.delete(stored)
    access_token, refresh_token = await issue_tokens(db, user)
    logger.debug("Rotated refresh token for user %s", user_id)
    return user, access_token, refresh_token


async def revoke_refresh_token(db: AsyncSession, token: str) -> bool:
    result = await db.execute(delete(RefreshToken).where(RefreshToken.token == token))
    return result.rowcount > 0
