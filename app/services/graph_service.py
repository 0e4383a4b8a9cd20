"""Social graph: follow/unfollow, follower listings and user search."""
import logging

from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SelfFollowError
from app.db.session import insert_ignore
from app.models.engagement import Follower
from app.models.user import User
from app.services.counter_service import adjust_user_counters

logger = logging.getLogger(__name__)


def contains_pattern(query: str) -> str:
    """ILIKE pattern matching ``query`` as a literal substring (escape char ``\\``)."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def follow(db: AsyncSession, user_id: int, following_id: int) -> bool | None:
    """Make user_id follow following_id.

    Returns True when a relationship was created, False when it already
    existed, None when the target user does not exist or is inactive.
    """
    if user_id == following_id:
        raise SelfFollowError()
    target = await db.scalar(select(User.id).where(User.id == following_id, User.is_active == True))
    if target is None:
        return None
    result = await db.execute(
        insert_ignore(db, Follower)
        .values(user_id=user_id, following_id=following_id)
        .returning(Follower.id)
    )
    if result.scalar_one_or_none() is None:
        return False
    await adjust_user_counters(db, user_id, following_count=1)
    await adjust_user_counters(db, following_id, follower_count=1)
    logger.debug("User %s followed %s", user_id, following_id)
    return True


async def unfollow(db: AsyncSession, user_id: int, following_id: int) -> bool:
    """Returns True only if a relationship row was removed."""
    result = await db.execute(
        delete(Follower).where(
            Follower.user_id == user_id,
            Follower.following_id == following_id,
        )
    )
    if result.rowcount == 0:
        return False
    await adjust_user_counters(db, user_id, following_count=-1)
    await adjust_user_counters(db, following_id, follower_count=-1)
    logger.debug("User %s unfollowed %s", user_id, following_id)
    return True


async def is_following(db: AsyncSession, user_id: int, following_id: int) -> bool:
    result = await db.execute(
        select(Follower.id).where(
            Follower.user_id == user_id,
            Follower.following_id == following_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def get_following_ids(db: AsyncSession, user_id: int, candidate_ids: list[int]) -> set[int]:
    """Subset of candidate_ids that user_id follows."""
    if not candidate_ids:
        return set()
    result = await db.execute(
        select(Follower.following_id).where(
            Follower.user_id == user_id,
            Follower.following_id.in_(candidate_ids),
        )
    )
    return {row[0] for row in result.all()}


async def get_followers(db: AsyncSession, user_id: int, page: int = 1, limit: int = 20) -> tuple[list[User], int]:
    """Active users following user_id, most recent first."""
    skip = (page - 1) * limit
    result = await db.execute(
        select(User)
        .join(Follower, Follower.user_id == User.id)
        .where(Follower.following_id == user_id, User.is_active == True)
        .order_by(desc(Follower.created_at), desc(Follower.id))
        .offset(skip)
        .limit(limit)
    )
    total = await db.scalar(
        select(func.count(Follower.id))
        .join(User, Follower.user_id == User.id)
        .where(Follower.following_id == user_id, User.is_active == True)
    )
    return list(result.scalars().all()), total or 0


async def get_following(db: AsyncSession, user_id: int, page: int = 1, limit: int = 20) -> tuple[list[User], int]:
    """Active users that user_id follows, most recent first."""
    skip = (page - 1) * limit
    result = await db.execute(
        select(User)
        .join(Follower, Follower.following_id == User.id)
        .where(Follower.user_id == user_id, User.is_active == True)
        .order_by(desc(Follower.created_at), desc(Follower.id))
        .offset(skip)
        .limit(limit)
    )
    total = await db.scalar(
        select(func.count(Follower.id))
        .join(User, Follower.following_id == User.id)
        .where(Follower.user_id == user_id, User.is_active == True)
    )
    return list(result.scalars().all()), total or 0


async def search_users(db: AsyncSession, query: str, limit: int = 10, offset: int = 0) -> tuple[list[User], int]:
    query = (query or "").strip()
    if not query:
        return [], 0
    pattern = contains_pattern(query)
    criteria = (
        or_(
            User.username.ilike(pattern, escape="\\"),
            User.display_name.ilike(pattern, escape="\\"),
        ),
        User.is_active == True,
    )
    result = await db.execute(select(User).where(*criteria).order_by(User.username).offset(offset).limit(limit))
    total = await db.scalar(select(func.count(User.id)).where(*criteria))
    return list(result.scalars().all()), total or 0
