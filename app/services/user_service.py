"""User profiles, directory listing and account deletion."""
import logging

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ValidationError
from app.models.comment import Comment
from app.models.engagement import Follower, Like, Repost
from app.models.post import Post
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.schemas.user import UserProfile, UserPublic, UserSummary, UserUpdate
from app.services.counter_service import adjust_post_counters

logger = logging.getLogger(__name__)


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        is_verified=bool(user.is_verified),
    )


def user_to_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, username=user.username, display_name=user.display_name)


def user_to_profile(user: User, include_email: bool = False, is_following: bool = False) -> UserProfile:
    return UserProfile(
        id=user.id,
        username=user.username,
        email=user.email if include_email else None,
        display_name=user.display_name,
        bio=user.bio,
        is_verified=bool(user.is_verified),
        follower_count=user.follower_count or 0,
        following_count=user.following_count or 0,
        is_following=is_following,
        created_at=user.created_at,
    )


async def get_user(db: AsyncSession, user_id: int, active_only: bool = True) -> User | None:
    q = select(User).where(User.id == user_id)
    if active_only:
        q = q.where(User.is_active == True)
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: int, current_user_id: int | None = None) -> UserProfile | None:
    """Public profile plus whether the viewer follows this user."""
    from app.services.graph_service import is_following

    user = await get_user(db, user_id)
    if not user:
        return None
    following = False
    if current_user_id and current_user_id != user_id:
        following = await is_following(db, current_user_id, user_id)
    return user_to_profile(user, include_email=current_user_id == user_id, is_following=following)


async def _identity_taken(db: AsyncSession, user_id: int, fields: dict) -> bool:
    """Whether another user already holds the requested username or email."""
    clashes = []
    if "username" in fields:
        clashes.append(User.username == fields["username"])
    if "email" in fields:
        clashes.append(User.email == fields["email"])
    if not clashes:
        return False
    taken = await db.scalar(select(User.id).where(or_(*clashes), User.id != user_id).limit(1))
    return taken is not None


async def update_profile(db: AsyncSession, user_id: int, data: UserUpdate) -> User | None:
    fields = data.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise ValidationError("No data provided for update")
    user = await get_user(db, user_id)
    if not user:
        return None
    if await _identity_taken(db, user_id, fields):
        raise ConflictError("Username or email already in use")
    for name, value in fields.items():
        setattr(user, name, value)
    try:
        await db.flush()
    except IntegrityError:
        raise ConflictError("Username or email already in use")
    return user


async def _grouped_counts(db: AsyncSession, column, *criteria) -> list[tuple[int, int]]:
    result = await db.execute(select(column, func.count()).where(*criteria).group_by(column))
    return [(key, n) for key, n in result.all() if key is not None]


async def delete_user(db: AsyncSession, user_id: int) -> bool:
    """Hard-delete a user and everything they own, keeping other rows' counters exact.

    Counters on surviving posts and users are corrected before the rows that
    feed them disappear; all statements share the caller's transaction.
    """
    exists = await db.scalar(select(User.id).where(User.id == user_id))
    if exists is None:
        return False

    for post_id, n in await _grouped_counts(db, Like.post_id, Like.user_id == user_id):
        await adjust_post_counters(db, post_id, like_count=-n)
    for post_id, n in await _grouped_counts(db, Repost.post_id, Repost.user_id == user_id):
        await adjust_post_counters(db, post_id, repost_count=-n)
    for post_id, n in await _grouped_counts(
        db, Comment.post_id, Comment.user_id == user_id, Comment.is_deleted == False
    ):
        await adjust_post_counters(db, post_id, comment_count=-n)
    for parent_id, n in await _grouped_counts(
        db, Post.parent_post_id, Post.user_id == user_id, Post.is_deleted == False
    ):
        await adjust_post_counters(db, parent_id, comment_count=-n)

    await db.execute(
        update(User)
        .where(User.id.in_(select(Follower.following_id).where(Follower.user_id == user_id)))
        .values(follower_count=User.follower_count - 1)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(User)
        .where(User.id.in_(select(Follower.user_id).where(Follower.following_id == user_id)))
        .values(following_count=User.following_count - 1)
        .execution_options(synchronize_session=False)
    )

    for stmt in (
        delete(Like).where(Like.user_id == user_id),
        delete(Comment).where(Comment.user_id == user_id),
        delete(Repost).where(Repost.user_id == user_id),
        delete(Follower).where(or_(Follower.user_id == user_id, Follower.following_id == user_id)),
        delete(RefreshToken).where(RefreshToken.user_id == user_id),
        delete(Post).where(Post.user_id == user_id),
        delete(User).where(User.id == user_id),
    ):
        await db.execute(stmt.execution_options(synchronize_session=False))
    logger.info("Deleted user %s and owned rows", user_id)
    return True


async def get_all_users(db: AsyncSession, page: int = 1, limit: int = 20) -> tuple[list[User], int]:
    skip = (page - 1) * limit
    result = await db.execute(
        select(User)
        .where(User.is_active == True)
        .order_by(desc(User.created_at), desc(User.id))
        .offset(skip)
        .limit(limit)
    )
    total = await db.scalar(select(func.count(User.id)).where(User.is_active == True))
    return list(result.scalars().all()), total or 0


async def get_suggestions(db: AsyncSession, current_user_id: int | None = None, limit: int = 10) -> list[User]:
    """Most-followed active users, excluding the viewer."""
    q = select(User).where(User.is_active == True)
    if current_user_id:
        q = q.where(User.id != current_user_id)
    q = q.order_by(desc(User.follower_count), User.id).limit(limit)
    result = await db.execute(q)
    return list(result.scalars().all())
