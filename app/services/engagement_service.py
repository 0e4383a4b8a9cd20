"""Likes, reposts, quote posts and comments, kept in step with post counters.

Toggles are decided at the store boundary: a DELETE reports whether a row
existed, and an INSERT ... ON CONFLICT DO NOTHING reports whether a row was
written, so the unique constraints arbitrate concurrent requests and a
counter only moves when a row actually changed.
"""
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ValidationError
from app.db.session import insert_ignore
from app.models.comment import Comment
from app.models.engagement import Like, Repost
from app.models.post import Post
from app.schemas.comment import CommentResponse
from app.schemas.repost import RepostResponse
from app.services.counter_service import adjust_post_counters
from app.services.user_service import user_to_public

logger = logging.getLogger(__name__)


async def get_live_post(db: AsyncSession, post_id: int) -> Post | None:
    """Post that exists and is not soft-deleted."""
    result = await db.execute(select(Post).where(Post.id == post_id, Post.is_deleted == False))
    return result.scalar_one_or_none()


async def toggle_like(db: AsyncSession, user_id: int, post_id: int) -> bool | None:
    """Like or unlike. Returns the new liked state, or None if the post is gone."""
    if await get_live_post(db, post_id) is None:
        return None
    removed = await db.execute(delete(Like).where(Like.user_id == user_id, Like.post_id == post_id))
    if removed.rowcount > 0:
        await adjust_post_counters(db, post_id, like_count=-1)
        logger.debug("User %s unliked post %s", user_id, post_id)
        return False
    inserted = await db.execute(
        insert_ignore(db, Like).values(user_id=user_id, post_id=post_id).returning(Like.id)
    )
    if inserted.scalar_one_or_none() is not None:
        await adjust_post_counters(db, post_id, like_count=1)
        logger.debug("User %s liked post %s", user_id, post_id)
    return True


async def toggle_repost(db: AsyncSession, user_id: int, post_id: int) -> bool | None:
    """Plain (non-quote) repost toggle. Returns the new reposted state, or None."""
    if await get_live_post(db, post_id) is None:
        return None
    removed = await db.execute(
        delete(Repost).where(
            Repost.user_id == user_id,
            Repost.post_id == post_id,
            Repost.is_quote_post == False,
        )
    )
    if removed.rowcount > 0:
        await adjust_post_counters(db, post_id, repost_count=-1)
        return False
    inserted = await db.execute(
        insert_ignore(db, Repost)
        .values(user_id=user_id, post_id=post_id, is_quote_post=False)
        .returning(Repost.id)
    )
    if inserted.scalar_one_or_none() is not None:
        await adjust_post_counters(db, post_id, repost_count=1)
    return True


async def quote_post(db: AsyncSession, user_id: int, post_id: int, quote_content: str) -> Repost | None:
    """Always creates a new quote; a user may quote the same post many times."""
    text = (quote_content or "").strip()
    if not text:
        raise ValidationError("Quote content is required")
    if await get_live_post(db, post_id) is None:
        return None
    repost = Repost(user_id=user_id, post_id=post_id, is_quote_post=True, quote_content=text)
    db.add(repost)
    await db.flush()
    await adjust_post_counters(db, post_id, repost_count=1)
    return repost


async def add_comment(db: AsyncSession, user_id: int, post_id: int, content: str) -> Comment | None:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Content is required and cannot be empty")
    if await get_live_post(db, post_id) is None:
        return None
    comment = Comment(user_id=user_id, post_id=post_id, content=text, is_deleted=False)
    db.add(comment)
    await db.flush()
    await adjust_post_counters(db, post_id, comment_count=1)
    await db.refresh(comment, attribute_names=["user"])
    return comment


async def list_comments(db: AsyncSession, post_id: int) -> list[Comment]:
    """Live comments in thread order (oldest first)."""
    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id, Comment.is_deleted == False)
        .order_by(Comment.created_at, Comment.id)
        .options(selectinload(Comment.user))
    )
    return list(result.scalars().all())


async def delete_comment(db: AsyncSession, user_id: int, post_id: int, comment_id: int) -> bool:
    """Soft-delete the caller's own comment."""
    result = await db.execute(
        update(Comment)
        .where(
            Comment.id == comment_id,
            Comment.post_id == post_id,
            Comment.user_id == user_id,
            Comment.is_deleted == False,
        )
        .values(is_deleted=True)
    )
    if result.rowcount == 0:
        return False
    await adjust_post_counters(db, post_id, comment_count=-1)
    return True


async def get_user_liked_post_ids(db: AsyncSession, user_id: int, post_ids: list[int]) -> set[int]:
    """Return set of post IDs that the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(Like.post_id).where(
            Like.user_id == user_id,
            Like.post_id.in_(post_ids),
        )
    )
    return {row[0] for row in result.all()}


async def get_user_reposted_post_ids(db: AsyncSession, user_id: int, post_ids: list[int]) -> set[int]:
    """Return set of post IDs that the user has plainly reposted."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(Repost.post_id).where(
            Repost.user_id == user_id,
            Repost.post_id.in_(post_ids),
            Repost.is_quote_post == False,
        )
    )
    return {row[0] for row in result.all()}


def comment_to_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        content=comment.content,
        created_at=comment.created_at,
        user=user_to_public(comment.user) if comment.user else None,
    )


def repost_to_response(repost: Repost) -> RepostResponse:
    return RepostResponse(
        id=repost.id,
        user_id=repost.user_id,
        post_id=repost.post_id,
        is_quote_post=repost.is_quote_post,
        quote_content=repost.quote_content,
        created_at=repost.created_at,
    )
