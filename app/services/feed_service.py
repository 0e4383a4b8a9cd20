"""Post CRUD, timeline and post detail."""
import logging
from datetime import datetime

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ValidationError
from app.models.post import Post
from app.schemas.post import PostDetailResponse, PostResponse
from app.services.counter_service import adjust_post_counters
from app.services.engagement_service import (
    comment_to_response,
    get_user_liked_post_ids,
    get_user_reposted_post_ids,
    list_comments,
)
from app.services.graph_service import contains_pattern
from app.services.user_service import user_to_public

logger = logging.getLogger(__name__)


def _clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Content is required and cannot be empty")
    return text


async def create_post(
    db: AsyncSession,
    user_id: int,
    content: str,
    parent_post_id: int | None = None,
) -> Post | None:
    """Create a top-level post or a reply. Returns None if the parent is gone."""
    text = _clean_content(content)
    if parent_post_id is not None:
        parent = await db.scalar(select(Post.id).where(Post.id == parent_post_id, Post.is_deleted == False))
        if parent is None:
            return None
    post = Post(
        user_id=user_id,
        content=text,
        parent_post_id=parent_post_id,
        is_reply=parent_post_id is not None,
        is_deleted=False,
    )
    db.add(post)
    await db.flush()
    if parent_post_id is not None:
        # Replies count towards the parent's comment_count alongside Comment rows
        await adjust_post_counters(db, parent_post_id, comment_count=1)
    await db.refresh(post, attribute_names=["user"])
    return post


async def update_post(db: AsyncSession, user_id: int, post_id: int, content: str) -> Post | None:
    """Edit the caller's own live post. Missing, deleted and foreign posts all yield None."""
    text = _clean_content(content)
    result = await db.execute(
        select(Post)
        .where(Post.id == post_id, Post.user_id == user_id, Post.is_deleted == False)
        .options(selectinload(Post.user))
    )
    post = result.scalar_one_or_none()
    if not post:
        return None
    post.content = text
    post.is_edited = True
    post.updated_at = datetime.utcnow()
    await db.flush()
    return post


async def delete_post(db: AsyncSession, user_id: int, post_id: int) -> bool:
    """Soft delete, scoped to the owner. Returns whether a row was affected."""
    parent_post_id = await db.scalar(
        select(Post.parent_post_id).where(Post.id == post_id, Post.user_id == user_id, Post.is_deleted == False)
    )
    result = await db.execute(
        update(Post)
        .where(Post.id == post_id, Post.user_id == user_id, Post.is_deleted == False)
        .values(is_deleted=True)
    )
    if result.rowcount == 0:
        return False
    if parent_post_id is not None:
        await adjust_post_counters(db, parent_post_id, comment_count=-1)
    logger.debug("User %s deleted post %s", user_id, post_id)
    return True


async def annotate_posts(db: AsyncSession, posts: list[Post], current_user_id: int | None) -> list[PostResponse]:
    """Map posts to responses with the viewer's is_liked / is_reposted flags."""
    ids = [p.id for p in posts]
    liked_ids = await get_user_liked_post_ids(db, current_user_id, ids) if current_user_id else set()
    reposted_ids = await get_user_reposted_post_ids(db, current_user_id, ids) if current_user_id else set()
    return [post_to_response(p, is_liked=p.id in liked_ids, is_reposted=p.id in reposted_ids) for p in posts]


async def get_timeline(
    db: AsyncSession,
    current_user_id: int | None,
    limit: int = 10,
    offset: int = 0,
) -> list[PostResponse]:
    """Top-level live posts, newest first."""
    result = await db.execute(
        select(Post)
        .where(Post.is_reply == False, Post.is_deleted == False)
        .order_by(desc(Post.created_at), desc(Post.id))
        .offset(offset)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    return await annotate_posts(db, list(result.scalars().all()), current_user_id)


async def get_post_detail(db: AsyncSession, post_id: int, current_user_id: int | None = None) -> PostDetailResponse | None:
    result = await db.execute(
        select(Post).where(Post.id == post_id, Post.is_deleted == False).options(selectinload(Post.user))
    )
    post = result.scalar_one_or_none()
    if not post:
        return None
    comments = await list_comments(db, post_id)
    replies_result = await db.execute(
        select(Post)
        .where(Post.parent_post_id == post_id, Post.is_deleted == False)
        .order_by(Post.created_at, Post.id)
        .options(selectinload(Post.user))
    )
    head, *replies = await annotate_posts(db, [post, *replies_result.scalars().all()], current_user_id)
    return PostDetailResponse(
        **head.model_dump(),
        comments=[comment_to_response(c) for c in comments],
        replies=replies,
    )


async def search_posts(
    db: AsyncSession,
    query: str,
    current_user_id: int | None = None,
    limit: int = 10,
    offset: int = 0,
) -> list[PostResponse]:
    query = (query or "").strip()
    if not query:
        return []
    result = await db.execute(
        select(Post)
        .where(Post.content.ilike(contains_pattern(query), escape="\\"), Post.is_deleted == False)
        .order_by(desc(Post.created_at), desc(Post.id))
        .offset(offset)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    return await annotate_posts(db, list(result.scalars().all()), current_user_id)


async def get_user_posts(
    db: AsyncSession,
    author_id: int,
    current_user_id: int | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[PostResponse]:
    """An author's live posts and replies, newest first."""
    result = await db.execute(
        select(Post)
        .where(Post.user_id == author_id, Post.is_deleted == False)
        .order_by(desc(Post.created_at), desc(Post.id))
        .offset(offset)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    return await annotate_posts(db, list(result.scalars().all()), current_user_id)


def post_to_response(post: Post, is_liked: bool = False, is_reposted: bool = False) -> PostResponse:
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        content=post.content,
        parent_post_id=post.parent_post_id,
        is_reply=bool(post.is_reply),
        is_edited=bool(post.is_edited),
        is_pinned=bool(post.is_pinned),
        like_count=post.like_count or 0,
        comment_count=post.comment_count or 0,
        repost_count=post.repost_count or 0,
        is_liked=is_liked,
        is_reposted=is_reposted,
        created_at=post.created_at,
        updated_at=post.updated_at,
        user=user_to_public(post.user) if post.user else None,
    )
