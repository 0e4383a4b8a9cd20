"""Denormalized counter maintenance and drift audit.

Counters on posts and users are the read-side source of truth. Every mutation
path adjusts them with SQL-side arithmetic inside the caller's transaction;
the audit below recomputes them from the relationship tables and is meant for
operators (see scripts/check_counters.py), never for the request path.
"""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.models.comment import Comment
from app.models.engagement import Follower, Like, Repost
from app.models.post import Post
from app.models.user import User
from app.schemas.counters import CounterDrift

logger = logging.getLogger(__name__)

POST_COUNTERS = ("like_count", "comment_count", "repost_count")
USER_COUNTERS = ("follower_count", "following_count")


async def adjust_post_counters(db: AsyncSession, post_id: int, **deltas: int) -> None:
    """Apply e.g. ``like_count=1`` or ``comment_count=-1`` to one post."""
    values = {}
    for name, delta in deltas.items():
        if name not in POST_COUNTERS:
            raise ValueError(f"Unknown post counter: {name}")
        values[name] = getattr(Post, name) + delta
    await db.execute(update(Post).where(Post.id == post_id).values(**values))


async def adjust_user_counters(db: AsyncSession, user_id: int, **deltas: int) -> None:
    values = {}
    for name, delta in deltas.items():
        if name not in USER_COUNTERS:
            raise ValueError(f"Unknown user counter: {name}")
        values[name] = getattr(User, name) + delta
    await db.execute(update(User).where(User.id == user_id).values(**values))


def _live_post_counts():
    reply = aliased(Post)
    likes = select(func.count(Like.id)).where(Like.post_id == Post.id).scalar_subquery()
    reposts = select(func.count(Repost.id)).where(Repost.post_id == Post.id).scalar_subquery()
    comments = (
        select(func.count(Comment.id))
        .where(Comment.post_id == Post.id, Comment.is_deleted == False)
        .scalar_subquery()
    )
    replies = (
        select(func.count(reply.id))
        .where(reply.parent_post_id == Post.id, reply.is_deleted == False)
        .scalar_subquery()
    )
    return {"like_count": likes, "repost_count": reposts, "comment_count": comments + replies}


def _live_user_counts():
    followers = select(func.count(Follower.id)).where(Follower.following_id == User.id).scalar_subquery()
    following = select(func.count(Follower.id)).where(Follower.user_id == User.id).scalar_subquery()
    return {"follower_count": followers, "following_count": following}


async def _drift_for(db: AsyncSession, model, table: str, live: dict) -> list[CounterDrift]:
    names = list(live)
    stmt = select(
        model.id,
        *[getattr(model, name) for name in names],
        *[expr.label(f"live_{name}") for name, expr in live.items()],
    ).order_by(model.id)
    result = await db.execute(stmt)
    drift = []
    for row in result.all():
        row_id = row[0]
        cached = row[1 : 1 + len(names)]
        actual = row[1 + len(names) :]
        for name, c, a in zip(names, cached, actual):
            if (c or 0) != (a or 0):
                drift.append(CounterDrift(table=table, row_id=row_id, column=name, cached=c or 0, actual=a or 0))
    return drift


async def find_counter_drift(db: AsyncSession) -> list[CounterDrift]:
    """Compare every cached counter with a live COUNT over its source rows."""
    drift = await _drift_for(db, Post, "posts", _live_post_counts())
    drift += await _drift_for(db, User, "users", _live_user_counts())
    return drift


async def repair_counters(db: AsyncSession) -> int:
    """Overwrite drifted counters with their live values. Returns rows fixed."""
    drift = await find_counter_drift(db)
    models = {"posts": Post, "users": User}
    for item in drift:
        model = models[item.table]
        logger.warning(
            "Counter drift %s.%s id=%s cached=%s actual=%s",
            item.table, item.column, item.row_id, item.cached, item.actual,
        )
        await db.execute(update(model).where(model.id == item.row_id).values({item.column: item.actual}))
    return len(drift)
