"""Engagement models: Follower, Like and Repost."""
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy.orm import relationship

from app.db.session import Base


class Follower(Base):
    """user_id follows following_id."""
    __tablename__ = "followers"
    __table_args__ = (
        UniqueConstraint("user_id", "following_id", name="uq_followers_user_following"),
        CheckConstraint("user_id <> following_id", name="ck_followers_no_self_follow"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    follower = relationship("User", foreign_keys=[user_id], back_populates="following")
    followee = relationship("User", foreign_keys=[following_id], back_populates="followers")


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="likes")
    post = relationship("Post", back_populates="likes")


class Repost(Base):
    """Plain repost, or quote post when is_quote_post is set.

    A user holds at most one plain repost per post; quote posts are unrestricted.
    """
    __tablename__ = "reposts"
    __table_args__ = (
        Index(
            "uq_reposts_user_post_plain",
            "user_id",
            "post_id",
            unique=True,
            postgresql_where=text("is_quote_post = false"),
            sqlite_where=text("is_quote_post = 0"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    is_quote_post = Column(Boolean, default=False, nullable=False)
    quote_content = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="reposts")
    post = relationship("Post", back_populates="reposts")
