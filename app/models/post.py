"""Post model. A reply is a Post whose parent_post_id points at another post.

Replies outlive their parent: deleting the parent row nulls parent_post_id and
is_reply keeps the orphan out of the top-level timeline.
"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from app.db.session import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    parent_post_id = Column(Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True, index=True)
    is_reply = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    is_edited = Column(Boolean, default=False, nullable=False)
    is_pinned = Column(Boolean, default=False, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    # Live comments plus live replies
    comment_count = Column(Integer, default=0, nullable=False)
    # Plain reposts plus quote posts
    repost_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="posts")
    parent = relationship("Post", remote_side="Post.id", backref="replies")
    comments = relationship("Comment", back_populates="post", passive_deletes=True)
    likes = relationship("Like", back_populates="post", passive_deletes=True)
    reposts = relationship("Repost", back_populates="post", passive_deletes=True)
