"""User model."""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    # Cached cardinalities of the followers table, maintained by graph_service
    follower_count = Column(Integer, default=0, nullable=False)
    following_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    posts = relationship("Post", back_populates="user", passive_deletes=True)
    comments = relationship("Comment", back_populates="user", passive_deletes=True)
    likes = relationship("Like", back_populates="user", passive_deletes=True)
    reposts = relationship("Repost", back_populates="user", passive_deletes=True)
    following = relationship(
        "Follower",
        foreign_keys="Follower.user_id",
        back_populates="follower",
        passive_deletes=True,
    )
    followers = relationship(
        "Follower",
        foreign_keys="Follower.following_id",
        back_populates="followee",
        passive_deletes=True,
    )
    refresh_tokens = relationship("RefreshToken", back_populates="user", passive_deletes=True)
