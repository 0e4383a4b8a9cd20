"""Pydantic schemas for Post."""
from datetime import datetime

from pydantic import BaseModel

from app.schemas.comment import CommentResponse
from app.schemas.user import UserPublic


class PostCreate(BaseModel):
    # Emptiness is checked after trimming in feed_service
    content: str
    parent_post_id: int | None = None


class PostUpdate(BaseModel):
    content: str


class PostResponse(BaseModel):
    id: int
    user_id: int
    content: str
    parent_post_id: int | None = None
    is_reply: bool = False
    is_edited: bool = False
    is_pinned: bool = False
    like_count: int = 0
    comment_count: int = 0
    repost_count: int = 0
    is_liked: bool = False
    is_reposted: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    user: UserPublic | None = None

    model_config = {"from_attributes": True}


class PostDetailResponse(PostResponse):
    comments: list[CommentResponse] = []
    replies: list[PostResponse] = []


class MessageResponse(BaseModel):
    message: str


class LikeToggleResponse(MessageResponse):
    liked: bool


class RepostToggleResponse(MessageResponse):
    reposted: bool
