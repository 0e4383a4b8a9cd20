"""Pydantic schemas for Comment."""
from datetime import datetime

from pydantic import BaseModel

from app.schemas.user import UserPublic


class CommentCreate(BaseModel):
    content: str


class CommentResponse(BaseModel):
    id: int
    post_id: int
    content: str
    created_at: datetime
    user: UserPublic | None = None

    model_config = {"from_attributes": True}
