"""Pydantic schemas for Repost."""
from datetime import datetime

from pydantic import BaseModel


class QuoteCreate(BaseModel):
    quote_content: str


class RepostResponse(BaseModel):
    id: int
    user_id: int
    post_id: int
    is_quote_post: bool = False
    quote_content: str | None = None
    created_at: datetime
