from app.schemas.user import (
    UserCreate,
    UserUpdate,
    UserPublic,
    UserProfile,
    Token,
    LoginRequest,
)
from app.schemas.post import PostCreate, PostUpdate, PostResponse, PostDetailResponse
from app.schemas.comment import CommentCreate, CommentResponse
from app.schemas.repost import QuoteCreate, RepostResponse
