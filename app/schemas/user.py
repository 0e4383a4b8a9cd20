"""Pydantic schemas for User."""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8)
    display_name: str | None = Field(None, max_length=100)
    bio: str | None = None


class UserUpdate(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr | None = None
    display_name: str | None = Field(None, max_length=100)
    bio: str | None = None


class UserPublic(BaseModel):
    """Author fields embedded in posts and comments."""
    id: int
    username: str
    display_name: str | None = None
    is_verified: bool = False

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: int
    username: str
    display_name: str | None = None

    model_config = {"from_attributes": True}


class UserProfile(UserPublic):
    email: str | None = None  # Only in own profile
    bio: str | None = None
    follower_count: int = 0
    following_count: int = 0
    is_following: bool = False  # Set when the viewer is authenticated
    created_at: datetime


class Pagination(BaseModel):
    total: int
    page: int
    limit: int


class UserListResponse(BaseModel):
    message: str
    data: list[UserProfile]
    pagination: Pagination


class FollowListResponse(BaseModel):
    data: list[UserProfile]
    total: int
    page: int
    limit: int


class UserSearchResponse(BaseModel):
    data: list[UserSummary]
    total: int


class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserProfile


class FollowStatus(BaseModel):
    follows: bool


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserProfile


class TokenRefresh(BaseModel):
    refresh_token: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginByUsernameRequest(BaseModel):
    username: str
    password: str
