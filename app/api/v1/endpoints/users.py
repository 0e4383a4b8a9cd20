"""User profile, directory and follow endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_current_user_optional, get_db, viewer_id
from app.core.config import settings
from app.models.user import User
from app.schemas.post import MessageResponse, PostResponse
from app.schemas.user import (
    FollowListResponse,
    FollowStatus,
    Pagination,
    ProfileUpdateResponse,
    UserListResponse,
    UserProfile,
    UserSearchResponse,
    UserUpdate,
)
from app.services.feed_service import get_user_posts
from app.services.graph_service import (
    follow,
    get_followers,
    get_following,
    get_following_ids,
    search_users,
    unfollow,
)
from app.services.user_service import (
    delete_user,
    get_all_users,
    get_profile,
    get_suggestions,
    get_user,
    update_profile,
    user_to_profile,
    user_to_summary,
)

router = APIRouter(prefix="/users", tags=["users"])

USER_NOT_FOUND = "User not found"


async def _profiles(db: AsyncSession, users: list[User], current_user_id: int | None) -> list[UserProfile]:
    followed = await get_following_ids(db, current_user_id, [u.id for u in users]) if current_user_id else set()
    return [
        user_to_profile(u, include_email=u.id == current_user_id, is_following=u.id in followed)
        for u in users
    ]


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    users, total = await get_all_users(db, page=page, limit=limit)
    if not users:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No users found")
    return UserListResponse(
        message="Users retrieved successfully",
        data=await _profiles(db, users, viewer_id(current_user)),
        pagination=Pagination(total=total, page=page, limit=limit),
    )


@router.get("/search", response_model=UserSearchResponse)
async def search_users_endpoint(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    users, total = await search_users(db, q, limit=limit, offset=offset)
    return UserSearchResponse(data=[user_to_summary(u) for u in users], total=total)


@router.get("/suggestions", response_model=list[UserProfile])
async def suggestions(
    limit: int = Query(10, ge=1, le=50),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    users = await get_suggestions(db, viewer_id(current_user), limit=limit)
    return await _profiles(db, users, viewer_id(current_user))


@router.patch("/update", response_model=ProfileUpdateResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await update_profile(db, current_user.id, data)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    profile = user_to_profile(user, include_email=True)
    await db.commit()
    return ProfileUpdateResponse(message="Profile updated successfully", user=profile)


@router.delete("/delete", response_model=MessageResponse)
async def delete_me(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await delete_user(db, current_user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    await db.commit()
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path="/")
    return MessageResponse(message="User deleted successfully")


@router.get("/{user_id}", response_model=UserProfile)
async def get_user_profile(
    user_id: int,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_profile(db, user_id, viewer_id(current_user))
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return profile


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def get_user_posts_endpoint(
    user_id: int,
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    if not await get_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return await get_user_posts(db, user_id, viewer_id(current_user), limit=limit, offset=offset)


@router.post("/{user_id}/follow", response_model=FollowStatus)
async def follow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    created = await follow(db, current_user.id, user_id)
    if created is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    await db.commit()
    return FollowStatus(follows=True)


@router.delete("/{user_id}/follow", response_model=FollowStatus)
async def unfollow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await unfollow(db, current_user.id, user_id)
    await db.commit()
    return FollowStatus(follows=False)


@router.get("/{user_id}/followers", response_model=FollowListResponse)
async def list_followers(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    if not await get_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    users, total = await get_followers(db, user_id, page=page, limit=limit)
    return FollowListResponse(
        data=await _profiles(db, users, viewer_id(current_user)),
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{user_id}/following", response_model=FollowListResponse)
async def list_following(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    if not await get_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    users, total = await get_following(db, user_id, page=page, limit=limit)
    return FollowListResponse(
        data=await _profiles(db, users, viewer_id(current_user)),
        total=total,
        page=page,
        limit=limit,
    )
