"""Posts CRUD, timeline, likes, reposts and comments."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_current_user_optional, get_db, viewer_id
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentResponse
from app.schemas.post import (
    LikeToggleResponse,
    MessageResponse,
    PostCreate,
    PostDetailResponse,
    PostResponse,
    PostUpdate,
    RepostToggleResponse,
)
from app.schemas.repost import QuoteCreate, RepostResponse
from app.services.engagement_service import (
    add_comment,
    comment_to_response,
    delete_comment,
    get_live_post,
    list_comments,
    quote_post,
    repost_to_response,
    toggle_like,
    toggle_repost,
)
from app.services.feed_service import (
    annotate_posts,
    create_post,
    delete_post,
    get_post_detail,
    get_timeline,
    post_to_response,
    search_posts,
    update_post,
)

router = APIRouter(prefix="/posts", tags=["posts"])

POST_NOT_FOUND = "Post not found"


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    data: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await create_post(db, current_user.id, data.content, data.parent_post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent post not found")
    await db.commit()
    return post_to_response(post)


@router.get("", response_model=list[PostResponse])
async def list_posts(
    limit: int = Query(10, ge=1, le=50),
    offset: int = Query(0, ge=0),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await get_timeline(db, viewer_id(current_user), limit=limit, offset=offset)


@router.get("/search", response_model=list[PostResponse])
async def search_posts_endpoint(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    offset: int = Query(0, ge=0),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await search_posts(db, q, viewer_id(current_user), limit=limit, offset=offset)


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(
    post_id: int,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    post = await get_post_detail(db, post_id, viewer_id(current_user))
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    return post


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post_endpoint(
    post_id: int,
    data: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await update_post(db, current_user.id, post_id, data.content)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found or unauthorized")
    [response] = await annotate_posts(db, [post], current_user.id)
    await db.commit()
    return response


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post_endpoint(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await delete_post(db, current_user.id, post_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found or unauthorized")
    await db.commit()
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def like_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liked = await toggle_like(db, current_user.id, post_id)
    if liked is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    await db.commit()
    return LikeToggleResponse(message="Post liked" if liked else "Like removed", liked=liked)


@router.post("/{post_id}/repost", response_model=RepostToggleResponse)
async def repost_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reposted = await toggle_repost(db, current_user.id, post_id)
    if reposted is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    await db.commit()
    return RepostToggleResponse(message="Reposted" if reposted else "Repost removed", reposted=reposted)


@router.post("/{post_id}/quote", response_model=RepostResponse, status_code=status.HTTP_201_CREATED)
async def quote_post_endpoint(
    post_id: int,
    data: QuoteCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    repost = await quote_post(db, current_user.id, post_id, data.quote_content)
    if not repost:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    await db.commit()
    return repost_to_response(repost)


@router.get("/{post_id}/comments", response_model=list[CommentResponse] | MessageResponse)
async def list_post_comments(
    post_id: int,
    db: AsyncSession = Depends(get_db),
):
    if await get_live_post(db, post_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    comments = await list_comments(db, post_id)
    if not comments:
        return MessageResponse(message="No comments found")
    return [comment_to_response(c) for c in comments]


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_post_comment(
    post_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await add_comment(db, current_user.id, post_id, data.content)
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    await db.commit()
    return comment_to_response(comment)


@router.delete("/{post_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_post_comment(
    post_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await delete_comment(db, current_user.id, post_id, comment_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found or unauthorized")
    await db.commit()
    return MessageResponse(message="Comment deleted successfully")
