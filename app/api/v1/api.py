"""V1 API router aggregation."""
from fastapi import APIRouter

from app.api.v1.endpoints import auth, users, posts

api_router = APIRouter(prefix="/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
