from app.models.user import User
from app.models.post import Post
from app.models.comment import Comment
from app.models.engagement import Follower, Like, Repost
from app.models.refresh_token import RefreshToken

__all__ = ["User", "Post", "Comment", "Follower", "Like", "Repost", "RefreshToken"]
