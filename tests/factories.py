"""Row builders for tests; they flush but never commit."""
from app.core.security import create_access_token, get_password_hash
from app.models.post import Post
from app.models.user import User

PASSWORD = "s3cret-pass"
PASSWORD_HASH = get_password_hash(PASSWORD)


async def make_user(db, username: str, **fields) -> User:
    fields.setdefault("display_name", username.title())
    user = User(
        username=username,
        email=f"{username}@murmur.io",
        password_hash=PASSWORD_HASH,
        **fields,
    )
    db.add(user)
    await db.flush()
    return user


async def make_post(db, user: User, content: str = "hello", **fields) -> Post:
    post = Post(user_id=user.id, content=content, **fields)
    db.add(post)
    await db.flush()
    return post


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
