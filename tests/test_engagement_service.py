import pytest
from sqlalchemy import func, select

from app.core.exceptions import ValidationError
from app.models.comment import Comment
from app.models.engagement import Like, Repost
from app.models.post import Post
from app.services.engagement_service import (
    add_comment,
    delete_comment,
    get_user_liked_post_ids,
    list_comments,
    quote_post,
    toggle_like,
    toggle_repost,
)
from tests.factories import make_post


async def _post_counter(db, post_id, column):
    return await db.scalar(select(getattr(Post, column)).where(Post.id == post_id))


async def _likes(db, post_id):
    return await db.scalar(select(func.count(Like.id)).where(Like.post_id == post_id))


@pytest.mark.parametrize("toggles", [1, 2, 3, 4])
async def test_like_toggle_parity(db, alice, bob, toggles):
    post = await make_post(db, alice)

    states = [await toggle_like(db, bob.id, post.id) for _ in range(toggles)]

    assert states[-1] is (toggles % 2 == 1)
    assert await _post_counter(db, post.id, "like_count") == toggles % 2
    assert await _likes(db, post.id) == toggles % 2


async def test_like_visible_per_viewer(db, alice, bob):
    post = await make_post(db, alice, "hello")

    assert await toggle_like(db, bob.id, post.id) is True
    assert await _post_counter(db, post.id, "like_count") == 1
    assert await get_user_liked_post_ids(db, bob.id, [post.id]) == {post.id}
    assert await get_user_liked_post_ids(db, alice.id, [post.id]) == set()

    assert await toggle_like(db, bob.id, post.id) is False
    assert await _post_counter(db, post.id, "like_count") == 0


async def test_like_missing_or_deleted_post(db, alice, bob):
    deleted = await make_post(db, alice, is_deleted=True)

    assert await toggle_like(db, bob.id, 9999) is None
    assert await toggle_like(db, bob.id, deleted.id) is None
    assert await _likes(db, deleted.id) == 0


async def test_repost_toggle(db, alice, bob):
    post = await make_post(db, alice)

    assert await toggle_repost(db, bob.id, post.id) is True
    assert await _post_counter(db, post.id, "repost_count") == 1
    assert await toggle_repost(db, bob.id, post.id) is False
    assert await _post_counter(db, post.id, "repost_count") == 0


async def test_quotes_are_not_deduplicated(db, alice, bob):
    post = await make_post(db, alice)

    await quote_post(db, bob.id, post.id, "first take")
    await quote_post(db, bob.id, post.id, "second take")
    # A plain repost coexists with the quotes and toggles independently
    assert await toggle_repost(db, bob.id, post.id) is True

    assert await _post_counter(db, post.id, "repost_count") == 3
    assert await db.scalar(select(func.count(Repost.id)).where(Repost.is_quote_post == True)) == 2

    assert await toggle_repost(db, bob.id, post.id) is False
    assert await _post_counter(db, post.id, "repost_count") == 2


async def test_quote_requires_content(db, alice, bob):
    post = await make_post(db, alice)

    with pytest.raises(ValidationError):
        await quote_post(db, bob.id, post.id, "   ")
    assert await _post_counter(db, post.id, "repost_count") == 0


async def test_comments_are_listed_oldest_first(db, alice, bob):
    post = await make_post(db, alice)

    first = await add_comment(db, bob.id, post.id, "nice")
    second = await add_comment(db, alice.id, post.id, "thanks")

    assert await _post_counter(db, post.id, "comment_count") == 2
    assert first.user.username == "bob"
    assert [c.id for c in await list_comments(db, post.id)] == [first.id, second.id]


async def test_empty_comment_is_rejected(db, alice, bob):
    post = await make_post(db, alice)

    with pytest.raises(ValidationError):
        await add_comment(db, bob.id, post.id, " \n ")

    assert await db.scalar(select(func.count(Comment.id))) == 0
    assert await _post_counter(db, post.id, "comment_count") == 0


async def test_comment_on_missing_post(db, bob):
    assert await add_comment(db, bob.id, 4242, "anyone?") is None


async def test_delete_comment_only_by_author(db, alice, bob):
    post = await make_post(db, alice)
    comment = await add_comment(db, bob.id, post.id, "nice")

    assert await delete_comment(db, alice.id, post.id, comment.id) is False
    assert await delete_comment(db, bob.id, post.id, comment.id) is True
    assert await delete_comment(db, bob.id, post.id, comment.id) is False

    assert await _post_counter(db, post.id, "comment_count") == 0
    assert await list_comments(db, post.id) == []
