import pytest
from sqlalchemy import func, select

from app.core.exceptions import ValidationError
from app.models.post import Post
from app.services.engagement_service import add_comment, toggle_like
from app.services.feed_service import (
    create_post,
    delete_post,
    get_post_detail,
    get_timeline,
    get_user_posts,
    search_posts,
    update_post,
)
from tests.factories import make_post


async def test_create_post_trims_content(db, alice):
    post = await create_post(db, alice.id, "  hello world  ")

    assert post.content == "hello world"
    assert post.user.username == "alice"
    assert post.like_count == 0


@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
async def test_empty_post_is_rejected(db, alice, content):
    with pytest.raises(ValidationError):
        await create_post(db, alice.id, content)
    assert await db.scalar(select(func.count(Post.id))) == 0


async def test_reply_counts_towards_parent(db, alice, bob):
    parent = await make_post(db, alice)

    reply = await create_post(db, bob.id, "agreed", parent_post_id=parent.id)
    await add_comment(db, bob.id, parent.id, "nice")
    assert await db.scalar(select(Post.comment_count).where(Post.id == parent.id)) == 2

    assert await delete_post(db, bob.id, reply.id) is True
    assert await db.scalar(select(Post.comment_count).where(Post.id == parent.id)) == 1


async def test_reply_to_missing_parent(db, alice):
    assert await create_post(db, alice.id, "orphan", parent_post_id=777) is None
    assert await db.scalar(select(func.count(Post.id))) == 0


async def test_timeline_hides_deleted_posts_and_replies(db, alice, bob):
    first = await make_post(db, alice, "first")
    doomed = await make_post(db, alice, "doomed")
    await create_post(db, bob.id, "a reply", parent_post_id=first.id)
    latest = await make_post(db, bob, "latest")
    await delete_post(db, alice.id, doomed.id)

    timeline = await get_timeline(db, None)

    assert [p.id for p in timeline] == [latest.id, first.id]
    assert await search_posts(db, "doomed") == []
    assert await get_post_detail(db, doomed.id) is None


async def test_timeline_is_liked_per_viewer(db, alice, bob):
    post = await make_post(db, alice, "hello")
    await toggle_like(db, bob.id, post.id)

    [seen_by_bob] = await get_timeline(db, bob.id)
    [seen_by_alice] = await get_timeline(db, alice.id)
    [seen_anonymously] = await get_timeline(db, None)

    assert seen_by_bob.is_liked is True
    assert seen_by_alice.is_liked is False
    assert seen_anonymously.is_liked is False
    assert seen_by_bob.like_count == 1


async def test_timeline_pagination(db, alice):
    posts = [await make_post(db, alice, f"post {i}") for i in range(5)]

    page = await get_timeline(db, None, limit=2, offset=2)

    assert [p.id for p in page] == [posts[2].id, posts[1].id]


async def test_update_post_only_by_owner(db, alice, bob):
    post = await make_post(db, alice, "draft")

    assert await update_post(db, bob.id, post.id, "hijack") is None
    updated = await update_post(db, alice.id, post.id, "  final  ")

    assert updated.content == "final"
    assert updated.is_edited is True
    with pytest.raises(ValidationError):
        await update_post(db, alice.id, post.id, " ")
    assert await db.scalar(select(Post.content).where(Post.id == post.id)) == "final"


async def test_delete_post_only_by_owner(db, alice, bob):
    post = await make_post(db, alice)

    assert await delete_post(db, bob.id, post.id) is False
    assert await delete_post(db, alice.id, post.id) is True
    assert await delete_post(db, alice.id, post.id) is False
    assert await update_post(db, alice.id, post.id, "revive") is None


async def test_post_detail_includes_comments_and_replies(db, alice, bob):
    post = await make_post(db, alice, "root")
    await add_comment(db, bob.id, post.id, "nice")
    reply = await create_post(db, bob.id, "reply", parent_post_id=post.id)

    detail = await get_post_detail(db, post.id, bob.id)

    assert detail.comment_count == 2
    assert [c.content for c in detail.comments] == ["nice"]
    assert [r.id for r in detail.replies] == [reply.id]
    assert detail.user.username == "alice"


async def test_search_and_user_posts(db, alice, bob):
    await make_post(db, alice, "Python tips")
    await make_post(db, bob, "python tricks")
    await make_post(db, bob, "gardening")

    assert {p.content for p in await search_posts(db, "PYTHON")} == {"Python tips", "python tricks"}
    assert [p.content for p in await get_user_posts(db, bob.id)] == ["gardening", "python tricks"]
