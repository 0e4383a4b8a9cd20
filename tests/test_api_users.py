from sqlalchemy import func, select

from app.models.engagement import Follower
from app.models.user import User
from tests.factories import auth_headers

API = "/api/v1"


async def _follow_counts(session_maker, user_id):
    async with session_maker() as session:
        row = (
            await session.execute(select(User.follower_count, User.following_count).where(User.id == user_id))
        ).one()
        return tuple(row)


async def test_follow_unfollow_over_http(client, accounts, session_maker):
    alice, bob = accounts["alice"], accounts["bob"]
    url = f"{API}/users/{bob}/follow"

    resp = await client.post(url, headers=auth_headers(alice))
    assert resp.json() == {"follows": True}
    resp = await client.post(url, headers=auth_headers(alice))
    assert resp.json() == {"follows": True}
    assert await _follow_counts(session_maker, bob) == (1, 0)
    assert await _follow_counts(session_maker, alice) == (0, 1)

    profile = (await client.get(f"{API}/users/{bob}", headers=auth_headers(alice))).json()
    assert profile["is_following"] is True
    assert profile["follower_count"] == 1

    for _ in range(2):
        resp = await client.delete(url, headers=auth_headers(alice))
        assert resp.json() == {"follows": False}
    assert await _follow_counts(session_maker, bob) == (0, 0)
    assert await _follow_counts(session_maker, alice) == (0, 0)


async def test_follow_errors(client, accounts, session_maker):
    alice = accounts["alice"]

    resp = await client.post(f"{API}/users/{alice}/follow", headers=auth_headers(alice))
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Cannot follow yourself"}
    assert (await client.post(f"{API}/users/999/follow", headers=auth_headers(alice))).status_code == 404
    assert (await client.post(f"{API}/users/{accounts['bob']}/follow")).status_code == 401

    async with session_maker() as session:
        assert await session.scalar(select(func.count(Follower.id))) == 0


async def test_follower_lists(client, accounts):
    for name in ("alice", "carol"):
        await client.post(f"{API}/users/{accounts['bob']}/follow", headers=auth_headers(accounts[name]))

    resp = await client.get(f"{API}/users/{accounts['bob']}/followers", params={"page": 1, "limit": 1})
    body = resp.json()
    assert body["total"] == 2
    assert body["page"] == 1
    assert body["limit"] == 1
    assert len(body["data"]) == 1

    body = (await client.get(f"{API}/users/{accounts['alice']}/following")).json()
    assert [u["username"] for u in body["data"]] == ["bob"]
    assert (await client.get(f"{API}/users/999/followers")).status_code == 404


async def test_profile_visibility(client, accounts):
    alice = accounts["alice"]

    own = (await client.get(f"{API}/users/{alice}", headers=auth_headers(alice))).json()
    public = (await client.get(f"{API}/users/{alice}")).json()

    assert own["email"] == "alice@murmur.io"
    assert public["email"] is None
    assert public["is_following"] is False
    assert (await client.get(f"{API}/users/999")).status_code == 404


async def test_directory_search_and_suggestions(client, accounts):
    body = (await client.get(f"{API}/users", params={"page": 1, "limit": 2})).json()
    assert body["message"] == "Users retrieved successfully"
    assert body["pagination"] == {"total": 3, "page": 1, "limit": 2}
    assert len(body["data"]) == 2
    assert (await client.get(f"{API}/users", params={"page": 5})).status_code == 404

    body = (await client.get(f"{API}/users/search", params={"q": "ca"})).json()
    assert body["total"] == 1
    assert body["data"][0]["username"] == "carol"

    suggested = (await client.get(f"{API}/users/suggestions", headers=auth_headers(accounts["alice"]))).json()
    assert "alice" not in {u["username"] for u in suggested}


async def test_update_profile(client, accounts):
    headers = auth_headers(accounts["alice"])

    resp = await client.patch(f"{API}/users/update", json={"bio": "hello there"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Profile updated successfully"
    assert resp.json()["user"]["bio"] == "hello there"

    assert (await client.patch(f"{API}/users/update", json={}, headers=headers)).status_code == 400
    resp = await client.patch(f"{API}/users/update", json={"username": "bob"}, headers=headers)
    assert resp.status_code == 409


async def test_delete_account(client, accounts, session_maker):
    alice, bob = accounts["alice"], accounts["bob"]
    await client.post(f"{API}/users/{bob}/follow", headers=auth_headers(alice))
    post = (await client.post(f"{API}/posts", json={"content": "mine"}, headers=auth_headers(bob))).json()
    await client.post(f"{API}/posts/{post['id']}/like", headers=auth_headers(alice))

    resp = await client.delete(f"{API}/users/delete", headers=auth_headers(alice))
    assert resp.status_code == 200
    assert resp.json() == {"message": "User deleted successfully"}

    assert await _follow_counts(session_maker, bob) == (0, 0)
    detail = (await client.get(f"{API}/posts/{post['id']}")).json()
    assert detail["like_count"] == 0
    assert (await client.get(f"{API}/users/{alice}")).status_code == 404
    assert (await client.get(f"{API}/auth/me", headers=auth_headers(alice))).status_code == 401
