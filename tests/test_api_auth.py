from tests.factories import PASSWORD

API = "/api/v1"


async def _register(client, username="dave"):
    return await client.post(
        f"{API}/auth/register",
        json={"username": username, "email": f"{username}@murmur.io", "password": PASSWORD},
    )


async def test_register_and_me(client):
    resp = await _register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["username"] == "dave"
    assert body["user"]["display_name"] == "dave"
    assert "refresh_token" in resp.cookies

    me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "dave@murmur.io"


async def test_register_duplicate(client, accounts):
    resp = await _register(client, "alice")
    assert resp.status_code == 409


async def test_register_validation(client):
    resp = await client.post(f"{API}/auth/register", json={"username": "x", "email": "not-an-email", "password": PASSWORD})
    assert resp.status_code == 400


async def test_login(client, accounts):
    resp = await client.post(f"{API}/auth/login", json={"email": "alice@murmur.io", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == accounts["alice"]

    resp = await client.post(f"{API}/auth/login/username", json={"username": "bob", "password": PASSWORD})
    assert resp.status_code == 200

    resp = await client.post(f"{API}/auth/login", json={"email": "alice@murmur.io", "password": "wrong-pass"})
    assert resp.status_code == 401


async def test_refresh_rotates_token(client, accounts):
    login = (await client.post(f"{API}/auth/login", json={"email": "bob@murmur.io", "password": PASSWORD})).json()

    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 200
    rotated = resp.json()["refresh_token"]
    assert rotated != login["refresh_token"]

    # The old token is single-use
    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 401

    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": "junk"})
    assert resp.status_code == 401


async def test_logout_revokes_refresh_token(client, accounts):
    login = (await client.post(f"{API}/auth/login", json={"email": "carol@murmur.io", "password": PASSWORD})).json()

    resp = await client.post(f"{API}/auth/logout", json={"refresh_token": login["refresh_token"]})
    assert resp.json() == {"message": "Logged out successfully"}

    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 401


async def test_me_requires_valid_token(client):
    assert (await client.get(f"{API}/auth/me")).status_code == 401
    resp = await client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


async def test_health_and_root(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    assert (await client.get("/")).json()["api"] == "/api/v1"
