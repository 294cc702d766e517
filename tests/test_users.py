from sqlalchemy import select, func

from app.users.models import User

from helpers import register, login, signup


async def test_register_returns_user_without_secrets(client):
    res = await register(client, "alice", cover=True)
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["statusCode"] == 201

    user = body["data"]
    assert user["username"] == "alice"
    assert user["avatar"].startswith("https://test/media/avatars/")
    assert user["cover_image"].startswith("https://test/media/covers/")
    assert "password" not in user
    assert "refresh_token" not in user

    headers = await login(client, "alice")
    res = await client.get("/api/v1/users/c/alice", headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["id"] == user["id"]


async def test_register_normalizes_username_and_email(client):
    res = await register(client, "Bob.Builder", email="Bob@Example.com")
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["username"] == "bob.builder"
    assert data["email"] == "bob@example.com"


async def test_register_twice_is_conflict(client, db):
    assert (await register(client, "carol")).status_code == 201

    same_username = await register(client, "carol", email="other@example.com")
    assert same_username.status_code == 409
    assert same_username.json()["success"] is False

    same_email = await register(client, "carol2", email="carol@example.com")
    assert same_email.status_code == 409

    async with db.sessionmaker() as s:
        total = await s.scalar(select(func.count(User.id)))
    assert total == 1


async def test_register_requires_avatar(client):
    res = await client.post(
        "/api/v1/users/register",
        data={"fullname": "No Avatar", "email": "na@example.com", "username": "noavatar", "password": "secret123"},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Avatar is required"


async def test_register_rejects_empty_fields(client):
    res = await client.post(
        "/api/v1/users/register",
        data={"fullname": "   ", "email": "x@example.com", "username": "xuser", "password": "secret123"},
        files={"avatar": ("a.png", b"\x89PNG", "image/png")},
    )
    assert res.status_code == 400
    assert res.json()["errors"]


async def test_login_sets_cookies_and_returns_tokens(client):
    await register(client, "dave")
    res = await client.post("/api/v1/users/login", json={"username": "dave", "password": "secret123"})
    assert res.status_code == 200

    data = res.json()["data"]
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["user"]["username"] == "dave"
    assert res.cookies.get("accessToken") == data["access_token"]
    assert res.cookies.get("refreshToken") == data["refresh_token"]

    # la cookie alcanza para autenticarse
    me = await client.get("/api/v1/users/current-user")
    assert me.status_code == 200
    assert me.json()["data"]["username"] == "dave"


async def test_login_with_email(client):
    await register(client, "erin")
    res = await client.post("/api/v1/users/login", json={"email": "erin@example.com", "password": "secret123"})
    assert res.status_code == 200


async def test_login_wrong_password_issues_nothing(client):
    await register(client, "frank")
    res = await client.post("/api/v1/users/login", json={"username": "frank", "password": "nope-nope"})
    assert res.status_code == 401
    assert res.json()["data"] is None
    assert "set-cookie" not in res.headers


async def test_login_unknown_user(client):
    res = await client.post("/api/v1/users/login", json={"username": "ghost", "password": "secret123"})
    assert res.status_code == 404


async def test_refresh_token_rotates(client):
    await register(client, "gina")
    res = await client.post("/api/v1/users/login", json={"username": "gina", "password": "secret123"})
    old_refresh = res.json()["data"]["refresh_token"]
    client.cookies.clear()

    res = await client.post("/api/v1/users/refresh-token", json={"refreshToken": old_refresh})
    assert res.status_code == 200
    new_tokens = res.json()["data"]
    assert new_tokens["refresh_token"] != old_refresh
    client.cookies.clear()

    # el viejo ya no sirve
    res = await client.post("/api/v1/users/refresh-token", json={"refreshToken": old_refresh})
    assert res.status_code == 401
    assert res.json()["message"] == "Refresh token is expired or used"


async def test_refresh_token_missing(client):
    res = await client.post("/api/v1/users/refresh-token")
    assert res.status_code == 401


async def test_access_token_is_not_a_refresh_token(client):
    await register(client, "hank")
    headers = await login(client, "hank")
    access = headers["Authorization"].split(" ", 1)[1]
    res = await client.post("/api/v1/users/refresh-token", json={"refreshToken": access})
    assert res.status_code == 401


async def test_logout_clears_refresh_token(client, db):
    user_id, headers = await signup(client, "ivan")
    res = await client.post("/api/v1/users/logout", headers=headers)
    assert res.status_code == 200

    async with db.sessionmaker() as s:
        user = await s.get(User, user_id)
    assert user.refresh_token is None


async def test_change_password(client):
    _, headers = await signup(client, "judy")

    bad = await client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": "wrong-one", "newPassword": "another123"},
        headers=headers,
    )
    assert bad.status_code == 400

    ok = await client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": "secret123", "newPassword": "another123"},
        headers=headers,
    )
    assert ok.status_code == 200
    await login(client, "judy", "another123")


async def test_update_account_and_email_conflict(client):
    await signup(client, "kate")
    _, headers = await signup(client, "liam")

    res = await client.patch(
        "/api/v1/users/update-account",
        json={"fullname": "Liam Updated", "email": "kate@example.com"},
        headers=headers,
    )
    assert res.status_code == 409

    res = await client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "Liam Updated", "email": "liam.new@example.com"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["data"]["fullname"] == "Liam Updated"
    assert res.json()["data"]["email"] == "liam.new@example.com"


async def test_update_avatar_replaces_file(client, storage):
    res = await register(client, "mia")
    old_avatar = res.json()["data"]["avatar"]
    headers = await login(client, "mia")

    res = await client.patch(
        "/api/v1/users/update-avatar",
        files={"avatar": ("new.png", b"\x89PNG-new", "image/png")},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["data"]["avatar"] != old_avatar
    # la vieja ya no está en el storage
    assert not storage.delete_sync(storage.public_id_from_url(old_avatar))


async def test_update_cover_requires_file(client):
    _, headers = await signup(client, "ned")
    res = await client.patch("/api/v1/users/update-coverimage", headers=headers)
    assert res.status_code == 400


async def test_channel_profile_not_found(client):
    _, headers = await signup(client, "olga")
    res = await client.get("/api/v1/users/c/nobody", headers=headers)
    assert res.status_code == 404


async def test_protected_routes_require_credentials(client, db):
    await signup(client, "pete")

    for method, url in [
        ("GET", "/api/v1/users/current-user"),
        ("GET", "/api/v1/users/history"),
        ("POST", "/api/v1/users/logout"),
        ("GET", "/api/v1/videos"),
        ("GET", "/api/v1/tweets"),
        ("GET", "/api/v1/playlist"),
        ("GET", "/api/v1/like/videos"),
        ("GET", "/api/v1/dashboard/stats/1"),
    ]:
        res = await client.request(method, url)
        assert res.status_code == 401, url
        assert res.json()["message"] == "Unauthorized request"

    res = await client.get("/api/v1/users/current-user", headers={"Authorization": "Bearer garbage"})
    assert res.status_code == 401

    # sin credenciales no se crea nada
    res = await client.post("/api/v1/tweets", json={"content": "hola"})
    assert res.status_code == 401
    res = await client.patch(
        "/api/v1/users/update-account",
        json={"fullname": "Hacker", "email": "hacker@example.com"},
    )
    assert res.status_code == 401

    async with db.sessionmaker() as s:
        user = (await s.execute(select(User).where(User.username == "pete"))).scalar_one()
    assert user.fullname == "Pete Tester"
