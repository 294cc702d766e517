import os

import pytest
from httpx import ASGITransport, AsyncClient
from jose import JWTError, jwt

from app.core.config import Settings
from app.core.errors import ApiError
from app.core.json import envelope
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from app.main import create_app
from app.media.storage import MediaStorage

from helpers import register, signup


def test_envelope_shape():
    assert envelope(201, {"id": 1}, "created") == {
        "statusCode": 201,
        "data": {"id": 1},
        "message": "created",
        "success": True,
    }
    assert envelope(404)["success"] is False


def test_password_hash_roundtrip():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("secret123", None)


def test_tokens_carry_their_type(settings):
    access = create_access_token("7", settings, username="u", email="u@example.com", fullname="U")
    refresh = create_refresh_token("7", settings)

    assert decode_access_token(access, settings) == "7"
    assert decode_refresh_token(refresh, settings) == "7"
    with pytest.raises(JWTError):
        decode_refresh_token(access, settings)
    with pytest.raises(JWTError):
        decode_access_token(refresh, settings)
    # dos tokens seguidos nunca son iguales
    assert create_refresh_token("7", settings) != refresh


def test_tokens_use_the_given_secret(settings):
    other = settings.model_copy(update={"ACCESS_TOKEN_SECRET": "otro-secreto"})
    token = create_access_token("7", other)
    assert decode_access_token(token, other) == "7"
    with pytest.raises(JWTError):
        decode_access_token(token, settings)


def test_public_id_from_url(storage):
    assert storage.public_id_from_url("https://cdn/media/avatars/abc.png") == "avatars/abc"
    assert storage.public_id_from_url("https://cdn/other/abc.png") is None
    assert storage.public_id_from_url("https://cdn/media/../etc/passwd") is None
    assert storage.public_id_from_url(None) is None


async def test_unknown_route_uses_error_envelope(client):
    res = await client.get("/api/v1/nope")
    assert res.status_code == 404
    body = res.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["errors"] == []


async def test_json_body_limit(client):
    res = await client.post(
        "/api/v1/users/login",
        content=b'{"username": "' + b"a" * 20000 + b'", "password": "x"}',
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 413
    assert res.json()["success"] is False


async def test_validation_errors_are_400(client):
    res = await client.post("/api/v1/users/login", json={"password": "x"})
    assert res.status_code == 400
    assert res.json()["success"] is False


async def test_request_logging_header(client):
    res = await client.get("/api/v1/healthcheck")
    assert "x-process-time" in res.headers


async def test_media_is_served(client):
    res = await client.post(
        "/api/v1/users/register",
        data={"fullname": "Pic", "email": "pic@example.com", "username": "pic", "password": "secret123"},
        files={"avatar": ("a.png", b"\x89PNG-bytes", "image/png")},
    )
    avatar_url = res.json()["data"]["avatar"]
    path = avatar_url.replace("https://test", "")

    res = await client.get(path)
    assert res.status_code == 200
    assert res.content == b"\x89PNG-bytes"
    assert res.headers["etag"]

    assert (await client.get("/media/../secrets.txt")).status_code == 404
    assert (await client.get("/media/avatars/missing.png")).status_code == 404


async def test_unexpected_errors_hide_details(settings, db, storage):
    app = create_app(settings=settings, db=db, storage=storage)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret stack detail")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="https://test") as c:
        res = await c.get("/boom")
    assert res.status_code == 500
    assert res.json()["message"] == "Internal Server Error"
    assert "secret" not in res.text


async def test_api_error_status(settings, db, storage):
    app = create_app(settings=settings, db=db, storage=storage)

    @app.get("/teapot")
    async def teapot():
        raise ApiError(418, "short and stout", errors=["spout"])

    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as c:
        res = await c.get("/teapot")
    assert res.status_code == 418
    assert res.json() == {
        "statusCode": 418,
        "data": None,
        "message": "short and stout",
        "success": False,
        "errors": ["spout"],
    }


async def test_bearer_header_for_current_user(client):
    user_id, headers = await signup(client, "bearer")
    res = await client.get("/api/v1/users/current-user", headers=headers)
    assert res.json()["data"]["id"] == user_id


async def test_app_uses_injected_settings(settings, db, storage):
    custom = settings.model_copy(
        update={
            "COOKIE_SECURE": False,
            "COOKIE_SAMESITE": "lax",
            "ACCESS_TOKEN_SECRET": "injected-secret",
            "REFRESH_TOKEN_SECRET": "injected-refresh",
        }
    )
    app = create_app(settings=custom, db=db, storage=storage)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as c:
        await register(c, "custom")
        res = await c.post("/api/v1/users/login", json={"username": "custom", "password": "secret123"})
        assert res.status_code == 200

        cookies = [h.lower() for h in res.headers.get_list("set-cookie")]
        assert len(cookies) == 2
        for cookie in cookies:
            assert "samesite=lax" in cookie
            assert "secure" not in cookie

        data = res.json()["data"]
        claims = jwt.decode(data["access_token"], "injected-secret", algorithms=[custom.JWT_ALGORITHM])
        assert claims["username"] == "custom"
        with pytest.raises(JWTError):
            decode_access_token(data["access_token"], settings)

        c.cookies.clear()
        me = await c.get(
            "/api/v1/users/current-user",
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )
        assert me.status_code == 200

        res = await c.post("/api/v1/users/refresh-token", json={"refresh_token": data["refresh_token"]})
        assert res.status_code == 200


async def test_chunked_json_body_limit(client):
    async def chunks():
        yield b'{"username": "'
        for _ in range(20):
            yield b"a" * 1000
        yield b'", "password": "x"}'

    res = await client.post(
        "/api/v1/users/login",
        content=chunks(),
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 413
    assert res.json()["success"] is False


async def test_small_chunked_json_body_passes(client):
    await signup(client, "chunky")

    async def chunks():
        yield b'{"username": "chunky", '
        yield b'"password": "secret123"}'

    res = await client.post(
        "/api/v1/users/login",
        content=chunks(),
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 200


def test_storage_constructor_creates_no_directories(tmp_path):
    media_dir = tmp_path / "lazy-media"
    MediaStorage(str(media_dir), "https://test")
    assert not os.path.exists(media_dir)
