from app.media.storage import MediaStorage

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
MP4 = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


class FakeStorage(MediaStorage):
    """Storage real en disco, sin depender de ffprobe."""

    def probe_duration(self, path: str) -> float:
        return 12.5


async def register(client, username: str, password: str = "secret123", email: str | None = None, cover=False):
    files = {"avatar": ("avatar.png", PNG, "image/png")}
    if cover:
        files["coverImage"] = ("cover.png", PNG, "image/png")
    return await client.post(
        "/api/v1/users/register",
        data={
            "fullname": f"{username.title()} Tester",
            "email": email or f"{username}@example.com",
            "username": username,
            "password": password,
        },
        files=files,
    )


async def login(client, username: str, password: str = "secret123") -> dict:
    """
    Inicia sesión y devuelve headers Bearer. Limpia las cookies del cliente
    para que cada request use el usuario de sus headers.
    """
    res = await client.post("/api/v1/users/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {res.json()['data']['access_token']}"}


async def signup(client, username: str) -> tuple[int, dict]:
    res = await register(client, username)
    assert res.status_code == 201, res.text
    headers = await login(client, username)
    return res.json()["data"]["id"], headers


async def upload_video(client, headers: dict, title: str = "Mi video", description: str = "Descripción") -> dict:
    res = await client.post(
        "/api/v1/videos",
        data={"title": title, "description": description},
        files={
            "videoFile": ("clip.mp4", MP4, "video/mp4"),
            "thumbnail": ("thumb.png", PNG, "image/png"),
        },
        headers=headers,
    )
    assert res.status_code == 201, res.text
    return res.json()["data"]
