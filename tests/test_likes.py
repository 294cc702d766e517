import asyncio

import pytest
from pydantic import ValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from app.likes.models import Like, LikeTargetKind
from app.likes.schemas import LikeTarget

from helpers import signup, upload_video


# ---------------- LikeTarget ----------------


def test_like_target_single_reference():
    target = LikeTarget(video=3)
    assert target.kind is LikeTargetKind.VIDEO
    assert target.target_id == 3

    target = LikeTarget.model_validate({"kind": "tweet", "target_id": 9})
    assert target.kind is LikeTargetKind.TWEET


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"video": 1, "comment": 2},
        {"video": 1, "tweet": 2, "comment": 3},
        {"kind": "video"},
        {"kind": "video", "target_id": 1, "tweet": 2},
        {"kind": "playlist", "target_id": 1},
        {"video": 0},
    ],
)
def test_like_target_rejects_ambiguous(payload):
    with pytest.raises(ValidationError):
        LikeTarget.model_validate(payload)


# ---------------- toggles ----------------


async def test_video_like_toggle_has_period_two(client, db):
    user_id, headers = await signup(client, "liker")
    video = await upload_video(client, headers)
    url = f"/api/v1/like/toggle/v/{video['id']}"

    expected = [
        (201, True, 1, "Successfully liked the video."),
        (200, False, 0, "Successfully unliked the video."),
        (201, True, 1, "Successfully liked the video."),
    ]
    for status_code, is_liked, count, message in expected:
        res = await client.post(url, headers=headers)
        assert res.status_code == status_code
        body = res.json()
        assert body["message"] == message
        assert body["data"] == {
            "target_kind": "video",
            "target_id": video["id"],
            "is_liked": is_liked,
            "likes_count": count,
        }

    async with db.sessionmaker() as s:
        rows = await s.scalar(
            select(func.count(Like.id)).where(
                Like.liked_by == user_id,
                Like.target_kind == "video",
                Like.target_id == video["id"],
            )
        )
    assert rows == 1


async def test_like_missing_target(client):
    _, headers = await signup(client, "nobodylikes")
    for kind in ("v", "c", "t"):
        res = await client.post(f"/api/v1/like/toggle/{kind}/9999", headers=headers)
        assert res.status_code == 404


async def test_comment_and_tweet_likes(client):
    _, headers = await signup(client, "social")
    video = await upload_video(client, headers)
    comment = (
        await client.post(f"/api/v1/comments/{video['id']}", json={"content": "genial"}, headers=headers)
    ).json()["data"]
    tweet = (await client.post("/api/v1/tweets", json={"content": "hola"}, headers=headers)).json()["data"]

    res = await client.post(f"/api/v1/like/toggle/c/{comment['id']}", headers=headers)
    assert res.status_code == 201
    assert res.json()["message"] == "Successfully liked the comment."

    res = await client.post(f"/api/v1/like/toggle/t/{tweet['id']}", headers=headers)
    assert res.status_code == 201
    assert res.json()["data"]["target_kind"] == "tweet"

    count = await client.get(f"/api/v1/like/count/c/{comment['id']}", headers=headers)
    assert count.json()["data"] == {"count": 1}
    count = await client.get(f"/api/v1/like/count/t/{tweet['id']}", headers=headers)
    assert count.json()["data"] == {"count": 1}
    count = await client.get(f"/api/v1/like/count/v/{video['id']}", headers=headers)
    assert count.json()["data"] == {"count": 0}


async def test_generic_toggle_body(client):
    _, headers = await signup(client, "generic")
    video = await upload_video(client, headers)

    res = await client.post("/api/v1/like/toggle", json={"video": video["id"]}, headers=headers)
    assert res.status_code == 201

    res = await client.post(
        "/api/v1/like/toggle",
        json={"kind": "video", "target_id": video["id"]},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["data"]["is_liked"] is False

    res = await client.post("/api/v1/like/toggle", json={"video": video["id"], "tweet": 1}, headers=headers)
    assert res.status_code == 400


async def test_likes_are_per_user(client):
    _, alice = await signup(client, "alice")
    _, bob = await signup(client, "bob")
    video = await upload_video(client, alice)
    url = f"/api/v1/like/toggle/v/{video['id']}"

    await client.post(url, headers=alice)
    res = await client.post(url, headers=bob)
    assert res.status_code == 201
    assert res.json()["data"]["likes_count"] == 2

    detail = (await client.get(f"/api/v1/videos/{video['id']}", headers=bob)).json()["data"]
    assert detail["likes_count"] == 2
    assert detail["is_liked"] is True


async def test_liked_videos(client):
    _, headers = await signup(client, "collector")
    first = await upload_video(client, headers, title="uno")
    await upload_video(client, headers, title="dos")

    await client.post(f"/api/v1/like/toggle/v/{first['id']}", headers=headers)
    res = await client.get("/api/v1/like/videos", headers=headers)
    assert res.status_code == 200
    items = res.json()["data"]
    assert len(items) == 1
    assert items[0]["video"]["title"] == "uno"
    assert items[0]["video"]["owner"]["username"] == "collector"


async def test_liked_videos_hide_unpublished_from_others(client):
    _, owner = await signup(client, "hider")
    _, fan = await signup(client, "watcher")
    video = await upload_video(client, owner)

    await client.post(f"/api/v1/like/toggle/v/{video['id']}", headers=fan)
    await client.post(f"/api/v1/like/toggle/v/{video['id']}", headers=owner)
    await client.patch(f"/api/v1/videos/toggle-published-status/{video['id']}", headers=owner)

    assert (await client.get(f"/api/v1/videos/{video['id']}", headers=fan)).status_code == 404
    assert (await client.get("/api/v1/like/videos", headers=fan)).json()["data"] == []
    # el dueño sigue viéndolo
    mine = (await client.get("/api/v1/like/videos", headers=owner)).json()["data"]
    assert [item["video"]["id"] for item in mine] == [video["id"]]


# ---------------- concurrencia ----------------


async def test_concurrent_like_toggles_never_duplicate(client, db):
    user_id, headers = await signup(client, "racer")
    video = await upload_video(client, headers)
    url = f"/api/v1/like/toggle/v/{video['id']}"

    responses = await asyncio.gather(*(client.post(url, headers=headers) for _ in range(6)))
    assert all(res.status_code in (200, 201) for res in responses)

    async with db.sessionmaker() as s:
        rows = await s.scalar(
            select(func.count(Like.id)).where(
                Like.liked_by == user_id,
                Like.target_kind == "video",
                Like.target_id == video["id"],
            )
        )
    assert rows <= 1

    count = (await client.get(f"/api/v1/like/count/v/{video['id']}", headers=headers)).json()["data"]
    assert count == {"count": rows}


async def test_duplicate_like_row_is_rejected(client, db):
    user_id, headers = await signup(client, "twice")
    video = await upload_video(client, headers)

    async with db.sessionmaker() as s:
        s.add(Like(liked_by=user_id, target_kind="video", target_id=video["id"]))
        await s.commit()
        s.add(Like(liked_by=user_id, target_kind="video", target_id=video["id"]))
        with pytest.raises(IntegrityError):
            await s.commit()


async def test_deleting_tweet_drops_its_likes(client, db):
    _, headers = await signup(client, "ephemeral")
    tweet = (await client.post("/api/v1/tweets", json={"content": "se va"}, headers=headers)).json()["data"]
    await client.post(f"/api/v1/like/toggle/t/{tweet['id']}", headers=headers)

    assert (await client.delete(f"/api/v1/tweets/{tweet['id']}", headers=headers)).status_code == 200

    async with db.sessionmaker() as s:
        likes = await s.scalar(
            select(func.count(Like.id)).where(Like.target_kind == "tweet", Like.target_id == tweet["id"])
        )
    assert likes == 0
