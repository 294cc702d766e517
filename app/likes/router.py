from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.errors import not_found
from app.core.json import api_response
from app.db.session import get_session
from app.likes import repository as repo
from app.likes.models import LikeTargetKind
from app.likes.schemas import LikeTarget, LikeToggleOut, LikeCountOut, LikedVideoOut
from app.users.models import User
from app.videos.models import Video
from app.videos.schemas import video_with_owner
from app.comments.models import Comment
from app.tweets.models import Tweet

router = APIRouter(prefix="/api/v1/like", tags=["likes"])

_MODELS = {
    LikeTargetKind.VIDEO: Video,
    LikeTargetKind.COMMENT: Comment,
    LikeTargetKind.TWEET: Tweet,
}


async def _ensure_target(db: AsyncSession, target: LikeTarget) -> None:
    model = _MODELS[target.kind]
    if await db.get(model, target.target_id) is None:
        raise not_found(f"{target.kind.value.capitalize()} not found")


async def _toggle(db: AsyncSession, target: LikeTarget, user: User):
    await _ensure_target(db, target)
    liked, total = await repo.toggle_like(db, target.kind, target.target_id, user.id)
    await db.commit()

    data = LikeToggleOut(
        target_kind=target.kind,
        target_id=target.target_id,
        is_liked=liked,
        likes_count=total,
    )
    noun = target.kind.value
    if liked:
        return api_response(status.HTTP_201_CREATED, data, f"Successfully liked the {noun}.")
    return api_response(status.HTTP_200_OK, data, f"Successfully unliked the {noun}.")


async def _count(db: AsyncSession, target: LikeTarget):
    await _ensure_target(db, target)
    total = await repo.count_likes(db, target.kind, target.target_id)
    return api_response(
        status.HTTP_200_OK,
        LikeCountOut(count=total),
        f"Successfully retrieved {target.kind.value} likes count.",
    )


# ======================= TOGGLES =======================


@router.post("/toggle")
async def toggle_like(
    target: LikeTarget,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Body: {"video": id} | {"comment": id} | {"tweet": id}."""
    return await _toggle(db, target, user)


@router.post("/toggle/v/{video_id}")
async def toggle_video_like(
    video_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await _toggle(db, LikeTarget.of(LikeTargetKind.VIDEO, video_id), user)


@router.post("/toggle/c/{comment_id}")
async def toggle_comment_like(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await _toggle(db, LikeTarget.of(LikeTargetKind.COMMENT, comment_id), user)


@router.post("/toggle/t/{tweet_id}")
async def toggle_tweet_like(
    tweet_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await _toggle(db, LikeTarget.of(LikeTargetKind.TWEET, tweet_id), user)


# ======================= CONTADORES =======================


@router.get("/count/v/{video_id}")
async def video_likes_count(
    video_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await _count(db, LikeTarget.of(LikeTargetKind.VIDEO, video_id))


@router.get("/count/c/{comment_id}")
async def comment_likes_count(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await _count(db, LikeTarget.of(LikeTargetKind.COMMENT, comment_id))


@router.get("/count/t/{tweet_id}")
async def tweet_likes_count(
    tweet_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await _count(db, LikeTarget.of(LikeTargetKind.TWEET, tweet_id))


@router.get("/videos")
async def liked_videos(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await repo.list_liked_videos(db, user.id)
    items = [
        LikedVideoOut(liked_at=like.created_at, video=video_with_owner(video, owner))
        for like, video, owner in rows
    ]
    return api_response(status.HTTP_200_OK, items, "Successfully retrieved liked videos.")
