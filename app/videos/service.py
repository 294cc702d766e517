from __future__ import annotations

import logging

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import bad_request, forbidden, not_found
from app.likes.models import LikeTargetKind
from app.likes.repository import count_likes, user_liked
from app.media.storage import MediaStorage
from app.users.models import User
from app.videos import repository as repo
from app.videos.models import Video
from app.videos.schemas import VideoCreate, VideoUpdate, VideoDetail, video_with_owner

log = logging.getLogger(__name__)


async def get_owned_video(db: AsyncSession, video_id: int, user: User) -> Video:
    video = await repo.get_video(db, video_id)
    if not video:
        raise not_found("Video not found")
    if video.owner_id != user.id:
        raise forbidden("You are not allowed to modify this video")
    return video


async def publish_video(
    db: AsyncSession,
    storage: MediaStorage,
    user: User,
    data: VideoCreate,
    video_file: UploadFile | None,
    thumbnail: UploadFile | None,
) -> Video:
    if video_file is None or not video_file.filename:
        raise bad_request("Video file is required")
    if thumbnail is None or not thumbnail.filename:
        raise bad_request("Thumbnail is required")

    video_asset = await storage.upload(video_file, "video")
    try:
        thumb_asset = await storage.upload(thumbnail, "thumbnail")
    except Exception:
        await storage.delete(video_asset.public_id)
        raise

    try:
        video = await repo.create_video(
            db,
            owner_id=user.id,
            video_file=video_asset.url,
            thumbnail=thumb_asset.url,
            title=data.title,
            description=data.description,
            duration=video_asset.duration or 0.0,
        )
    except Exception:
        await storage.delete(video_asset.public_id)
        await storage.delete(thumb_asset.public_id)
        raise

    log.info(f"🎬 video subido: id={video.id} owner={user.id} ({video.duration}s)")
    return video


async def video_detail(db: AsyncSession, video_id: int, viewer: User) -> VideoDetail:
    row = await repo.get_video_with_owner(db, video_id)
    if not row:
        raise not_found("Video not found")
    video, owner = row

    # los no publicados solo los ve su dueño
    if not video.is_published and video.owner_id != viewer.id:
        raise not_found("Video not found")

    return VideoDetail(
        **video_with_owner(video, owner).model_dump(),
        likes_count=await count_likes(db, LikeTargetKind.VIDEO, video.id),
        comments_count=await repo.count_comments(db, video.id),
        is_liked=await user_liked(db, LikeTargetKind.VIDEO, video.id, viewer.id),
    )


async def update_video(
    db: AsyncSession,
    storage: MediaStorage,
    user: User,
    video_id: int,
    data: VideoUpdate,
    thumbnail: UploadFile | None,
) -> tuple[Video, str | None]:
    """
    Devuelve (video, thumbnail_anterior). El router borra la miniatura
    vieja después del commit.
    """
    video = await get_owned_video(db, video_id, user)

    if data.title is None and data.description is None and (thumbnail is None or not thumbnail.filename):
        raise bad_request("Nothing to update")

    previous = None
    if thumbnail is not None and thumbnail.filename:
        asset = await storage.upload(thumbnail, "thumbnail")
        previous = video.thumbnail
        video.thumbnail = asset.url

    if data.title is not None:
        video.title = data.title
    if data.description is not None:
        video.description = data.description

    await db.flush()
    await db.refresh(video)
    return video, previous


async def remove_video(db: AsyncSession, user: User, video_id: int) -> tuple[str, str]:
    """Borra el video y sus dependencias; devuelve las URLs a limpiar del storage."""
    video = await get_owned_video(db, video_id, user)
    urls = (video.video_file, video.thumbnail)
    await repo.delete_video(db, video)
    log.info(f"🗑️ video borrado: id={video_id} owner={user.id}")
    return urls


async def toggle_publish(db: AsyncSession, user: User, video_id: int) -> Video:
    video = await get_owned_video(db, video_id, user)
    video.is_published = not video.is_published
    await db.flush()
    await db.refresh(video)
    return video


async def add_to_history(
    db: AsyncSession,
    user: User,
    video_id: int,
    duration: float,
    position: float,
):
    video = await repo.get_video(db, video_id)
    if not video:
        raise not_found("Video not found")

    await repo.upsert_watch_history(
        db,
        user_id=user.id,
        video_id=video_id,
        duration=duration,
        position=position,
    )
    await db.flush()
    return await repo.get_watch_entry(db, user.id, video_id)
