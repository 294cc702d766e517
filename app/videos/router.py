from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.errors import not_found
from app.core.json import api_response
from app.db.pagination import paginate
from app.db.session import get_session
from app.media.storage import MediaStorage, get_storage
from app.users.models import User
from app.videos import repository as repo
from app.videos import service as svc
from app.videos.schemas import (
    VideoCreate,
    VideoUpdate,
    VideoOut,
    WatchHistoryIn,
    video_with_owner,
)

router = APIRouter(prefix="/api/v1/videos", tags=["videos"])


def _video_form(
    title: str = Form(...),
    description: str = Form(...),
) -> VideoCreate:
    try:
        return VideoCreate(title=title, description=description)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


def _video_update_form(
    title: str | None = Form(None),
    description: str | None = Form(None),
) -> VideoUpdate:
    try:
        return VideoUpdate(title=title, description=description)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


def _rows_to_docs(rows):
    return [video_with_owner(video, owner) for video, owner in rows]


# ======================= CRUD =======================


@router.post("")
async def publish_video(
    data: VideoCreate = Depends(_video_form),
    video_file: UploadFile | None = File(None, alias="videoFile"),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_storage),
):
    video = await svc.publish_video(db, storage, user, data, video_file, thumbnail)
    await db.commit()
    return api_response(status.HTTP_201_CREATED, VideoOut.model_validate(video), "Video uploaded successfully")


@router.get("")
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    query: str | None = Query(None),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
    user_id: int | None = Query(None, alias="userId"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    stmt = repo.list_videos_stmt(
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        owner_id=user_id,
        viewer_id=user.id,
    )
    result = await paginate(db, stmt, page=page, limit=limit, transform=_rows_to_docs)
    return api_response(status.HTTP_200_OK, result, "Videos fetched successfully")


@router.get("/{video_id}")
async def get_video(
    video_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    detail = await svc.video_detail(db, video_id, user)
    return api_response(status.HTTP_200_OK, detail, "Video fetched successfully")


@router.patch("/{video_id}")
async def update_video(
    video_id: int,
    data: VideoUpdate = Depends(_video_update_form),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_storage),
):
    video, previous = await svc.update_video(db, storage, user, video_id, data, thumbnail)
    await db.commit()
    if previous:
        await storage.delete_by_url(previous)
    return api_response(status.HTTP_200_OK, VideoOut.model_validate(video), "Video updated successfully")


@router.delete("/{video_id}")
async def delete_video(
    video_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_storage),
):
    video_url, thumbnail_url = await svc.remove_video(db, user, video_id)
    await db.commit()
    # archivos fuera solo cuando la fila ya no existe
    await storage.delete_by_url(video_url)
    await storage.delete_by_url(thumbnail_url)
    return api_response(status.HTTP_200_OK, {}, "Video deleted successfully")


# ======================= ESTADO / VISTAS =======================


@router.patch("/toggle-published-status/{video_id}")
async def toggle_publish_status(
    video_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    video = await svc.toggle_publish(db, user, video_id)
    await db.commit()
    return api_response(
        status.HTTP_200_OK,
        {"is_published": video.is_published},
        "Video publish status toggled successfully",
    )


@router.patch("/increase-view-count/{video_id}")
async def increase_view_count(
    video_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    video = await repo.increment_views(db, video_id)
    if not video:
        raise not_found("Video not found")
    await db.commit()
    return api_response(status.HTTP_200_OK, {"views": video.views}, "Video view count increased")


# ======================= 🕒 HISTORIAL =======================


@router.patch("/add-to-watch-history/{video_id}")
async def add_to_watch_history(
    video_id: int,
    payload: WatchHistoryIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    entry = await svc.add_to_history(db, user, video_id, payload.duration, payload.position)
    await db.commit()
    return api_response(
        status.HTTP_200_OK,
        {
            "video_id": entry.video_id,
            "duration": entry.duration,
            "position": entry.position,
            "watched_at": entry.watched_at,
        },
        "Video added to watch history",
    )


@router.delete("/delete-video-from-history/{video_id}")
async def delete_from_watch_history(
    video_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    removed = await repo.remove_from_history(db, user.id, video_id)
    if not removed:
        raise not_found("Video not found in watch history")
    await db.commit()
    return api_response(status.HTTP_200_OK, {}, "Video removed from watch history")
