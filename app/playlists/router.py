from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.errors import bad_request, forbidden, not_found
from app.core.json import api_response
from app.db.session import get_session
from app.playlists import repository as repo
from app.playlists.models import Playlist
from app.playlists.schemas import (
    PlaylistCreate,
    PlaylistUpdate,
    PlaylistVideosIn,
    PlaylistOut,
    PlaylistDetail,
)
from app.users.models import User
from app.users.repository import get_by_id
from app.users.schemas import OwnerMini
from app.videos.schemas import video_with_owner

router = APIRouter(prefix="/api/v1/playlist", tags=["playlists"])


# ======================= HELPERS =======================


async def _get_playlist(db: AsyncSession, playlist_id: int) -> Playlist:
    playlist = await repo.get_playlist(db, playlist_id)
    if not playlist:
        raise not_found("Playlist not found")
    return playlist


async def _owned_playlist(db: AsyncSession, playlist_id: int, user: User) -> Playlist:
    playlist = await _get_playlist(db, playlist_id)
    if playlist.owner_id != user.id:
        raise forbidden("You are not allowed to modify this playlist")
    return playlist


async def _ensure_videos_exist(db: AsyncSession, video_ids: list[int]) -> None:
    missing = await repo.missing_video_ids(db, video_ids)
    if missing:
        raise not_found(f"Video not found: {', '.join(str(v) for v in missing)}")


async def _detail(db: AsyncSession, playlist: Playlist) -> PlaylistDetail:
    owner = await get_by_id(db, playlist.owner_id)
    rows = await repo.playlist_videos(db, playlist.id)
    videos = [video_with_owner(video, video_owner) for video, video_owner in rows]
    return PlaylistDetail(
        **PlaylistOut.model_validate(playlist).model_dump(exclude={"videos_count"}),
        videos_count=len(videos),
        owner=OwnerMini.model_validate(owner),
        videos=videos,
    )


def _summaries(rows) -> list[PlaylistOut]:
    out: list[PlaylistOut] = []
    for playlist, count in rows:
        item = PlaylistOut.model_validate(playlist)
        item.videos_count = count or 0
        out.append(item)
    return out


# ======================= CRUD =======================


@router.post("")
async def create_playlist(
    payload: PlaylistCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await _ensure_videos_exist(db, payload.videos)

    playlist = await repo.create_playlist(
        db,
        owner_id=user.id,
        name=payload.name,
        description=payload.description,
    )
    if payload.videos:
        await repo.add_videos(db, playlist.id, payload.videos)
    detail = await _detail(db, playlist)
    await db.commit()
    return api_response(status.HTTP_201_CREATED, detail, "Playlist created successfully")


@router.get("")
async def my_playlists(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await repo.list_playlists(db, user.id)
    return api_response(status.HTTP_200_OK, _summaries(rows), "Playlists fetched successfully")


@router.get("/user/{user_id}")
async def user_playlists(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await get_by_id(db, user_id):
        raise not_found("User not found")
    rows = await repo.list_playlists(db, user_id)
    return api_response(status.HTTP_200_OK, _summaries(rows), "User playlists fetched successfully")


@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    playlist = await _get_playlist(db, playlist_id)
    return api_response(status.HTTP_200_OK, await _detail(db, playlist), "Playlist fetched successfully")


@router.patch("/{playlist_id}")
async def update_playlist(
    playlist_id: int,
    payload: PlaylistUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if payload.name is None and payload.description is None:
        raise bad_request("Nothing to update")

    playlist = await _owned_playlist(db, playlist_id, user)
    playlist = await repo.update_playlist(db, playlist, name=payload.name, description=payload.description)
    detail = await _detail(db, playlist)
    await db.commit()
    return api_response(status.HTTP_200_OK, detail, "Playlist updated successfully")


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    playlist = await _owned_playlist(db, playlist_id, user)
    await repo.delete_playlist(db, playlist)
    await db.commit()
    return api_response(status.HTTP_200_OK, {}, "Playlist deleted successfully")


# ======================= VIDEOS DE LA PLAYLIST =======================


@router.patch("/add/{playlist_id}")
async def add_videos(
    playlist_id: int,
    payload: PlaylistVideosIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    playlist = await _owned_playlist(db, playlist_id, user)
    await _ensure_videos_exist(db, payload.videos)

    if await repo.add_videos(db, playlist.id, payload.videos):
        playlist = await repo.touch(db, playlist)
    detail = await _detail(db, playlist)
    await db.commit()
    return api_response(status.HTTP_200_OK, detail, "Videos added to playlist successfully")


@router.patch("/remove/{playlist_id}")
async def remove_videos(
    playlist_id: int,
    payload: PlaylistVideosIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    playlist = await _owned_playlist(db, playlist_id, user)

    if await repo.remove_videos(db, playlist.id, payload.videos):
        playlist = await repo.touch(db, playlist)
    detail = await _detail(db, playlist)
    await db.commit()
    return api_response(status.HTTP_200_OK, detail, "Videos removed from playlist successfully")
