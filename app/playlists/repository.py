from sqlalchemy import select, func, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.dialect import insert_ignore
from app.playlists.models import Playlist, PlaylistVideo
from app.users.models import User
from app.videos.models import Video


async def create_playlist(
    db: AsyncSession,
    *,
    owner_id: int,
    name: str,
    description: str | None,
) -> Playlist:
    playlist = Playlist(owner_id=owner_id, name=name, description=description)
    db.add(playlist)
    await db.flush()
    await db.refresh(playlist)
    return playlist


async def get_playlist(db: AsyncSession, playlist_id: int) -> Playlist | None:
    res = await db.execute(select(Playlist).where(Playlist.id == playlist_id))
    return res.scalar_one_or_none()


async def list_playlists(db: AsyncSession, owner_id: int):
    """Filas (Playlist, videos_count) del usuario, las más nuevas primero."""
    count = (
        select(func.count(PlaylistVideo.video_id))
        .where(PlaylistVideo.playlist_id == Playlist.id)
        .correlate(Playlist)
        .scalar_subquery()
    )
    res = await db.execute(
        select(Playlist, count)
        .where(Playlist.owner_id == owner_id)
        .order_by(desc(Playlist.created_at), desc(Playlist.id))
    )
    return res.all()


async def playlist_videos(db: AsyncSession, playlist_id: int):
    """Filas (Video, owner User) en el orden de la playlist."""
    res = await db.execute(
        select(Video, User)
        .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
        .join(User, User.id == Video.owner_id)
        .where(PlaylistVideo.playlist_id == playlist_id)
        .order_by(PlaylistVideo.position, PlaylistVideo.added_at)
    )
    return res.all()


async def missing_video_ids(db: AsyncSession, video_ids: list[int]) -> list[int]:
    if not video_ids:
        return []
    res = await db.execute(select(Video.id).where(Video.id.in_(video_ids)))
    found = set(res.scalars())
    return [v for v in video_ids if v not in found]


async def add_videos(db: AsyncSession, playlist_id: int, video_ids: list[int]) -> int:
    """
    Agrega al final los videos que todavía no están (unión de conjuntos).
    Devuelve cuántos se agregaron.
    """
    res = await db.execute(
        select(func.max(PlaylistVideo.position)).where(PlaylistVideo.playlist_id == playlist_id)
    )
    last = res.scalar()
    position = (last + 1) if last is not None else 0

    added = 0
    for video_id in video_ids:
        # la PK (playlist_id, video_id) descarta los que ya estaban
        inserted = await insert_ignore(
            db,
            PlaylistVideo,
            {"playlist_id": playlist_id, "video_id": video_id, "position": position},
            index_elements=["playlist_id", "video_id"],
        )
        if inserted:
            position += 1
            added += 1
    await db.flush()
    return added


async def remove_videos(db: AsyncSession, playlist_id: int, video_ids: list[int]) -> int:
    res = await db.execute(
        delete(PlaylistVideo).where(
            PlaylistVideo.playlist_id == playlist_id,
            PlaylistVideo.video_id.in_(video_ids),
        )
    )
    await db.flush()
    return res.rowcount or 0


async def update_playlist(
    db: AsyncSession,
    playlist: Playlist,
    *,
    name: str | None,
    description: str | None,
) -> Playlist:
    if name is not None:
        playlist.name = name
    if description is not None:
        playlist.description = description
    await db.flush()
    await db.refresh(playlist)
    return playlist


async def touch(db: AsyncSession, playlist: Playlist) -> Playlist:
    """Marca la playlist como modificada cuando cambian sus videos."""
    playlist.updated_at = func.now()
    await db.flush()
    await db.refresh(playlist)
    return playlist


async def delete_playlist(db: AsyncSession, playlist: Playlist) -> None:
    await db.execute(delete(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist.id))
    await db.delete(playlist)
    await db.flush()
