from sqlalchemy import select, desc, asc, func, delete, update, or_, and_, Select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.dialect import upsert
from app.videos.models import Video
from app.users.models import User, WatchHistory
from app.comments.models import Comment
from app.likes.models import Like, LikeTargetKind
from app.playlists.models import PlaylistVideo

SORTABLE = {
    "created_at": Video.created_at,
    "createdAt": Video.created_at,
    "views": Video.views,
    "duration": Video.duration,
    "title": Video.title,
}


# -------------------------
# VIDEOS
# -------------------------
async def create_video(
    db: AsyncSession,
    *,
    owner_id: int,
    video_file: str,
    thumbnail: str,
    title: str,
    description: str,
    duration: float,
) -> Video:
    video = Video(
        owner_id=owner_id,
        video_file=video_file,
        thumbnail=thumbnail,
        title=title,
        description=description,
        duration=duration,
    )
    db.add(video)
    await db.flush()
    await db.refresh(video)
    return video


async def get_video(db: AsyncSession, video_id: int) -> Video | None:
    res = await db.execute(select(Video).where(Video.id == video_id))
    return res.scalar_one_or_none()


async def get_video_with_owner(db: AsyncSession, video_id: int):
    """(Video, User) o None."""
    res = await db.execute(
        select(Video, User)
        .join(User, User.id == Video.owner_id)
        .where(Video.id == video_id)
    )
    return res.first()


def list_videos_stmt(
    *,
    query: str | None = None,
    sort_by: str = "created_at",
    sort_type: str = "desc",
    owner_id: int | None = None,
    viewer_id: int | None = None,
) -> Select:
    """
    Select de (Video, User) para el listado paginado.
    Solo publicados, salvo que el dueño liste sus propios videos.
    """
    q = select(Video, User).join(User, User.id == Video.owner_id)

    if owner_id is not None:
        q = q.where(Video.owner_id == owner_id)
        if owner_id != viewer_id:
            q = q.where(Video.is_published.is_(True))
    else:
        q = q.where(Video.is_published.is_(True))

    if query:
        like = f"%{query.strip()}%"
        q = q.where(or_(Video.title.ilike(like), Video.description.ilike(like)))

    column = SORTABLE.get(sort_by, Video.created_at)
    order = asc if sort_type.lower() == "asc" else desc
    return q.order_by(order(column), order(Video.id))


async def increment_views(db: AsyncSession, video_id: int) -> Video | None:
    # views = views + 1 en la propia DB, sin leer antes
    res = await db.execute(
        update(Video)
        .where(Video.id == video_id)
        .values(views=Video.views + 1)
        .execution_options(synchronize_session=False)
    )
    if not res.rowcount:
        return None
    video = await get_video(db, video_id)
    await db.refresh(video)
    return video


async def delete_video(db: AsyncSession, video: Video) -> None:
    """
    Borra el video y todo lo que cuelga de él: historial de todos los
    usuarios, likes (del video y de sus comentarios), comentarios y
    posiciones en playlists.
    """
    comment_ids = select(Comment.id).where(Comment.video_id == video.id)

    await db.execute(delete(WatchHistory).where(WatchHistory.video_id == video.id))
    await db.execute(
        delete(Like).where(
            or_(
                and_(Like.target_kind == LikeTargetKind.VIDEO.value, Like.target_id == video.id),
                and_(Like.target_kind == LikeTargetKind.COMMENT.value, Like.target_id.in_(comment_ids)),
            )
        )
    )
    await db.execute(delete(Comment).where(Comment.video_id == video.id))
    await db.execute(delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id))
    await db.delete(video)
    await db.flush()


async def count_comments(db: AsyncSession, video_id: int) -> int:
    res = await db.execute(select(func.count(Comment.id)).where(Comment.video_id == video_id))
    return int(res.scalar() or 0)


# -------------------------
# 🕒 HISTORIAL
# -------------------------
async def upsert_watch_history(
    db: AsyncSession,
    *,
    user_id: int,
    video_id: int,
    duration: float,
    position: float,
) -> None:
    """
    Una sola sentencia: si (user, video) ya existe actualiza posición y
    fecha, si no inserta. Sin carreras entre dos peticiones iguales.
    """
    await upsert(
        db,
        WatchHistory,
        values={
            "user_id": user_id,
            "video_id": video_id,
            "duration": duration,
            "position": position,
        },
        index_elements=["user_id", "video_id"],
        update={
            "duration": duration,
            "position": position,
            "watched_at": func.now(),
        },
    )


async def get_watch_entry(db: AsyncSession, user_id: int, video_id: int) -> WatchHistory | None:
    res = await db.execute(
        select(WatchHistory).where(
            WatchHistory.user_id == user_id,
            WatchHistory.video_id == video_id,
        )
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def remove_from_history(db: AsyncSession, user_id: int, video_id: int) -> bool:
    res = await db.execute(
        delete(WatchHistory).where(
            WatchHistory.user_id == user_id,
            WatchHistory.video_id == video_id,
        )
    )
    return (res.rowcount or 0) > 0
