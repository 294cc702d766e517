from sqlalchemy import select, func, delete, desc, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.dialect import insert_ignore
from app.likes.models import Like, LikeTargetKind
from app.videos.models import Video
from app.users.models import User


async def count_likes(db: AsyncSession, kind: LikeTargetKind, target_id: int) -> int:
    q = select(func.count(Like.id)).where(
        Like.target_kind == kind.value,
        Like.target_id == target_id,
    )
    res = await db.execute(q)
    return int(res.scalar() or 0)


async def user_liked(
    db: AsyncSession,
    kind: LikeTargetKind,
    target_id: int,
    user_id: int,
) -> bool:
    q = select(Like.id).where(
        Like.target_kind == kind.value,
        Like.target_id == target_id,
        Like.liked_by == user_id,
    )
    res = await db.execute(q)
    return res.scalar_one_or_none() is not None


async def toggle_like(
    db: AsyncSession,
    kind: LikeTargetKind,
    target_id: int,
    user_id: int,
) -> tuple[bool, int]:
    """
    Quita el like si existe; si no existía lo crea.
    Devuelve (liked, total_likes).

    Cada paso es una sola sentencia condicional sobre la clave única
    (liked_by, target_kind, target_id): dos toggles simultáneos nunca
    dejan likes duplicados.
    """
    res = await db.execute(
        delete(Like).where(
            Like.liked_by == user_id,
            Like.target_kind == kind.value,
            Like.target_id == target_id,
        )
    )
    if res.rowcount:
        liked = False
    else:
        await insert_ignore(
            db,
            Like,
            {"liked_by": user_id, "target_kind": kind.value, "target_id": target_id},
            index_elements=["liked_by", "target_kind", "target_id"],
        )
        liked = True
    await db.flush()

    total = await count_likes(db, kind, target_id)
    return liked, total


async def delete_likes_for(db: AsyncSession, kind: LikeTargetKind, target_id: int) -> None:
    await db.execute(
        delete(Like).where(
            Like.target_kind == kind.value,
            Like.target_id == target_id,
        )
    )


async def list_liked_videos(db: AsyncSession, user_id: int):
    """
    Filas (Like, Video, owner User) de los videos que el usuario likeó,
    el like más reciente primero. Los despublicados solo los ve su dueño.
    """
    q = (
        select(Like, Video, User)
        .join(
            Video,
            (Like.target_kind == LikeTargetKind.VIDEO.value) & (Video.id == Like.target_id),
        )
        .join(User, User.id == Video.owner_id)
        .where(
            Like.liked_by == user_id,
            or_(Video.is_published.is_(True), Video.owner_id == user_id),
        )
        .order_by(desc(Like.created_at), desc(Like.id))
    )
    res = await db.execute(q)
    return res.all()
