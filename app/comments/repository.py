from __future__ import annotations

from sqlalchemy import select, func, Select
from sqlalchemy.ext.asyncio import AsyncSession

from app.comments.models import Comment
from app.likes.models import Like, LikeTargetKind
from app.likes.repository import delete_likes_for
from app.users.models import User


def _likes_count_col():
    return (
        select(func.count(Like.id))
        .where(
            Like.target_kind == LikeTargetKind.COMMENT.value,
            Like.target_id == Comment.id,
        )
        .correlate(Comment)
        .scalar_subquery()
        .label("likes_count")
    )


async def create_comment(
    db: AsyncSession,
    *,
    video_id: int,
    owner_id: int,
    content: str,
) -> Comment:
    c = Comment(video_id=video_id, owner_id=owner_id, content=content)
    db.add(c)
    await db.flush()
    await db.refresh(c)
    return c


async def get_comment(db: AsyncSession, comment_id: int) -> Comment | None:
    res = await db.execute(select(Comment).where(Comment.id == comment_id))
    return res.scalar_one_or_none()


def list_video_comments_stmt(video_id: int) -> Select:
    """
    Select de (Comment, User, likes_count) de un video,
    los más nuevos primero (id para desempatar).
    """
    return (
        select(Comment, User, _likes_count_col())
        .join(User, User.id == Comment.owner_id)
        .where(Comment.video_id == video_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )


async def update_comment(db: AsyncSession, comment: Comment, content: str) -> Comment:
    comment.content = content
    await db.flush()
    await db.refresh(comment)
    return comment


async def delete_comment(db: AsyncSession, comment: Comment) -> None:
    # los likes apuntan por (kind, id), no hay FK que los arrastre
    await delete_likes_for(db, LikeTargetKind.COMMENT, comment.id)
    await db.delete(comment)
    await db.flush()
