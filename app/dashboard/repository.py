from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.comments.models import Comment
from app.likes.models import Like, LikeTargetKind
from app.subscriptions.models import Subscription
from app.videos.models import Video


async def channel_stats(db: AsyncSession, channel_id: int) -> dict:
    """
    Totales del canal con agregados en la DB. Un canal sin nada
    (o que no existe) da todo en cero.
    """
    channel_videos = select(Video.id).where(Video.owner_id == channel_id)

    videos = await db.execute(
        select(func.count(Video.id), func.coalesce(func.sum(Video.views), 0))
        .where(Video.owner_id == channel_id)
    )
    total_videos, total_views = videos.one()

    subscribers = await db.execute(
        select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
    )
    likes = await db.execute(
        select(func.count(Like.id)).where(
            Like.target_kind == LikeTargetKind.VIDEO.value,
            Like.target_id.in_(channel_videos),
        )
    )
    comments = await db.execute(
        select(func.count(Comment.id)).where(Comment.video_id.in_(channel_videos))
    )

    return {
        "total_videos": int(total_videos or 0),
        "total_subscribers": int(subscribers.scalar() or 0),
        "total_likes": int(likes.scalar() or 0),
        "total_views": int(total_views or 0),
        "total_comments": int(comments.scalar() or 0),
    }


async def channel_videos(db: AsyncSession, channel_id: int):
    """Filas (Video, likes_count, comments_count) de todos los videos del canal."""
    likes = (
        select(func.count(Like.id))
        .where(
            Like.target_kind == LikeTargetKind.VIDEO.value,
            Like.target_id == Video.id,
        )
        .correlate(Video)
        .scalar_subquery()
    )
    comments = (
        select(func.count(Comment.id))
        .where(Comment.video_id == Video.id)
        .correlate(Video)
        .scalar_subquery()
    )
    res = await db.execute(
        select(Video, likes, comments)
        .where(Video.owner_id == channel_id)
        .order_by(desc(Video.created_at), desc(Video.id))
    )
    return res.all()
