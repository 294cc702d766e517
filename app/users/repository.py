from sqlalchemy import select, func, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from app.users.models import User, WatchHistory
from app.videos.models import Video
from app.subscriptions.models import Subscription


async def get_by_username(db: AsyncSession, username: str) -> User | None:
    res = await db.execute(select(User).where(User.username == username.strip().lower()))
    return res.scalar_one_or_none()


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    res = await db.execute(select(User).where(User.email == email.strip().lower()))
    return res.scalar_one_or_none()


async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def find_existing(db: AsyncSession, username: str, email: str) -> User | None:
    """Usuario que ya tenga ese username O ese email."""
    res = await db.execute(
        select(User)
        .where(
            or_(
                User.username == username.strip().lower(),
                User.email == email.strip().lower(),
            )
        )
        .limit(1)
    )
    return res.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    fullname: str,
    password: str,
    avatar: str,
    cover_image: str | None = None,
) -> User:
    user = User(
        username=username,
        email=email,
        fullname=fullname,
        avatar=avatar,
        cover_image=cover_image,
    )
    user.set_password(password)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def channel_counts(
    db: AsyncSession,
    channel_id: int,
    viewer_id: int | None,
) -> dict:
    """
    subscribers_count, channels_subscribed_to_count e is_subscribed
    para el perfil público de un canal.
    """
    subscribers = await db.execute(
        select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
    )
    subscribed_to = await db.execute(
        select(func.count(Subscription.id)).where(Subscription.subscriber_id == channel_id)
    )
    is_subscribed = False
    if viewer_id is not None:
        res = await db.execute(
            select(Subscription.id).where(
                Subscription.channel_id == channel_id,
                Subscription.subscriber_id == viewer_id,
            )
        )
        is_subscribed = res.scalar_one_or_none() is not None

    return {
        "subscribers_count": int(subscribers.scalar() or 0),
        "channels_subscribed_to_count": int(subscribed_to.scalar() or 0),
        "is_subscribed": is_subscribed,
    }


async def list_watch_history(db: AsyncSession, user_id: int):
    """
    Filas (WatchHistory, Video, owner User), lo más reciente primero.
    """
    q = (
        select(WatchHistory, Video, User)
        .join(Video, Video.id == WatchHistory.video_id)
        .join(User, User.id == Video.owner_id)
        .where(WatchHistory.user_id == user_id)
        .order_by(desc(WatchHistory.watched_at), desc(WatchHistory.id))
    )
    res = await db.execute(q)
    return res.all()
