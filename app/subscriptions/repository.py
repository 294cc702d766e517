from sqlalchemy import select, func, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.dialect import insert_ignore
from app.subscriptions.models import Subscription
from app.users.models import User


async def count_subscribers(db: AsyncSession, channel_id: int) -> int:
    res = await db.execute(
        select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
    )
    return int(res.scalar() or 0)


async def toggle_subscription(
    db: AsyncSession,
    subscriber_id: int,
    channel_id: int,
) -> tuple[bool, int]:
    """
    Igual que el toggle de likes: DELETE condicional y, si no borró nada,
    INSERT ... ON CONFLICT DO NOTHING sobre (subscriber_id, channel_id).
    Devuelve (subscribed, subscribers_count).
    """
    res = await db.execute(
        delete(Subscription).where(
            Subscription.subscriber_id == subscriber_id,
            Subscription.channel_id == channel_id,
        )
    )
    if res.rowcount:
        subscribed = False
    else:
        await insert_ignore(
            db,
            Subscription,
            {"subscriber_id": subscriber_id, "channel_id": channel_id},
            index_elements=["subscriber_id", "channel_id"],
        )
        subscribed = True
    await db.flush()
    return subscribed, await count_subscribers(db, channel_id)


async def list_subscribers(db: AsyncSession, channel_id: int):
    """Filas (Subscription, User suscriptor)."""
    res = await db.execute(
        select(Subscription, User)
        .join(User, User.id == Subscription.subscriber_id)
        .where(Subscription.channel_id == channel_id)
        .order_by(desc(Subscription.created_at), desc(Subscription.id))
    )
    return res.all()


async def list_subscribed_channels(db: AsyncSession, subscriber_id: int):
    """Filas (Subscription, User canal)."""
    res = await db.execute(
        select(Subscription, User)
        .join(User, User.id == Subscription.channel_id)
        .where(Subscription.subscriber_id == subscriber_id)
        .order_by(desc(Subscription.created_at), desc(Subscription.id))
    )
    return res.all()
