from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.errors import not_found
from app.core.json import api_response
from app.db.session import get_session
from app.subscriptions import repository as repo
from app.subscriptions.schemas import (
    SubscriptionToggleOut,
    SubscriberOut,
    SubscribedChannelOut,
)
from app.users.models import User
from app.users.repository import get_by_id
from app.users.schemas import OwnerMini

router = APIRouter(prefix="/api/v1/subscription", tags=["subscriptions"])


@router.post("/c/{channel_id}")
async def toggle_subscription(
    channel_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await get_by_id(db, channel_id):
        raise not_found("Channel not found")

    subscribed, total = await repo.toggle_subscription(db, user.id, channel_id)
    await db.commit()

    data = SubscriptionToggleOut(
        channel_id=channel_id,
        is_subscribed=subscribed,
        subscribers_count=total,
    )
    if subscribed:
        return api_response(status.HTTP_201_CREATED, data, "Successfully subscribed")
    return api_response(status.HTTP_200_OK, data, "Successfully unsubscribed")


@router.get("/u/{channel_id}")
async def channel_subscribers(
    channel_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await get_by_id(db, channel_id):
        raise not_found("Channel not found")

    rows = await repo.list_subscribers(db, channel_id)
    items = [
        SubscriberOut(subscriber=OwnerMini.model_validate(u), subscribed_at=sub.created_at)
        for sub, u in rows
    ]
    return api_response(status.HTTP_200_OK, items, "Subscribers fetched successfully")


@router.get("/{subscriber_id}")
async def subscribed_channels(
    subscriber_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await get_by_id(db, subscriber_id):
        raise not_found("User not found")

    rows = await repo.list_subscribed_channels(db, subscriber_id)
    items = [
        SubscribedChannelOut(channel=OwnerMini.model_validate(u), subscribed_at=sub.created_at)
        for sub, u in rows
    ]
    return api_response(status.HTTP_200_OK, items, "Subscribed channels fetched successfully")
