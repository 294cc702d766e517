from pydantic import BaseModel
from datetime import datetime

from app.users.schemas import OwnerMini


class SubscriptionToggleOut(BaseModel):
    channel_id: int
    is_subscribed: bool
    subscribers_count: int


class SubscriberOut(BaseModel):
    subscriber: OwnerMini
    subscribed_at: datetime


class SubscribedChannelOut(BaseModel):
    channel: OwnerMini
    subscribed_at: datetime
