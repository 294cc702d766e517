from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from app.tweets.models import TWEET_MAX_LEN
from app.users.schemas import OwnerMini


class TweetIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=TWEET_MAX_LEN)


class TweetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    content: str
    created_at: datetime
    updated_at: datetime


class TweetWithOwner(TweetOut):
    owner: OwnerMini
    likes_count: int = 0


def tweet_with_owner(tweet, owner, likes_count: int = 0) -> TweetWithOwner:
    return TweetWithOwner(
        **TweetOut.model_validate(tweet).model_dump(),
        owner=OwnerMini.model_validate(owner),
        likes_count=likes_count,
    )
