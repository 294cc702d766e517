from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from datetime import datetime

from app.users.schemas import OwnerMini


class VideoCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)


class VideoUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=5000)


class VideoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    owner_id: int
    created_at: datetime
    updated_at: datetime


class VideoWithOwner(VideoOut):
    owner: OwnerMini


class VideoDetail(VideoWithOwner):
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False


class WatchHistoryIn(BaseModel):
    duration: float = Field(..., gt=0)
    position: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("position", "currentTime"),
    )


class WatchHistoryEntryOut(BaseModel):
    video: VideoWithOwner
    duration: float | None = None
    position: float = 0
    watched_at: datetime


def video_with_owner(video, owner) -> VideoWithOwner:
    return VideoWithOwner(
        **VideoOut.model_validate(video).model_dump(),
        owner=OwnerMini.model_validate(owner),
    )
