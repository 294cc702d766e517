from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime

from app.users.schemas import OwnerMini
from app.videos.schemas import VideoWithOwner


def _unique_ids(ids: list[int]) -> list[int]:
    # sin repetidos, respetando el orden en que llegan
    return list(dict.fromkeys(ids))


class PlaylistCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=150)
    description: str | None = Field(default=None, max_length=5000)
    videos: list[int] = Field(default_factory=list)

    @field_validator("videos")
    @classmethod
    def _dedupe(cls, v: list[int]) -> list[int]:
        return _unique_ids(v)


class PlaylistUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=150)
    description: str | None = Field(default=None, max_length=5000)


class PlaylistVideosIn(BaseModel):
    videos: list[int] = Field(..., min_length=1)

    @field_validator("videos")
    @classmethod
    def _dedupe(cls, v: list[int]) -> list[int]:
        return _unique_ids(v)


class PlaylistOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime
    videos_count: int = 0


class PlaylistDetail(PlaylistOut):
    owner: OwnerMini
    videos: list[VideoWithOwner] = []
