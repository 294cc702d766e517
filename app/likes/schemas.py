from pydantic import BaseModel, Field, model_validator
from datetime import datetime

from app.likes.models import LikeTargetKind
from app.videos.schemas import VideoWithOwner


class LikeTarget(BaseModel):
    """
    Objetivo de un like: exactamente uno de video / comment / tweet.

    Acepta {"video": 3} (o comment / tweet) y también la forma explícita
    {"kind": "video", "target_id": 3}.
    """
    video: int | None = Field(default=None, gt=0)
    comment: int | None = Field(default=None, gt=0)
    tweet: int | None = Field(default=None, gt=0)
    kind: LikeTargetKind | None = None
    target_id: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _exactly_one(self):
        refs = {
            LikeTargetKind.VIDEO: self.video,
            LikeTargetKind.COMMENT: self.comment,
            LikeTargetKind.TWEET: self.tweet,
        }
        populated = [(k, v) for k, v in refs.items() if v is not None]

        if self.kind is not None or self.target_id is not None:
            if populated:
                raise ValueError("use either kind/target_id or one of video, comment, tweet")
            if self.kind is None or self.target_id is None:
                raise ValueError("kind and target_id go together")
            return self

        if len(populated) != 1:
            raise ValueError("exactly one of video, comment or tweet is required")
        self.kind, self.target_id = populated[0]
        return self

    @classmethod
    def of(cls, kind: LikeTargetKind, target_id: int) -> "LikeTarget":
        # ya tipado por la ruta; un id inexistente termina en 404, no en 400
        return cls.model_construct(kind=kind, target_id=target_id)


class LikeToggleOut(BaseModel):
    target_kind: LikeTargetKind
    target_id: int
    is_liked: bool
    likes_count: int


class LikeCountOut(BaseModel):
    count: int


class LikedVideoOut(BaseModel):
    liked_at: datetime
    video: VideoWithOwner
