from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from app.comments.models import COMMENT_MAX_LEN
from app.users.schemas import OwnerMini


class CommentIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=COMMENT_MAX_LEN)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    video_id: int
    owner_id: int
    content: str
    created_at: datetime
    updated_at: datetime


class CommentWithOwner(CommentOut):
    owner: OwnerMini
    likes_count: int = 0


def comment_with_owner(comment, owner, likes_count: int = 0) -> CommentWithOwner:
    return CommentWithOwner(
        **CommentOut.model_validate(comment).model_dump(),
        owner=OwnerMini.model_validate(owner),
        likes_count=likes_count,
    )
