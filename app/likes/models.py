import enum

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    Integer,
    String,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from app.db.base import Base, TimestampMixin


class LikeTargetKind(str, enum.Enum):
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


class Like(TimestampMixin, Base):
    """
    Like polimórfico: (target_kind, target_id) apunta a un video, un
    comentario o un tweet. Un usuario solo puede dar 1 like por objetivo.
    """
    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint(
            "liked_by", "target_kind", "target_id", name="uq_like_user_target"
        ),
        CheckConstraint(
            "target_kind IN ('video', 'comment', 'tweet')",
            name="ck_like_target_kind",
        ),
        Index("ix_likes_target", "target_kind", "target_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    target_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    liked_by: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
