from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy import (
    String,
    Integer,
    Float,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    func,
)
from app.db.base import Base, TimestampMixin
from app.core.config import Settings
from app.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
)


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    fullname: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    avatar: Mapped[str] = mapped_column(String(500), nullable=False)
    cover_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # siempre el hash argon2, nunca el texto plano
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    @validates("username", "email")
    def _lower(self, key, value: str) -> str:
        return (value or "").strip().lower()

    @validates("fullname")
    def _trim(self, key, value: str) -> str:
        return (value or "").strip()

    def set_password(self, raw: str) -> None:
        self.password = hash_password(raw)

    def is_password_correct(self, raw: str) -> bool:
        return verify_password(raw, self.password)

    def generate_access_token(self, settings: Settings) -> str:
        return create_access_token(
            str(self.id),
            settings,
            username=self.username,
            email=self.email,
            fullname=self.fullname,
        )

    def generate_refresh_token(self, settings: Settings) -> str:
        return create_refresh_token(str(self.id), settings)


class WatchHistory(Base):
    """
    Una entrada por (usuario, video): al volver a verlo se actualizan
    posición y fecha en vez de duplicar la fila.
    """
    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    video_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("videos.id", ondelete="CASCADE"), index=True, nullable=False
    )
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    position: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")
    watched_at: Mapped["DateTime"] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
