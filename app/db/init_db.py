import logging
from app.db.base import Base
from app.db.session import Database

# 👇 importa todos los modelos que deben existir en la DB
from app.users.models import User, WatchHistory  # noqa: F401
from app.videos.models import Video  # noqa: F401
from app.comments.models import Comment  # noqa: F401
from app.tweets.models import Tweet  # noqa: F401
from app.likes.models import Like  # noqa: F401
from app.playlists.models import Playlist, PlaylistVideo  # noqa: F401
from app.subscriptions.models import Subscription  # noqa: F401

log = logging.getLogger("uvicorn")


async def init_models(db: Database):
    """
    Crea/verifica todas las tablas declaradas en Base.metadata
    """
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("✅ DB init: tablas creadas/verificadas.")
