# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, settings as default_settings
from app.core.errors import register_exception_handlers
from app.core.json import UTF8JSONResponse
from app.core.log_config import setup_logging
from app.core.middleware import RequestLoggingMiddleware, JSONBodyLimitMiddleware
from app.db.init_db import init_models
from app.db.session import Database
from app.media.storage import MediaStorage

# routers
from app.users.router import router as users_router
from app.videos.router import router as videos_router
from app.comments.router import router as comments_router
from app.tweets.router import router as tweets_router
from app.likes.router import router as likes_router
from app.playlists.router import router as playlists_router
from app.subscriptions.router import router as subscriptions_router
from app.dashboard.router import router as dashboard_router
from app.healthcheck.router import router as healthcheck_router
from app.media.streaming import router as media_router

log = logging.getLogger("uvicorn")


def create_app(
    settings: Settings | None = None,
    db: Database | None = None,
    storage: MediaStorage | None = None,
) -> FastAPI:
    """
    Arma la aplicación. Los tests pasan su propio Settings / Database /
    MediaStorage; en producción se construyen desde el entorno.
    """
    settings = settings or default_settings
    setup_logging(settings)

    db = db or Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    storage = storage or MediaStorage(settings.MEDIA_DIR, settings.MEDIA_BASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(f"🚀 Iniciando servicio ({settings.ENVIRONMENT})…")
        await init_models(app.state.db)
        log.info("✅ Startup listo.")
        yield
        await app.state.db.dispose()
        log.info("👋 Servicio detenido.")

    app = FastAPI(
        title="Video Motion API",
        default_response_class=UTF8JSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.storage = storage

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(JSONBodyLimitMiddleware, limit=settings.JSON_BODY_LIMIT)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(healthcheck_router)     # /api/v1/healthcheck
    app.include_router(users_router)           # /api/v1/users/...
    app.include_router(videos_router)          # /api/v1/videos/...
    app.include_router(comments_router)        # /api/v1/comments/...
    app.include_router(tweets_router)          # /api/v1/tweets/...
    app.include_router(likes_router)           # /api/v1/like/...
    app.include_router(playlists_router)       # /api/v1/playlist/...
    app.include_router(subscriptions_router)   # /api/v1/subscription/...
    app.include_router(dashboard_router)       # /api/v1/dashboard/...
    app.include_router(media_router)           # /media/...

    return app

