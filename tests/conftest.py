import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.db.init_db import init_models
from app.db.session import Database
from app.main import create_app

from helpers import FakeStorage


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/test.db",
        MEDIA_DIR=str(tmp_path / "media"),
        MEDIA_BASE_URL="https://test",
        COOKIE_SECURE=True,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
async def db(settings):
    database = Database(settings.DATABASE_URL)
    await init_models(database)
    yield database
    await database.dispose()


@pytest.fixture
def storage(settings):
    return FakeStorage(settings.MEDIA_DIR, settings.MEDIA_BASE_URL)


@pytest.fixture
def app(settings, db, storage):
    return create_app(settings=settings, db=db, storage=storage)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as c:
        yield c
