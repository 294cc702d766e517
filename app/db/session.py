from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession


def _connect_args(db_url: str) -> dict:
    # Timeouts cortos: si la DB no responde → falla rápido (5s)
    if db_url.startswith("postgresql+psycopg"):
        # psycopg (async) usa 'connect_timeout' en segundos
        return {"connect_timeout": 5}
    if db_url.startswith("postgresql+asyncpg"):
        # asyncpg usa 'timeout' (segundos) y podemos fijar UTF-8 en la sesión
        return {
            "timeout": 5,
            "server_settings": {"client_encoding": "UTF8"},  # 👈 fuerza UTF-8
        }
    return {}


class Database:
    """
    Handle de persistencia: dueño del engine y de la fábrica de sesiones.
    Se construye en create_app y vive en app.state.db (nada de singletons
    a nivel de módulo, así los tests montan el suyo).
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        options: dict = {"echo": echo, "connect_args": _connect_args(url)}
        if url.startswith("sqlite"):
            self.is_sqlite = True
        else:
            self.is_sqlite = False
            options.update(
                pool_pre_ping=True,
                pool_recycle=300,
                pool_size=5,
                max_overflow=10,
            )
        self.engine = create_async_engine(url, **options)

        if self.is_sqlite:
            # SQLite no aplica ON DELETE CASCADE sin esto
            @event.listens_for(self.engine.sync_engine, "connect")
            def _fk_pragma(dbapi_conn, _record):
                cur = dbapi_conn.cursor()
                cur.execute("PRAGMA foreign_keys=ON")
                cur.close()

        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.sessionmaker() as session:
            try:
                yield session
            finally:
                await session.close()

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    db: Database = request.app.state.db
    async for session in db.session():
        yield session
