"""
INSERTs condicionales que dependen del dialecto (PostgreSQL / SQLite).

Ambos soportan ON CONFLICT sobre una restricción única, que es lo que
hace atómicos los toggles (likes, suscripciones) y el upsert del
historial de reproducción.
"""
from typing import Any, Iterable

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def _insert_for(db: AsyncSession, model):
    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"dialecto no soportado para ON CONFLICT: {name}")


async def insert_ignore(
    db: AsyncSession,
    model,
    values: dict[str, Any],
    index_elements: Iterable[str],
) -> bool:
    """
    INSERT ... ON CONFLICT DO NOTHING.
    Devuelve True si se insertó una fila nueva.
    """
    stmt = (
        _insert_for(db, model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(index_elements))
    )
    res = await db.execute(stmt)
    return (res.rowcount or 0) > 0


async def upsert(
    db: AsyncSession,
    model,
    values: dict[str, Any],
    index_elements: Iterable[str],
    update: dict[str, Any],
) -> None:
    """INSERT ... ON CONFLICT (index_elements) DO UPDATE SET update."""
    stmt = (
        _insert_for(db, model)
        .values(**values)
        .on_conflict_do_update(index_elements=list(index_elements), set_=update)
    )
    await db.execute(stmt)
