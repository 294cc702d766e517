import math
from typing import Any, Callable, Sequence

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


class Page(BaseModel):
    docs: list[Any]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: int | None = None
    next_page: int | None = None


async def paginate(
    db: AsyncSession,
    stmt: Select,
    page: int = 1,
    limit: int = 10,
    transform: Callable[[Sequence[Any]], list[Any]] | None = None,
) -> Page:
    """
    Cuenta el total de `stmt` y devuelve solo la rebanada de `page`.
    `transform` recibe las filas crudas (res.all()) y las convierte en docs.
    """
    page = max(1, page)
    limit = max(1, limit)

    count_q = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int((await db.execute(count_q)).scalar_one() or 0)

    res = await db.execute(stmt.limit(limit).offset((page - 1) * limit))
    rows = res.all()
    docs = transform(rows) if transform else [r[0] for r in rows]

    total_pages = math.ceil(total / limit) if total else 0
    return Page(
        docs=docs,
        total_docs=total,
        limit=limit,
        page=page,
        total_pages=total_pages,
        has_prev_page=page > 1,
        has_next_page=page < total_pages,
        prev_page=page - 1 if page > 1 else None,
        next_page=page + 1 if page < total_pages else None,
    )
