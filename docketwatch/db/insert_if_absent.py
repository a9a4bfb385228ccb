"""Insert-If-Absent — dialect-aware INSERT ... ON CONFLICT DO NOTHING RETURNING.

Invariants:
    - Returns the new row's id, or None when the unique key already existed
    - Never raises IntegrityError for the conflict target (no session rollback, no expired objects)

Design Decisions:
    - Dialect chosen from the session's bind: PostgreSQL in production, SQLite in tests;
      both support ON CONFLICT (index_elements) DO NOTHING with RETURNING
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.db.base import Base


async def insert_if_absent(
    db: AsyncSession,
    model: type[Base],
    values: dict[str, Any],
    conflict_columns: tuple[str, ...],
) -> Any | None:
    dialect = db.get_bind().dialect.name
    insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
    stmt = (
        insert(model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(conflict_columns))
        .returning(model.id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
