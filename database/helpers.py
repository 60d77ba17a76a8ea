"""
Database helper functions — ensure parent records exist and look up owned rows.

"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import User

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def _insert_for(session: AsyncSession):
    """Dialect-specific INSERT that supports ON CONFLICT."""
    if session.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def ensure_user_exists(session: AsyncSession, user_id: str) -> None:
    """Create a ``User`` row if one does not already exist (idempotent)."""
    insert = _insert_for(session)
    stmt = (
        insert(User)
        .values(user_id=user_id, is_verified=False, created_at=datetime.now(timezone.utc))
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    await session.execute(stmt)
    await session.flush()


async def upsert_user_profile(
    session: AsyncSession,
    user_id: str,
    fields: Dict[str, Any],
) -> User:
    """
    Create or merge-update the profile row for ``user_id``.

    ``None`` values are written as NULL; keys absent from ``fields`` are
    left untouched.
    """
    await ensure_user_exists(session, user_id)
    result = await session.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one()
    for key, value in fields.items():
        setattr(user, key, value)
    await session.flush()
    return user


async def get_owned(
    session: AsyncSession,
    model: Type[ModelT],
    row_id: str,
    user_id: str,
) -> Optional[ModelT]:
    """Return ``model`` row ``row_id`` only if it belongs to ``user_id``."""
    result = await session.execute(
        select(model).where(model.id == row_id, model.user_id == user_id)  # type: ignore[attr-defined]
    )
    return result.scalar_one_or_none()
