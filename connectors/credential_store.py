"""
Credential store — load / save / clear the per-user delegated bundle.

The bundle lives in ``users.google_tokens`` as one opaque blob, so every
write replaces the whole bundle. Concurrent writers for the same user end
with the last write; there is no merge.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from connectors.credentials import CredentialBundle
from connectors.encryption import decrypt_blob, encrypt_blob
from database.helpers import ensure_user_exists
from database.models import User

logger = logging.getLogger(__name__)


async def load_bundle(session: AsyncSession, user_id: str) -> Optional[CredentialBundle]:
    """Return the stored bundle, or None when the user never connected."""
    user = await session.get(User, user_id)
    if user is None or not user.google_tokens:
        return None
    try:
        return CredentialBundle.from_json(decrypt_blob(user.google_tokens))
    except ValueError as exc:
        logger.warning("Unreadable credential blob for user %s: %s", user_id, exc)
        return None


async def save_bundle(session: AsyncSession, user_id: str, bundle: CredentialBundle) -> None:
    """Persist ``bundle`` for ``user_id``, overwriting any previous one."""
    await ensure_user_exists(session, user_id)
    await session.execute(
        update(User)
        .where(User.user_id == user_id)
        .values(google_tokens=encrypt_blob(bundle.to_json()))
        .execution_options(synchronize_session="fetch")
    )
    await session.flush()
    logger.info("Stored Google credentials for user %s", user_id)


async def clear_bundle(session: AsyncSession, user_id: str) -> Optional[CredentialBundle]:
    """Remove the bundle. Returns what was stored, if anything."""
    previous = await load_bundle(session, user_id)
    await session.execute(
        update(User)
        .where(User.user_id == user_id)
        .values(google_tokens=None)
        .execution_options(synchronize_session="fetch")
    )
    await session.flush()
    if previous is not None:
        logger.info("Cleared Google credentials for user %s", user_id)
    return previous
