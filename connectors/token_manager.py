"""
Token manager — hand out a usable Google access token for a user.

Refresh happens on demand, right before a send, never on a timer. A failed
refresh is reported as "reconnect required" and is not retried.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import CredentialInvalid, NotConnected
from config.settings import config
from connectors.base import BaseConnector
from connectors.credential_store import load_bundle, save_bundle
from connectors.credentials import CredentialBundle

logger = logging.getLogger(__name__)


async def ensure_fresh_credential(
    session: AsyncSession,
    user_id: str,
    connector: BaseConnector,
    *,
    skew_seconds: Optional[int] = None,
) -> CredentialBundle:
    """
    Return a bundle whose access token is valid right now.

    1. Load the stored bundle (``NotConnected`` if there is none).
    2. If the access token is missing or about to expire, refresh it with
       the stored refresh token and persist the result.
    3. Without a refresh token, or when Google refuses the refresh, raise
       ``CredentialInvalid``.
    """
    bundle = await load_bundle(session, user_id)
    if bundle is None:
        raise NotConnected()

    skew = config.token_refresh_skew_seconds if skew_seconds is None else skew_seconds
    if not bundle.is_expired(skew_seconds=skew):
        return bundle

    if not bundle.refresh_token:
        logger.info("Access token expired for user %s and no refresh token is stored", user_id)
        raise CredentialInvalid(detail="access token expired and no refresh token is stored")

    try:
        refreshed = await connector.refresh(bundle)
    except CredentialInvalid as exc:
        logger.warning("Token refresh failed for user %s: %s", user_id, exc)
        raise

    await save_bundle(session, user_id, refreshed)
    logger.info("Refreshed %s token for user %s", connector.provider_name, user_id)
    return refreshed
