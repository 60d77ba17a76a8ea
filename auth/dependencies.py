"""
FastAPI dependencies for authentication.

Provides ``db_session`` and ``get_current_user_id`` dependencies that
are used across all protected routes.
"""

from __future__ import annotations

import asyncio
from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Unauthorized
from auth.firebase import user_id_from_claims, verify_id_token
from database.session import get_db_session

# auto_error=False so a missing header is answered by our own 401 body
_bearer_scheme = HTTPBearer(auto_error=False)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> str:
    """
    Extract and verify the Bearer Firebase ID token, returning the
    authenticated Firebase ``uid``.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized(detail="Missing Bearer token")
    # certificate fetch + RSA check are blocking
    claims = await asyncio.to_thread(verify_id_token, credentials.credentials)
    return user_id_from_claims(claims)
