"""
User profile routes — read / update profile, disconnect Google.

Route prefix: /api
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_connector
from api.errors import NotFound
from auth.dependencies import db_session, get_current_user_id
from connectors.base import BaseConnector
from connectors.credential_store import clear_bundle
from database.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def profile_dict(user: User) -> Dict[str, Any]:
    """Public view of a user. The credential blob is reduced to a flag."""
    return {
        "id": user.user_id,
        "name": user.name,
        "email": user.email,
        "photoURL": user.photo_url,
        "isVerified": bool(user.is_verified),
        "createdAt": _iso(user.created_at),
        "lastLogin": _iso(user.last_login),
        "isGoogleConnected": bool(user.google_tokens),
    }


@router.get("/user/profile")
async def get_profile(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return profile_dict(user)


@router.put("/user/profile")
async def update_profile(
    req: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, str]:
    """Partial update; empty values are ignored. Passwords live in Firebase."""
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")

    if req.name:
        user.name = req.name
    if req.email:
        user.email = req.email
    await session.commit()
    return {"message": "Profile updated successfully!"}


@router.delete("/user/profile/google-connection")
async def disconnect_google(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
    connector: BaseConnector = Depends(get_connector),
) -> Dict[str, str]:
    """Forget the stored Google credentials and revoke them at Google."""
    previous = await clear_bundle(session, user_id)
    await session.commit()

    token = previous and (previous.refresh_token or previous.access_token)
    if token:
        revoked = await connector.revoke(token)
        if not revoked:
            logger.warning("Google did not confirm revocation for user %s", user_id)

    return {"message": "Google account disconnected successfully."}
