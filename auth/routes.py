"""
Profile sync routes — called by the frontend right after a Firebase sign-in.

Route prefix: /api
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user_id
from database.helpers import upsert_user_profile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request schemas ────────────────────────────────────────────────────


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class GoogleLoginRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")

    model_config = {"populate_by_name": True}


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    req: SignupRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Create (or merge into) the profile of a freshly signed-up user."""
    await upsert_user_profile(
        session,
        user_id,
        {
            "name": req.name or None,
            "email": req.email or None,
            "created_at": datetime.now(timezone.utc),
            "is_verified": False,
        },
    )
    await session.commit()
    logger.info("Signup profile stored for %s", user_id)
    return {"message": "User profile created successfully."}


@router.post("/google-login")
async def google_login(
    req: GoogleLoginRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Sync the profile of a user who signed in with Google."""
    await upsert_user_profile(
        session,
        user_id,
        {
            "name": req.name or None,
            "email": req.email or None,
            "photo_url": req.photo_url or None,
            "last_login": datetime.now(timezone.utc),
            "is_verified": True,
        },
    )
    await session.commit()
    logger.info("Google login synced for %s", user_id)
    return {"message": "User logged in with Google successfully."}
