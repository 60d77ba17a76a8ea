"""
Google connection routes — consent URL, OAuth callback.

Route prefix: /api
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_connector
from api.errors import MissingCode
from auth.dependencies import db_session, get_current_user_id
from config.settings import config
from connectors.base import BaseConnector
from connectors.credential_store import save_bundle
from connectors.state import create_state, ensure_state_param, resolve_callback_identity

logger = logging.getLogger(__name__)

router = APIRouter(tags=["google-connection"])

_NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
}


def _set_fallback_cookie(response: Response, user_id: str) -> None:
    response.set_cookie(
        key=config.oauth_cookie_name,
        value=user_id,
        max_age=config.oauth_cookie_max_age_seconds,
        httponly=True,
        secure=True,
        samesite="none",
    )


def _clear_fallback_cookie(response: Response) -> None:
    response.delete_cookie(
        key=config.oauth_cookie_name,
        httponly=True,
        secure=True,
        samesite="none",
    )


@router.get("/auth/google/init")
async def init_google_auth(
    response: Response,
    user_id: str = Depends(get_current_user_id),
    connector: BaseConnector = Depends(get_connector),
) -> Dict[str, Any]:
    """
    Start the Google consent flow.

    Returns the consent URL for the frontend to redirect to. The URL is
    single-use, so the response must never be served from a cache.
    """
    response.headers.update(_NO_STORE_HEADERS)

    state = create_state(user_id)
    _set_fallback_cookie(response, user_id)

    auth_url = connector.get_auth_url(state)
    checked_url = ensure_state_param(auth_url, state)
    if checked_url != auth_url:
        logger.error("Consent URL was built without a state parameter; appended it")

    logger.info("Issued Google consent URL for user %s", user_id)
    return {"authUrl": checked_url, "timestamp": int(time.time() * 1000)}


@router.get("/auth/google/callback")
async def google_auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    session: AsyncSession = Depends(db_session),
    connector: BaseConnector = Depends(get_connector),
) -> RedirectResponse:
    """
    OAuth callback — Google redirects the browser here after consent.

    Resolves the user from the signed state (or the fallback cookie when no
    state came back), exchanges the code, stores the credentials and sends
    the browser to the frontend.
    """
    if not code:
        raise MissingCode()

    cookie_user_id = request.cookies.get(config.oauth_cookie_name)
    user_id = resolve_callback_identity(state, cookie_user_id)
    logger.info(
        "Google callback for user %s (resolved via %s)",
        user_id,
        "state" if state else "cookie",
    )

    bundle = await connector.exchange_code(code)
    await save_bundle(session, user_id, bundle)
    await session.commit()

    redirect = RedirectResponse(url=config.post_auth_redirect_url, status_code=302)
    _clear_fallback_cookie(redirect)
    logger.info("Google account connected for user %s", user_id)
    return redirect
