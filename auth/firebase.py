"""
Firebase ID token verification.

The Firebase Admin app is initialised lazily on first use, from a service
account file when ``FIREBASE_CREDENTIALS_FILE`` is set and from
Application Default Credentials otherwise.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions

from api.errors import Unauthorized
from config.settings import config

logger = logging.getLogger(__name__)

_APP_NAME = "contact-mailer"
_init_lock = threading.Lock()


def _get_app() -> firebase_admin.App:
    with _init_lock:
        try:
            return firebase_admin.get_app(_APP_NAME)
        except ValueError:
            pass

        options = {"projectId": config.firebase_project_id} if config.firebase_project_id else None
        if config.firebase_credentials_file:
            cred = credentials.Certificate(config.firebase_credentials_file)
            logger.info("Firebase Admin initialised with service account file")
        else:
            cred = credentials.ApplicationDefault()
            logger.info("Firebase Admin initialised with application default credentials")
        return firebase_admin.initialize_app(cred, options, name=_APP_NAME)


def verify_id_token(token: str) -> Dict[str, Any]:
    """
    Verify a Firebase ID token and return its claims.

    Raises ``Unauthorized`` for malformed, expired, revoked or
    wrongly-signed tokens.
    """
    try:
        return firebase_auth.verify_id_token(token, app=_get_app())
    except (ValueError, firebase_exceptions.FirebaseError) as exc:
        logger.info("Rejected identity token: %s", exc)
        raise Unauthorized(detail="Invalid or expired identity token")


def user_id_from_claims(claims: Dict[str, Any]) -> str:
    """Firebase puts the uid in ``uid`` (Admin SDK) and ``sub`` (raw JWT)."""
    user_id = claims.get("uid") or claims.get("sub") or claims.get("user_id")
    if not user_id:
        raise Unauthorized(detail="Identity token carries no user id")
    return str(user_id)
