"""
OAuth state tokens (CSRF protection) and callback identity resolution.

The state is self-contained: ``base64url(json payload) + "." + hex HMAC``.
Nothing is stored server-side between issuing it and the callback, so the
signature and the embedded expiry are the whole check.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Optional
from urllib.parse import parse_qs, quote, urlsplit

from api.errors import InvalidState, UnresolvedIdentity
from config.settings import config


def _sign(raw: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), raw, hashlib.sha256).hexdigest()


def create_state(
    user_id: str,
    *,
    secret: Optional[str] = None,
    ttl_seconds: Optional[int] = None,
    now: Optional[float] = None,
) -> str:
    """Create an opaque state string encoding user_id + expiry."""
    secret = secret or config.oauth_state_secret
    ttl = config.oauth_state_ttl_seconds if ttl_seconds is None else ttl_seconds
    issued = time.time() if now is None else now
    payload = json.dumps({"user_id": user_id, "exp": int(issued) + ttl}, separators=(",", ":"))
    raw = payload.encode()
    return urlsafe_b64encode(raw).decode() + "." + _sign(raw, secret)


def verify_state(
    state: str,
    *,
    secret: Optional[str] = None,
    now: Optional[float] = None,
) -> str:
    """Verify state token, return user_id. Raises ``InvalidState`` on failure."""
    secret = secret or config.oauth_state_secret
    current = time.time() if now is None else now
    try:
        encoded, sig = state.split(".", 1)
        raw = urlsafe_b64decode(encoded.encode())
    except (ValueError, binascii.Error):
        raise InvalidState(detail="malformed state")

    if not hmac.compare_digest(sig.encode(), _sign(raw, secret).encode()):
        raise InvalidState(detail="bad signature")

    try:
        payload = json.loads(raw)
    except ValueError:
        raise InvalidState(detail="malformed payload")
    if not isinstance(payload, dict):
        raise InvalidState(detail="malformed payload")

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or exp < current:
        raise InvalidState(detail="state expired")

    user_id = payload.get("user_id")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidState(detail="missing user_id")
    return user_id


def resolve_callback_identity(
    state: Optional[str],
    cookie_user_id: Optional[str],
    *,
    secret: Optional[str] = None,
    now: Optional[float] = None,
) -> str:
    """
    Work out who started the handshake.

    A present state always wins and must verify; the cookie is only read
    when no state came back at all.
    """
    if state:
        return verify_state(state, secret=secret, now=now)
    if cookie_user_id:
        return cookie_user_id
    raise UnresolvedIdentity()


def ensure_state_param(url: str, state: str) -> str:
    """Append ``state`` to ``url`` when the query string does not carry one."""
    if "state" in parse_qs(urlsplit(url).query):
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}state={quote(state, safe='')}"
