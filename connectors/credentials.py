"""
CredentialBundle — the delegated Google credential stored per user.

Serialized as JSON (then encrypted, see ``connectors.encryption``) into
``users.google_tokens``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CredentialBundle:
    access_token: Optional[str]
    refresh_token: Optional[str]
    expires_at: Optional[datetime] = None
    scope: str = ""
    token_type: str = "Bearer"

    @classmethod
    def from_token_response(
        cls,
        data: Dict[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> "CredentialBundle":
        """Build a bundle from an OAuth2 token endpoint response."""
        now = now or datetime.now(timezone.utc)
        expires_in = data.get("expires_in")
        return cls(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            expires_at=now + timedelta(seconds=int(expires_in)) if expires_in is not None else None,
            scope=data.get("scope", ""),
            token_type=data.get("token_type", "Bearer"),
        )

    def is_expired(self, *, skew_seconds: int = 0, now: Optional[datetime] = None) -> bool:
        """True if there is no usable access token within ``skew_seconds``."""
        if not self.access_token:
            return True
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now + timedelta(seconds=skew_seconds)

    def refreshed(self, data: Dict[str, Any], *, now: Optional[datetime] = None) -> "CredentialBundle":
        """
        Apply a refresh-grant response. The refresh token is kept unless
        the provider rotates it.
        """
        fresh = CredentialBundle.from_token_response(data, now=now)
        return replace(
            self,
            access_token=fresh.access_token,
            expires_at=fresh.expires_at,
            refresh_token=fresh.refresh_token or self.refresh_token,
            scope=fresh.scope or self.scope,
            token_type=fresh.token_type,
        )

    def to_json(self) -> str:
        return json.dumps(
            {
                "access_token": self.access_token,
                "refresh_token": self.refresh_token,
                "expires_at": self.expires_at.isoformat() if self.expires_at else None,
                "scope": self.scope,
                "token_type": self.token_type,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "CredentialBundle":
        data = json.loads(raw)
        expires_at = data.get("expires_at")
        parsed = datetime.fromisoformat(expires_at) if expires_at else None
        if parsed is not None and parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return cls(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            expires_at=parsed,
            scope=data.get("scope", ""),
            token_type=data.get("token_type", "Bearer"),
        )
