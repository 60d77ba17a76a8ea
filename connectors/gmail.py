"""
GmailConnector — OAuth2 web flow for sending mail as the user.

Requests only the ``gmail.send`` scope with offline access, and forces the
consent screen so Google always reissues a refresh token.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlencode

import httpx

from api.errors import CredentialInvalid, ExchangeFailed
from config.settings import Settings
from connectors.base import BaseConnector
from connectors.credentials import CredentialBundle

logger = logging.getLogger(__name__)

# Google OAuth2 endpoints
_GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"


def _error_detail(resp: httpx.Response) -> str:
    """Pull Google's ``error`` / ``error_description`` out of a token response."""
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    if isinstance(data, dict) and data.get("error"):
        desc = data.get("error_description")
        return f"{data['error']}: {desc}" if desc else str(data["error"])
    return f"HTTP {resp.status_code}"


class GmailConnector(BaseConnector):
    """OAuth2 connector for Gmail."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "gmail"

    @property
    def scopes(self) -> List[str]:
        return list(self._settings.gmail_scopes)

    def is_configured(self) -> bool:
        return self._settings.is_google_configured()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport)

    def get_auth_url(self, state: str) -> str:
        params = {
            "client_id": self._settings.google_client_id,
            "redirect_uri": self._settings.google_redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",       # gets refresh_token
            "prompt": "consent",            # force consent to always get refresh_token
            "state": state,
        }
        return f"{_GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> CredentialBundle:
        """Exchange auth code for tokens. Single-use code, so never retried."""
        try:
            async with self._client() as client:
                resp = await client.post(
                    _GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self._settings.google_client_id,
                        "client_secret": self._settings.google_client_secret,
                        "redirect_uri": self._settings.google_redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
        except httpx.HTTPError as exc:
            raise ExchangeFailed(detail=f"token endpoint unreachable: {exc}")

        if resp.status_code != 200:
            raise ExchangeFailed(detail=_error_detail(resp))

        try:
            bundle = CredentialBundle.from_token_response(resp.json())
        except (ValueError, TypeError, AttributeError) as exc:
            raise ExchangeFailed(detail=f"unreadable token response: {exc}")
        if not bundle.access_token:
            raise ExchangeFailed(detail="token response carried no access_token")
        if not bundle.refresh_token:
            logger.warning("Google returned no refresh_token; sends will stop working once the access token expires")
        return bundle

    async def refresh(self, bundle: CredentialBundle) -> CredentialBundle:
        """Use refresh token to get a new access token."""
        if not bundle.refresh_token:
            raise CredentialInvalid(detail="no refresh token stored")
        try:
            async with self._client() as client:
                resp = await client.post(
                    _GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self._settings.google_client_id,
                        "client_secret": self._settings.google_client_secret,
                        "refresh_token": bundle.refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
        except httpx.HTTPError as exc:
            raise CredentialInvalid(detail=f"token endpoint unreachable: {exc}")

        if resp.status_code != 200:
            raise CredentialInvalid(detail=_error_detail(resp))

        try:
            data = resp.json()
            fresh = bundle.refreshed(data)
        except (ValueError, TypeError, AttributeError) as exc:
            raise CredentialInvalid(detail=f"unreadable refresh response: {exc}")
        if not data.get("access_token"):
            raise CredentialInvalid(detail="refresh response carried no access_token")
        return fresh

    async def revoke(self, token: str) -> bool:
        """Revoke the token at Google."""
        try:
            async with self._client() as client:
                resp = await client.post(_GOOGLE_REVOKE_URL, params={"token": token})
        except httpx.HTTPError as exc:
            logger.warning("Google token revocation failed: %s", exc)
            return False
        return resp.status_code == 200
