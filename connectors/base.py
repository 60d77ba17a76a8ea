"""
BaseConnector — abstract interface for the delegated-credential provider.

The Gmail connector implements it; tests substitute a fake. A connector is
built per request from an explicit settings object and never holds
user credentials between calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from connectors.credentials import CredentialBundle


class BaseConnector(ABC):
    """Abstract base for OAuth2 connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug, e.g. 'gmail'."""
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes required by this connector."""
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_auth_url(self, state: str) -> str:
        """
        Build the provider's OAuth2 authorization URL.

        Parameters
        ----------
        state : str
            Signed state string (encodes user_id + expiry).

        Returns
        -------
        The full URL to redirect the user to.
        """
        ...

    @abstractmethod
    async def exchange_code(self, code: str) -> CredentialBundle:
        """
        Exchange the authorization code for a credential bundle.

        Raises
        ------
        ExchangeFailed
            Provider rejected the code or could not be reached.
        """
        ...

    @abstractmethod
    async def refresh(self, bundle: CredentialBundle) -> CredentialBundle:
        """
        Obtain a new access token using ``bundle.refresh_token``.

        Raises
        ------
        CredentialInvalid
            Refresh token revoked / provider error.
        """
        ...

    async def revoke(self, token: str) -> bool:
        """
        Revoke the token at the provider (optional).
        Returns True on success, False if unsupported or refused.
        """
        return False

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """Return True if client id / secret are present."""
        return True
