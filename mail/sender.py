"""
Gmail send gateway.

Architecture:
  • ``send_message()`` validates the request, gets a fresh token through
    ``connectors.token_manager.ensure_fresh_credential()`` and builds the
    raw RFC 2822 message.
  • ``GmailSender`` builds a brand-new ``googleapiclient`` service from a
    per-call ``Credentials`` object, so no credential is ever shared between
    concurrent requests.
  • The sync ``googleapiclient`` call is offloaded to a thread via
    ``asyncio.to_thread()`` so it never blocks the event loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Sequence

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import CredentialInvalid, SendFailed
from connectors.base import BaseConnector
from connectors.token_manager import ensure_fresh_credential
from mail.message import build_message, encode_message, validate_send_request

logger = logging.getLogger(__name__)


def _http_error_detail(exc: HttpError) -> str:
    try:
        payload = json.loads(exc.content.decode("utf-8", errors="replace"))
        return payload["error"]["message"]
    except (ValueError, KeyError, TypeError, AttributeError):
        return str(exc)


class GmailSender:
    """Dispatches one raw message through ``users.messages.send``."""

    def _service(self, access_token: str) -> Any:
        creds = Credentials(token=access_token)
        return build("gmail", "v1", credentials=creds, cache_discovery=False)

    def _send_sync(self, access_token: str, raw: str) -> Dict[str, Any]:
        service = self._service(access_token)
        return service.users().messages().send(userId="me", body={"raw": raw}).execute()

    async def send(self, access_token: str, raw: str) -> Dict[str, Any]:
        """
        Send ``raw`` as the token's owner.

        Raises
        ------
        SendFailed
            Gmail rejected the message or could not be reached.
        """
        try:
            return await asyncio.to_thread(self._send_sync, access_token, raw)
        except HttpError as exc:
            raise SendFailed(detail=_http_error_detail(exc))
        except RefreshError as exc:
            # Gmail answered 401 and there is nothing to refresh with
            raise CredentialInvalid(detail=str(exc))
        except (httplib2.HttpLib2Error, TransportError, OSError) as exc:
            # httplib2 reports DNS / connection failures with its own classes
            raise SendFailed(detail=f"Gmail unreachable: {exc}")


async def send_message(
    session: AsyncSession,
    user_id: str,
    subject: str,
    body: str,
    recipients: Sequence[str],
    *,
    connector: BaseConnector,
    sender: GmailSender,
) -> None:
    """Validate, refresh-if-needed, build, encode and send. One provider call at most."""
    validate_send_request(subject, body, recipients)

    bundle = await ensure_fresh_credential(session, user_id, connector)
    # keep a refreshed token even if the send below fails
    await session.commit()
    raw = encode_message(build_message(subject, body, recipients))

    sent = await sender.send(bundle.access_token or "", raw)
    logger.info(
        "send_email → user=%s recipients=%d message_id=%s",
        user_id,
        len(recipients),
        sent.get("id") if isinstance(sent, dict) else None,
    )
