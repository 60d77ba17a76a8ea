"""
Plain-text RFC 2822 message construction for the Gmail ``raw`` field.
"""

from __future__ import annotations

import base64
from typing import Sequence

from api.errors import InvalidRequest

CRLF = "\r\n"


def validate_send_request(subject: str, body: str, recipients: Sequence[str]) -> None:
    """Reject empty subject, body or recipient list before anything else runs."""
    if not subject or not body or not recipients:
        raise InvalidRequest("Subject, body, and recipients are required.")
    if any(not isinstance(r, str) or not r.strip() for r in recipients):
        raise InvalidRequest("Subject, body, and recipients are required.", detail="blank recipient address")
    # a line break in a header value would start a new header
    if any("\r" in value or "\n" in value for value in [subject, *recipients]):
        raise InvalidRequest("Subject and recipients must be single-line values.")


def format_recipients(recipients: Sequence[str]) -> str:
    """``["a@x.com", "b@y.com"]`` → ``"<a@x.com>, <b@y.com>"`` (order kept)."""
    return ", ".join(f"<{address.strip()}>" for address in recipients)


def build_message(subject: str, body: str, recipients: Sequence[str]) -> str:
    """Header block, blank separator line, then the body verbatim."""
    return CRLF.join(
        [
            f"To: {format_recipients(recipients)}",
            f"Subject: {subject}",
            "MIME-Version: 1.0",
            "Content-Type: text/plain; charset=UTF-8",
            "",
            body,
        ]
    )


def encode_message(message: str) -> str:
    """URL-safe base64 (``+`` → ``-``, ``/`` → ``_``); padding is kept."""
    return base64.urlsafe_b64encode(message.encode("utf-8")).decode("ascii")
