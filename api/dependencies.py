"""
FastAPI dependencies (shared across routes).

Provider clients are constructed per request from the settings object so
that no credential state outlives the request that installed it.
"""

from __future__ import annotations

from config.settings import config
from connectors.base import BaseConnector
from connectors.gmail import GmailConnector
from mail.sender import GmailSender


def get_connector() -> BaseConnector:
    """A fresh Gmail OAuth connector for this request."""
    return GmailConnector(config)


def get_mail_sender() -> GmailSender:
    """A fresh Gmail send gateway for this request."""
    return GmailSender()
