"""
Send route.

Route prefix: /api
"""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_connector, get_mail_sender
from auth.dependencies import db_session, get_current_user_id
from connectors.base import BaseConnector
from mail.sender import GmailSender, send_message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mail"])


class SendEmailRequest(BaseModel):
    subject: str = ""
    body: str = ""
    recipients: List[str] = Field(default_factory=list)


@router.post("/send-email")
async def send_email(
    req: SendEmailRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
    connector: BaseConnector = Depends(get_connector),
    sender: GmailSender = Depends(get_mail_sender),
) -> Dict[str, str]:
    """Send one plain-text message to every recipient through the user's Gmail."""
    await send_message(
        session,
        user_id,
        req.subject,
        req.body,
        req.recipients,
        connector=connector,
        sender=sender,
    )
    return {"message": "Email sent successfully!"}
