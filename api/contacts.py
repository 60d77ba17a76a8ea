"""
Contact routes. Every read and write is scoped to the caller.

Route prefix: /api
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import NotFound
from auth.dependencies import db_session, get_current_user_id
from database.helpers import ensure_user_exists, get_owned
from database.models import Contact, GroupContact

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contacts"])


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


def contact_dict(contact: Contact) -> Dict[str, Any]:
    return {
        "id": contact.id,
        "name": contact.name,
        "email": contact.email,
        "userId": contact.user_id,
        "createdAt": contact.created_at.isoformat() if contact.created_at else None,
    }


@router.post("/contacts", status_code=status.HTTP_201_CREATED)
async def add_contact(
    req: ContactRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    await ensure_user_exists(session, user_id)
    contact = Contact(user_id=user_id, name=req.name, email=req.email)
    session.add(contact)
    await session.commit()
    return {"id": contact.id, "name": contact.name, "email": contact.email}


@router.get("/contacts")
async def list_contacts(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> List[Dict[str, Any]]:
    logger.debug("Fetching contacts for user %s", user_id)
    result = await session.execute(
        select(Contact).where(Contact.user_id == user_id).order_by(Contact.created_at)
    )
    return [contact_dict(c) for c in result.scalars().all()]


@router.post("/update-contact/{contact_id}")
async def update_contact(
    contact_id: str,
    req: ContactRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    contact = await get_owned(session, Contact, contact_id, user_id)
    if contact is None:
        raise NotFound("Contact not found or unauthorized")

    contact.name = req.name
    contact.email = req.email
    await session.commit()
    return {
        "message": "Contact updated successfully",
        "id": contact.id,
        "name": contact.name,
        "email": contact.email,
    }


@router.delete("/contacts/{contact_id}")
async def delete_contact(
    contact_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, str]:
    contact = await get_owned(session, Contact, contact_id, user_id)
    if contact is None:
        raise NotFound("Contact not found or unauthorized")

    await session.execute(delete(GroupContact).where(GroupContact.contact_id == contact.id))
    await session.delete(contact)
    await session.commit()
    return {"message": "Contact deleted successfully"}
