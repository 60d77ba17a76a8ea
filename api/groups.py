"""
Contact group routes. Groups and their members must both belong to the caller.

Route prefix: /api
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.contacts import contact_dict
from api.errors import InvalidRequest, NotFound
from auth.dependencies import db_session, get_current_user_id
from database.helpers import ensure_user_exists, get_owned
from database.models import Contact, Group, GroupContact

logger = logging.getLogger(__name__)

router = APIRouter(tags=["groups"])


# ── Request schemas ────────────────────────────────────────────────────


class GroupRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    contact_ids: Optional[List[str]] = Field(None, alias="contactIds")

    model_config = {"populate_by_name": True}


class GroupMembersRequest(BaseModel):
    contact_ids: Optional[List[str]] = Field(None, alias="contactIds")

    model_config = {"populate_by_name": True}


# ── Helpers ────────────────────────────────────────────────────────────


async def _owned_group(session: AsyncSession, group_id: str, user_id: str) -> Group:
    group = await get_owned(session, Group, group_id, user_id)
    if group is None:
        raise NotFound("Group not found or unauthorized")
    return group


async def _member_ids(session: AsyncSession, group_id: str) -> List[str]:
    result = await session.execute(
        select(GroupContact.contact_id).where(GroupContact.group_id == group_id)
    )
    return list(result.scalars().all())


async def _group_contacts(session: AsyncSession, group_id: str, user_id: str) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(Contact)
        .join(GroupContact, GroupContact.contact_id == Contact.id)
        .where(GroupContact.group_id == group_id, Contact.user_id == user_id)
        .order_by(GroupContact.added_at)
    )
    return [contact_dict(c) for c in result.scalars().all()]


async def _check_contacts_owned(session: AsyncSession, contact_ids: Sequence[str], user_id: str) -> None:
    wanted = set(contact_ids)
    if not wanted:
        return
    result = await session.execute(
        select(Contact.id).where(Contact.id.in_(wanted), Contact.user_id == user_id)
    )
    missing = wanted - set(result.scalars().all())
    if missing:
        raise NotFound("Contact not found or unauthorized", detail=", ".join(sorted(missing)))


async def _add_members(session: AsyncSession, group_id: str, contact_ids: Sequence[str]) -> None:
    present = set(await _member_ids(session, group_id))
    for contact_id in dict.fromkeys(contact_ids):
        if contact_id not in present:
            session.add(GroupContact(group_id=group_id, contact_id=contact_id))


async def _remove_members(session: AsyncSession, group_id: str, contact_ids: Sequence[str]) -> None:
    if not contact_ids:
        return
    await session.execute(
        delete(GroupContact).where(
            GroupContact.group_id == group_id,
            GroupContact.contact_id.in_(list(contact_ids)),
        )
    )


def _group_dict(group: Group, contacts: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "userId": group.user_id,
        "createdAt": group.created_at.isoformat() if group.created_at else None,
        "contacts": contacts,
    }


def _require_contact_ids(contact_ids: Optional[List[str]], message: str) -> List[str]:
    if not contact_ids:
        raise InvalidRequest(message)
    return contact_ids


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/groups", status_code=status.HTTP_201_CREATED)
async def create_group(
    req: GroupRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    if not req.name:
        raise InvalidRequest("Group name is required")

    await ensure_user_exists(session, user_id)
    group = Group(user_id=user_id, name=req.name, description=req.description)
    session.add(group)
    await session.commit()
    return {"id": group.id, "name": group.name, "description": group.description}


@router.get("/groups")
async def list_groups(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(Group).where(Group.user_id == user_id).order_by(Group.created_at)
    )
    groups = []
    for group in result.scalars().all():
        groups.append(_group_dict(group, await _group_contacts(session, group.id, user_id)))
    return groups


@router.get("/groups/{group_id}")
async def get_group(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    group = await _owned_group(session, group_id, user_id)
    return _group_dict(group, await _group_contacts(session, group.id, user_id))


@router.put("/groups/{group_id}")
async def update_group(
    group_id: str,
    req: GroupRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, str]:
    """Rename / describe a group; when ``contactIds`` is sent, sync membership to it."""
    if not req.name:
        raise InvalidRequest("Group name is required")

    group = await _owned_group(session, group_id, user_id)
    group.name = req.name
    group.description = req.description

    if req.contact_ids is not None:
        await _check_contacts_owned(session, req.contact_ids, user_id)
        current = set(await _member_ids(session, group.id))
        target = set(req.contact_ids)
        await _remove_members(session, group.id, sorted(current - target))
        await _add_members(session, group.id, [c for c in req.contact_ids if c not in current])

    await session.commit()
    return {"message": "Group updated successfully"}


@router.delete("/groups/{group_id}")
async def delete_group(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, str]:
    group = await _owned_group(session, group_id, user_id)
    await session.execute(delete(GroupContact).where(GroupContact.group_id == group.id))
    await session.delete(group)
    await session.commit()
    return {"message": "Group deleted successfully"}


@router.post("/groups/{group_id}/contacts")
async def add_group_contacts(
    group_id: str,
    req: GroupMembersRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, str]:
    contact_ids = _require_contact_ids(req.contact_ids, "Invalid or empty contact list")
    group = await _owned_group(session, group_id, user_id)
    await _check_contacts_owned(session, contact_ids, user_id)
    await _add_members(session, group.id, contact_ids)
    await session.commit()
    return {"message": "Contacts added successfully"}


@router.delete("/groups/{group_id}/contacts")
async def remove_group_contacts(
    group_id: str,
    req: GroupMembersRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, str]:
    contact_ids = _require_contact_ids(req.contact_ids, "Invalid or empty contact list to remove")
    group = await _owned_group(session, group_id, user_id)
    await _remove_members(session, group.id, contact_ids)
    await session.commit()
    return {"message": "Contacts removed successfully"}


@router.get("/groups/{group_id}/contacts")
async def list_group_contacts(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> List[Dict[str, Any]]:
    group = await _owned_group(session, group_id, user_id)
    return await _group_contacts(session, group.id, user_id)
