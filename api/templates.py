"""
Email template routes.

Route prefix: /api
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import NotFound
from auth.dependencies import db_session, get_current_user_id
from database.helpers import ensure_user_exists, get_owned
from database.models import Template

router = APIRouter(tags=["templates"])


class TemplateRequest(BaseModel):
    name: Optional[str] = None
    content: Optional[str] = None


def _template_dict(template: Template) -> Dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "content": template.content,
        "userId": template.user_id,
        "createdAt": template.created_at.isoformat() if template.created_at else None,
    }


@router.get("/templates")
async def list_templates(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(Template).where(Template.user_id == user_id).order_by(Template.created_at)
    )
    return [_template_dict(t) for t in result.scalars().all()]


@router.post("/templates")
async def create_template(
    req: TemplateRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    await ensure_user_exists(session, user_id)
    template = Template(user_id=user_id, name=req.name, content=req.content)
    session.add(template)
    await session.commit()
    return {"id": template.id, "name": template.name, "content": template.content}


@router.put("/templates/{template_id}")
async def update_template(
    template_id: str,
    req: TemplateRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    template = await get_owned(session, Template, template_id, user_id)
    if template is None:
        raise NotFound("Template not found or unauthorized")

    template.name = req.name
    template.content = req.content
    await session.commit()
    return {"id": template.id, "name": template.name, "content": template.content}


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, str]:
    template = await get_owned(session, Template, template_id, user_id)
    if template is None:
        raise NotFound("Template not found or unauthorized")

    await session.delete(template)
    await session.commit()
    return {"message": "Template deleted successfully"}
