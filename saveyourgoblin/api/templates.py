"""
Scenario template API endpoints.

A template is a named scenario for one content type that the user can
reuse as generator input. Listed most recently updated first.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from saveyourgoblin.db import DatabaseManager
from saveyourgoblin.schemas import CONTENT_KINDS
from saveyourgoblin.utils.logger import get_logger

from .deps import get_current_user, get_db

logger = get_logger(__name__)

router = APIRouter()

EDITABLE_FIELDS = ("name", "description", "type", "scenario", "is_favorite")


def _text(payload: Dict[str, Any], field: str) -> Optional[str]:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def _template_updates(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a PATCH body; unknown fields are ignored."""
    updates: Dict[str, Any] = {}
    for field in EDITABLE_FIELDS:
        if field not in payload:
            continue
        value = payload[field]
        if field in ("name", "scenario"):
            value = _text(payload, field)
            if value is None:
                raise HTTPException(status_code=400, detail=f"{field} cannot be empty")
        elif field == "type" and value not in CONTENT_KINDS:
            raise HTTPException(status_code=400, detail="Invalid content type")
        elif field == "description":
            value = value or ""
        elif field == "is_favorite":
            value = bool(value)
        updates[field] = value
    return updates


@router.get("")
async def list_templates(
    content_type: Optional[str] = Query(None, alias="type"),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """List templates; an unknown type filter is ignored."""
    if content_type not in CONTENT_KINDS:
        content_type = None
    return {"data": db.list_templates(user["id"], content_type=content_type)}


@router.post("", status_code=201)
async def create_template(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Create a template.

    Raises:
        HTTPException 400: Missing name, type or scenario, or unknown type
    """
    name = _text(payload, "name")
    scenario = _text(payload, "scenario")
    content_type = payload.get("type")
    if not name or not content_type or not scenario:
        raise HTTPException(status_code=400, detail="Missing required fields: name, type, or scenario")
    if content_type not in CONTENT_KINDS:
        raise HTTPException(status_code=400, detail="Invalid content type")

    template = db.create_template(
        user["id"],
        {
            "name": name,
            "description": payload.get("description") or "",
            "type": content_type,
            "scenario": scenario,
            "is_favorite": bool(payload.get("is_favorite", False)),
        },
    )
    logger.info(f"✓ Created {content_type} template {template['id']}")
    return {"data": template}


@router.get("/{template_id}")
async def get_template(
    template_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    template = db.get_template(user["id"], template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"data": template}


@router.patch("/{template_id}")
async def update_template(
    template_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    updates = _template_updates(payload)
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    template = db.update_template(user["id"], template_id, updates)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"data": template}


@router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    if not db.delete_template(user["id"], template_id):
        raise HTTPException(status_code=404, detail="Template not found")
    return {"success": True}
