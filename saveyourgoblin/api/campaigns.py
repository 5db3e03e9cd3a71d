"""
Campaign API endpoints.

A campaign is an ordered list of library items. Sequence numbers are kept
dense from 0; the order endpoint renumbers everything in one transaction.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from saveyourgoblin.db import DatabaseManager, DuplicateRecord, RecordNotFound
from saveyourgoblin.utils.logger import get_logger

from .deps import get_current_user, get_db

logger = get_logger(__name__)

router = APIRouter()


def _checked_sequence(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise HTTPException(status_code=400, detail="sequence must be a non-negative integer")
    return value


def _checked_settings(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise HTTPException(status_code=400, detail="settings must be an object")
    return value


@router.get("")
async def list_campaigns(
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    return {"data": db.list_campaigns(user["id"])}


@router.post("", status_code=201)
async def create_campaign(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Create a campaign.

    Raises:
        HTTPException 400: Name missing or settings not an object
    """
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise HTTPException(status_code=400, detail="Campaign name is required")
    settings = payload.get("settings")
    campaign = db.create_campaign(
        user["id"],
        name.strip(),
        description=payload.get("description"),
        settings=_checked_settings(settings) if settings is not None else {},
    )
    logger.info(f"✓ Created campaign {campaign['id']}: {campaign['name']}")
    return {"data": campaign}


@router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    campaign = db.get_campaign(user["id"], campaign_id)
    if campaign is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return {"data": campaign}


@router.patch("/{campaign_id}")
async def update_campaign(
    campaign_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    updates: Dict[str, Any] = {}
    if "name" in payload:
        name = payload["name"]
        if not isinstance(name, str) or not name.strip():
            raise HTTPException(status_code=400, detail="Campaign name cannot be empty")
        updates["name"] = name.strip()
    if "description" in payload:
        updates["description"] = payload["description"]
    if "settings" in payload:
        updates["settings"] = _checked_settings(payload["settings"])
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    campaign = db.update_campaign(user["id"], campaign_id, updates)
    if campaign is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return {"data": campaign}


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    if not db.delete_campaign(user["id"], campaign_id):
        raise HTTPException(status_code=404, detail="Campaign not found")
    logger.info(f"✓ Deleted campaign {campaign_id}")
    return {"success": True}


# ==================== Campaign content ====================


@router.post("/{campaign_id}/content", status_code=201)
async def add_campaign_content(
    campaign_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Add a library item to a campaign (default: at the end).

    Raises:
        HTTPException 400: contentId missing or bad sequence
        HTTPException 404: Campaign or item not found
        HTTPException 409: Item already in the campaign
    """
    content_id = payload.get("contentId")
    if not content_id:
        raise HTTPException(status_code=400, detail="contentId is required")
    sequence = _checked_sequence(payload.get("sequence"))

    try:
        entry = db.add_campaign_content(
            user["id"], campaign_id, content_id, sequence=sequence, notes=payload.get("notes")
        )
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateRecord as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"data": entry}


@router.patch("/{campaign_id}/content")
async def update_campaign_content(
    campaign_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    content_id = payload.get("contentId")
    if not content_id:
        raise HTTPException(status_code=400, detail="contentId is required")
    sequence = _checked_sequence(payload.get("sequence"))
    if sequence is None and "notes" not in payload:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    try:
        entry = db.update_campaign_content(
            user["id"],
            campaign_id,
            content_id,
            sequence=sequence,
            notes=payload.get("notes"),
            update_notes="notes" in payload,
        )
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"data": entry}


@router.delete("/{campaign_id}/content")
async def remove_campaign_content(
    campaign_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    content_id_param: Optional[str] = Query(None, alias="contentId"),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    content_id = (payload or {}).get("contentId") or content_id_param
    if not content_id:
        raise HTTPException(status_code=400, detail="contentId is required")

    try:
        removed = db.remove_campaign_content(user["id"], campaign_id, content_id)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not removed:
        raise HTTPException(status_code=404, detail="Content not found in campaign")
    return {"success": True}


@router.put("/{campaign_id}/content/order")
async def reorder_campaign_content(
    campaign_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Reorder a campaign's items in a single transaction.

    Body: ``{"contentIds": [...]}``, a permutation of the campaign's items.

    Raises:
        HTTPException 400: contentIds is not a permutation of the campaign's items
        HTTPException 404: Campaign not found
    """
    content_ids = payload.get("contentIds")
    if not isinstance(content_ids, list) or not all(isinstance(c, str) for c in content_ids):
        raise HTTPException(status_code=400, detail="contentIds must be an array of strings")

    try:
        order = db.reorder_campaign_content(user["id"], campaign_id, content_ids)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info(f"✓ Reordered campaign {campaign_id} ({len(order)} items)")
    return {"data": order}
