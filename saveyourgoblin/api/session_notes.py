"""
Session notes API endpoints.

Notes taken during play, optionally attached to a campaign and to library
items. Listed newest session first.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from saveyourgoblin.db import DatabaseManager, RecordNotFound
from saveyourgoblin.utils.logger import get_logger

from .deps import get_current_user, get_db

logger = get_logger(__name__)

router = APIRouter()


def normalize_session_date(value: Any) -> str:
    """
    Normalize a session date to YYYY-MM-DD (default: today).

    Accepts a date or an ISO datetime string.

    Raises:
        ValueError: If the value is not a date
    """
    if value is None or value == "":
        return date.today().isoformat()
    if not isinstance(value, str):
        raise ValueError("sessionDate must be a date string")
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text).isoformat()
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        raise ValueError(f"Invalid sessionDate: {value}") from None


def normalize_campaign_id(value: Any) -> Optional[str]:
    """Empty or blank campaign ids mean "no campaign"."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("campaignId must be a string")
    return value.strip() or None


def normalize_linked_ids(value: Any) -> List[str]:
    """Keep non-empty trimmed string ids."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("linkedContentIds must be an array")
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _note_fields(payload: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    """Map a request body to manager fields, validating as it goes."""
    fields: Dict[str, Any] = {}
    try:
        if not partial or "title" in payload:
            title = payload.get("title")
            if not isinstance(title, str) or not title.strip():
                raise ValueError("Title is required")
            fields["title"] = title.strip()
        if "content" in payload:
            fields["content"] = payload["content"] or ""
        if not partial or "sessionDate" in payload:
            fields["session_date"] = normalize_session_date(payload.get("sessionDate"))
        if not partial or "campaignId" in payload:
            fields["campaign_id"] = normalize_campaign_id(payload.get("campaignId"))
        if not partial or "linkedContentIds" in payload:
            fields["linked_content_ids"] = normalize_linked_ids(payload.get("linkedContentIds"))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return fields


@router.get("")
async def list_session_notes(
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    return {"data": db.list_session_notes(user["id"], campaign_id=campaign_id)}


@router.post("", status_code=201)
async def create_session_note(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Create a session note.

    Raises:
        HTTPException 400: Missing title or malformed fields
        HTTPException 404: campaignId names a missing campaign
    """
    fields = _note_fields(payload, partial=False)
    try:
        note = db.create_session_note(user["id"], fields)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info(f"✓ Created session note {note['id']} ({note['session_date']})")
    return {"data": note}


@router.get("/{note_id}")
async def get_session_note(
    note_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    note = db.get_session_note(user["id"], note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Session note not found")
    return {"data": note}


@router.patch("/{note_id}")
async def update_session_note(
    note_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    fields = _note_fields(payload, partial=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    try:
        note = db.update_session_note(user["id"], note_id, fields)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    if note is None:
        raise HTTPException(status_code=404, detail="Session note not found")
    return {"data": note}


@router.delete("/{note_id}")
async def delete_session_note(
    note_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    if not db.delete_session_note(user["id"], note_id):
        raise HTTPException(status_code=404, detail="Session note not found")
    return {"success": True}
