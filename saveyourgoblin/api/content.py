"""
Content library API endpoints.

Saved artifacts with their tags, notes and favorite flag, plus the version
history of each item's content_data and typed links between items.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from saveyourgoblin.db import LINK_TYPES, DatabaseManager, DuplicateRecord, RecordNotFound
from saveyourgoblin.schemas import CONTENT_KINDS, missing_required_fields
from saveyourgoblin.schemas.content import tag_content
from saveyourgoblin.utils import collect_differences, get_logger

from .deps import get_current_user, get_db

logger = get_logger(__name__)

router = APIRouter()


def _checked_content_data(content_type: str, data: Any) -> Dict[str, Any]:
    """Structural check of a content payload; returns it tagged with its kind."""
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="contentData must be an object")
    if data.get("kind") not in (None, content_type):
        raise HTTPException(
            status_code=400,
            detail=f"contentData is tagged '{data.get('kind')}' but type is '{content_type}'",
        )
    missing = missing_required_fields(content_type, data)
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {content_type} data: missing {', '.join(missing)}",
        )
    return tag_content(data, content_type)


def _checked_tags(tags: Any) -> List[str]:
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise HTTPException(status_code=400, detail="tags must be an array of strings")
    return tags


def _require_content(db: DatabaseManager, user_id: str, content_id: str) -> Dict[str, Any]:
    item = db.get_content(user_id, content_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return item


@router.get("")
async def list_content(
    type: Optional[str] = None,
    search: Optional[str] = None,
    favorite: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """List library items, newest first."""
    items, total = db.list_content(
        user["id"],
        content_type=type,
        search=search.strip() if search else None,
        favorite=favorite,
        limit=limit,
        offset=offset,
    )
    return {"data": items, "total": total, "limit": limit, "offset": offset}


@router.post("", status_code=201)
async def save_content(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Save a generated artifact to the library.

    Raises:
        HTTPException 400: Missing fields, unknown type or malformed contentData
    """
    content_type = payload.get("type")
    scenario = payload.get("scenario")
    if not content_type or not scenario or payload.get("contentData") is None:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: type, scenario, or contentData",
        )
    if content_type not in CONTENT_KINDS:
        raise HTTPException(status_code=400, detail="Invalid content type")

    content_data = _checked_content_data(content_type, payload["contentData"])
    tags = _checked_tags(payload.get("tags") or [])

    item = db.create_content(
        user["id"],
        content_type,
        scenario,
        content_data,
        tags=tags,
        notes=payload.get("notes"),
        is_favorite=bool(payload.get("is_favorite", False)),
    )
    logger.info(f"✓ Saved {content_type} {item['id']}")
    return {"success": True, "id": item["id"], "message": "Content saved successfully"}


@router.get("/{content_id}")
async def get_content(
    content_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    return {"data": _require_content(db, user["id"], content_id)}


@router.patch("/{content_id}")
async def update_content(
    content_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Partially update a library item.

    Only notes, tags, is_favorite and content_data are accepted. A
    content_data change records a new version (optional change_summary).

    Raises:
        HTTPException 400: No valid fields, or a field has the wrong shape
        HTTPException 404: Item not found
    """
    updates = {
        key: payload[key]
        for key in ("notes", "tags", "is_favorite", "content_data")
        if key in payload
    }
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    existing = _require_content(db, user["id"], content_id)

    if "tags" in updates:
        updates["tags"] = _checked_tags(updates["tags"])
    if "is_favorite" in updates and not isinstance(updates["is_favorite"], bool):
        raise HTTPException(status_code=400, detail="is_favorite must be a boolean")
    if "content_data" in updates:
        updates["content_data"] = _checked_content_data(existing["type"], updates["content_data"])

    item = db.update_content(
        user["id"], content_id, updates, change_summary=payload.get("change_summary")
    )
    if item is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return {"data": item}


@router.delete("/{content_id}")
async def delete_content(
    content_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    if not db.delete_content(user["id"], content_id):
        raise HTTPException(status_code=404, detail="Content not found")
    logger.info(f"✓ Deleted content {content_id}")
    return {"success": True, "message": "Content deleted successfully"}


# ==================== Versions ====================


@router.get("/{content_id}/versions")
async def list_versions(
    content_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    versions = db.list_versions(user["id"], content_id)
    if versions is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return {"data": versions}


@router.get("/{content_id}/versions/compare")
async def compare_versions(
    content_id: str,
    base_version_id: Optional[str] = Query(None, alias="baseVersionId"),
    compare_version_id: Optional[str] = Query(None, alias="compareVersionId"),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Path-level differences between two versions of an item.

    Raises:
        HTTPException 400: Missing or identical version ids
        HTTPException 404: Item or version not found
    """
    if not base_version_id or not compare_version_id:
        raise HTTPException(
            status_code=400, detail="baseVersionId and compareVersionId are required"
        )
    if base_version_id == compare_version_id:
        raise HTTPException(status_code=400, detail="Cannot compare a version with itself")

    _require_content(db, user["id"], content_id)
    base = db.get_version(user["id"], content_id, base_version_id)
    other = db.get_version(user["id"], content_id, compare_version_id)
    if base is None or other is None:
        raise HTTPException(status_code=404, detail="Version not found")

    differences, truncated = collect_differences(base["content_data"], other["content_data"])
    return {
        "baseVersionId": base["id"],
        "compareVersionId": other["id"],
        "baseVersionNumber": base["version_number"],
        "compareVersionNumber": other["version_number"],
        "differences": differences,
        "truncated": truncated,
    }


@router.get("/{content_id}/versions/{version_id}")
async def get_version(
    content_id: str,
    version_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    version = db.get_version(user["id"], content_id, version_id)
    if version is None:
        raise HTTPException(status_code=404, detail="Version not found")
    return {"data": version}


@router.post("/{content_id}/versions")
async def restore_version(
    content_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Restore an earlier version; the restore itself becomes a new version.

    Raises:
        HTTPException 400: versionId missing
        HTTPException 404: Item or version not found
    """
    version_id = payload.get("versionId")
    if not version_id:
        raise HTTPException(status_code=400, detail="versionId is required")

    try:
        result = db.restore_version(
            user["id"], content_id, version_id, change_summary=payload.get("change_summary")
        )
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(
        f"✓ Restored {content_id} to version {result['restoredFrom']['version_number']}"
    )
    return result


# ==================== Links ====================


@router.get("/{content_id}/links")
async def list_links(
    content_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    links = db.list_links(user["id"], content_id)
    if links is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return {"data": links}


@router.post("/{content_id}/links", status_code=201)
async def create_link(
    content_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    """
    Link this item to another of the user's items.

    Raises:
        HTTPException 400: Missing target, self-link or unknown link type
        HTTPException 404: Either item not found
        HTTPException 409: The link already exists
    """
    target_id = payload.get("targetContentId")
    link_type = payload.get("linkType") or "related"
    if not target_id:
        raise HTTPException(status_code=400, detail="targetContentId is required")
    if target_id == content_id:
        raise HTTPException(status_code=400, detail="Cannot link content to itself")
    if link_type not in LINK_TYPES:
        raise HTTPException(status_code=400, detail="Invalid link type")

    try:
        link = db.create_link(user["id"], content_id, target_id, link_type)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateRecord as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"data": link}


@router.delete("/{content_id}/links")
async def delete_link(
    content_id: str,
    link_id: Optional[str] = Query(None, alias="linkId"),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
):
    if not link_id:
        raise HTTPException(status_code=400, detail="linkId is required")
    if not db.delete_link(user["id"], content_id, link_id):
        raise HTTPException(status_code=404, detail="Link not found")
    return {"success": True}
