"""
Generation API endpoints.

Full generation streams the JSON document as plain text in fixed-size
chunks; section regeneration answers with NDJSON lines
``{section, data, index?}``. Variations are generated and saved to the
library in one call.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import StreamingResponse

from saveyourgoblin.config import settings
from saveyourgoblin.db.manager import DatabaseManager
from saveyourgoblin.engine.generator import ContentGenerator
from saveyourgoblin.schemas import (
    CONTENT_KINDS,
    InvalidSectionError,
    get_section_spec,
    parse_advanced_input,
    validate_advanced_input,
)
from saveyourgoblin.utils.logger import get_logger

from .deps import get_current_user, get_db, get_generator

logger = get_logger(__name__)

router = APIRouter()


async def _chunked(text: str, size: int) -> AsyncIterator[str]:
    for start in range(0, len(text), size):
        yield text[start : start + size]
        await asyncio.sleep(0)


def _campaign_context(value: Any):
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


@router.post("")
async def generate_content(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    generator: ContentGenerator = Depends(get_generator),
):
    """
    Generate a character, environment or mission.

    Returns:
        text/plain stream whose chunks concatenate to
        ``{"type", "content", "scenario"}``

    Raises:
        HTTPException 400: Missing or invalid scenario/contentType
        HTTPException 422: Advanced input failed validation (detail is a field map)
        HTTPException 500: Generation failed
    """
    scenario = payload.get("scenario")
    content_type = payload.get("contentType")
    if not isinstance(scenario, str) or not scenario.strip() or not content_type:
        raise HTTPException(status_code=400, detail="Missing scenario or contentType")
    if content_type not in CONTENT_KINDS:
        raise HTTPException(status_code=400, detail="Invalid contentType")

    advanced_raw = payload.get("advancedInput")
    errors = validate_advanced_input(content_type, advanced_raw)
    if errors:
        logger.info(f"Advanced input rejected: {errors}")
        raise HTTPException(status_code=422, detail=errors)
    advanced_model = parse_advanced_input(content_type, advanced_raw)
    advanced = advanced_model.model_dump(by_alias=True, exclude_none=True) if advanced_model else None

    logger.info("=" * 60)
    logger.info(f"GENERATE {content_type.upper()} for user {user['id']}")
    logger.debug(f"Scenario: {scenario[:100]}")

    try:
        content = await generator.generate(
            scenario,
            content_type,
            campaign_context=_campaign_context(payload.get("campaignContext")),
            advanced_input=advanced,
            generation_params=payload.get("generationParams"),
        )
    except Exception as e:
        logger.error(f"✗ Generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate content: {e}")

    body = json.dumps(
        {"type": content_type, "content": content, "scenario": scenario},
        ensure_ascii=False,
    )
    return StreamingResponse(
        _chunked(body, settings.stream_chunk_size),
        media_type="text/plain; charset=utf-8",
    )


@router.post("/regenerate")
async def regenerate_section(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    generator: ContentGenerator = Depends(get_generator),
):
    """
    Regenerate one section of an existing artifact.

    When ``sectionIndex`` is given for a list section, only that element
    is generated and returned.

    Raises:
        HTTPException 400: Missing fields, invalid section or index
        HTTPException 500: Generation failed
    """
    scenario = payload.get("scenario")
    content_type = payload.get("contentType")
    section = payload.get("section")
    current = payload.get("currentContent")
    if not scenario or not content_type or not section or not isinstance(current, dict):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: scenario, contentType, section, or currentContent",
        )
    if content_type not in CONTENT_KINDS:
        raise HTTPException(status_code=400, detail="Invalid contentType")

    try:
        spec = get_section_spec(content_type, section)
    except InvalidSectionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    index = payload.get("sectionIndex")
    if index is not None:
        if not spec.is_list:
            raise HTTPException(status_code=400, detail=f'Section "{section}" is not a list')
        current_list = current.get(section) or []
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(current_list):
            raise HTTPException(status_code=400, detail="sectionIndex out of range")

    logger.info(f"REGENERATE {content_type}.{section} (index={index}) for user {user['id']}")

    try:
        value = await generator.generate_section(scenario, content_type, section, current, index)
    except Exception as e:
        logger.error(f"✗ Section regeneration failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to regenerate section: {e}")

    line: Dict[str, Any] = {"section": section, "data": value}
    if index is not None:
        line["index"] = index

    async def ndjson() -> AsyncIterator[str]:
        yield json.dumps(line, ensure_ascii=False) + "\n"

    return StreamingResponse(ndjson(), media_type="application/x-ndjson")


@router.post("/variation")
async def create_variation(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DatabaseManager = Depends(get_db),
    generator: ContentGenerator = Depends(get_generator),
):
    """
    Generate a variation of a saved item and save it as a new item.

    Raises:
        HTTPException 400: Missing fields
        HTTPException 404: Original not found for this user
        HTTPException 500: Generation failed
    """
    original_id = payload.get("originalContentId")
    content_type = payload.get("contentType")
    if not original_id or not content_type:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: originalContentId or contentType",
        )

    original = db.get_content(user["id"], original_id)
    if original is None or original["type"] != content_type:
        raise HTTPException(status_code=404, detail="Original content not found or access denied")

    logger.info(f"VARIATION of {content_type} {original_id}")

    try:
        content = await generator.generate_variation(
            original["content_data"], content_type, original["scenario_input"]
        )
    except Exception as e:
        logger.error(f"✗ Variation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate variation: {e}")

    item = db.create_content(
        user["id"],
        content_type,
        f"{original['scenario_input']} (Variation)",
        content,
    )
    logger.info(f"✓ Variation saved as {item['id']}")
    return {"data": item}
