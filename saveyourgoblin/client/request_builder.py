"""
Builds generation request bodies from user input.
"""

from typing import Any, Dict, Optional

from saveyourgoblin.schemas import (
    CONTENT_KINDS,
    normalize_generation_params,
    parse_advanced_input,
    validate_advanced_input,
)

from .errors import RequestValidationError


def build_generation_request(
    scenario: str,
    content_type: str,
    advanced_mode: bool = False,
    advanced_input: Optional[Dict[str, Any]] = None,
    generation_params: Optional[Dict[str, Any]] = None,
    campaign_context: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Assemble the JSON body for ``POST /api/generate``.

    Advanced input is only validated and sent when ``advanced_mode`` is on.
    Generation parameters are always normalized.

    Args:
        scenario: Free-text scenario (must be non-empty after trimming)
        content_type: character, environment or mission
        advanced_mode: Whether the advanced input applies
        advanced_input: Per-type advanced fields (camelCase keys)
        generation_params: temperature, tone and complexity
        campaign_context: Optional campaign summary

    Returns:
        Request body dict

    Raises:
        RequestValidationError: With a field-to-message map; nothing is sent
    """
    errors: Dict[str, str] = {}
    if not isinstance(scenario, str) or not scenario.strip():
        errors["scenario"] = "Scenario is required"
    if content_type not in CONTENT_KINDS:
        errors["contentType"] = f"Content type must be one of: {', '.join(CONTENT_KINDS)}"
    if errors:
        raise RequestValidationError(errors)

    body: Dict[str, Any] = {"scenario": scenario.strip(), "contentType": content_type}
    if campaign_context:
        body["campaignContext"] = campaign_context

    if advanced_mode and advanced_input:
        errors = validate_advanced_input(content_type, advanced_input)
        if errors:
            raise RequestValidationError(errors)
        advanced = parse_advanced_input(content_type, advanced_input)
        body["advancedInput"] = advanced.model_dump(by_alias=True, exclude_none=True)

    body["generationParams"] = normalize_generation_params(generation_params)
    return body
