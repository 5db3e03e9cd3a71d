"""
Advanced generation inputs and generation parameters.

Advanced inputs let the user pin concrete attributes of the artifact
(a level 5 Tiefling Bard, a mission with three objectives, ...). They are
strict: unknown keys and wrongly-typed values are rejected rather than
coerced, and failures are reported per field.
"""

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .reference import (
    BACKGROUNDS,
    CLASSES,
    DIFFICULTIES,
    LIGHTING,
    MOODS,
    RACES,
    REWARD_TYPES,
)

TEMPERATURE_MIN = 0.1
TEMPERATURE_MAX = 1.5
DEFAULT_TEMPERATURE = 0.8
TONES = ("serious", "balanced", "playful")
COMPLEXITIES = ("simple", "standard", "detailed")
DEFAULT_TONE = "balanced"
DEFAULT_COMPLEXITY = "standard"


class AdvancedInputModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class AdvancedCharacterInput(AdvancedInputModel):
    level: Optional[StrictInt] = Field(None, ge=1, le=20)
    class_: Optional[Literal[CLASSES]] = Field(None, alias="class")  # type: ignore[valid-type]
    race: Optional[Literal[RACES]] = None  # type: ignore[valid-type]
    background: Optional[Literal[BACKGROUNDS]] = None  # type: ignore[valid-type]


class AdvancedEnvironmentInput(AdvancedInputModel):
    mood: Optional[Literal[MOODS]] = None  # type: ignore[valid-type]
    lighting: Optional[Literal[LIGHTING]] = None  # type: ignore[valid-type]
    npc_count: Optional[StrictInt] = Field(None, ge=0, le=10, alias="npcCount")


class AdvancedMissionInput(AdvancedInputModel):
    difficulty: Optional[Literal[DIFFICULTIES]] = None  # type: ignore[valid-type]
    objective_count: Optional[StrictInt] = Field(None, ge=2, le=5, alias="objectiveCount")
    reward_types: Optional[List[Literal[REWARD_TYPES]]] = Field(  # type: ignore[valid-type]
        None, alias="rewardTypes"
    )


ADVANCED_MODELS: Dict[str, type] = {
    "character": AdvancedCharacterInput,
    "environment": AdvancedEnvironmentInput,
    "mission": AdvancedMissionInput,
}


def _error_map(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = str(loc[0]) if loc else "advancedInput"
        errors.setdefault(field, error["msg"])
    return errors


def validate_advanced_input(kind: str, data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Validate advanced input for a content kind.

    Args:
        kind: character, environment or mission
        data: Raw advanced input (camelCase keys)

    Returns:
        Mapping of field name to error message; empty when valid
    """
    model = ADVANCED_MODELS.get(kind)
    if model is None:
        return {"contentType": f"Unknown content type: {kind}"}
    if data is None:
        return {}
    if not isinstance(data, dict):
        return {"advancedInput": "Advanced input must be an object"}
    try:
        model.model_validate(data)
    except ValidationError as exc:
        return _error_map(exc)
    return {}


def parse_advanced_input(kind: str, data: Optional[Dict[str, Any]]):
    """Validate advanced input and return the model (None when absent)."""
    if not data:
        return None
    return ADVANCED_MODELS[kind].model_validate(data)


class GenerationParams(BaseModel):
    """Normalized generation parameters"""

    temperature: float = DEFAULT_TEMPERATURE
    tone: Literal["serious", "balanced", "playful"] = DEFAULT_TONE
    complexity: Literal["simple", "standard", "detailed"] = DEFAULT_COMPLEXITY


def _normalize_temperature(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return DEFAULT_TEMPERATURE
    try:
        temperature = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TEMPERATURE
    if math.isnan(temperature):
        return DEFAULT_TEMPERATURE
    return max(TEMPERATURE_MIN, min(TEMPERATURE_MAX, temperature))


def normalize_generation_params(params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Normalize generation parameters.

    Temperature is clamped to [0.1, 1.5] (default 0.8); unknown tones and
    complexities fall back to their defaults. Applying this twice yields the
    same result as applying it once.
    """
    params = params if isinstance(params, dict) else {}
    tone = params.get("tone")
    complexity = params.get("complexity")
    normalized = GenerationParams(
        temperature=_normalize_temperature(params.get("temperature")),
        tone=tone if tone in TONES else DEFAULT_TONE,
        complexity=complexity if complexity in COMPLEXITIES else DEFAULT_COMPLEXITY,
    )
    return normalized.model_dump()
