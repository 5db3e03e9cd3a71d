"""
Content schemas and validation for SaveYourGoblin
"""

from .advanced import (
    ADVANCED_MODELS,
    GenerationParams,
    normalize_generation_params,
    parse_advanced_input,
    validate_advanced_input,
)
from .content import (
    CONTENT_KINDS,
    Character,
    Environment,
    Mission,
    dump_content,
    infer_kind,
    missing_required_fields,
    parse_content,
)
from .sections import (
    InvalidSectionError,
    get_section_spec,
    regenerable_sections,
    section_label,
    validate_section_item,
    validate_section_value,
)

__all__ = [
    "ADVANCED_MODELS",
    "CONTENT_KINDS",
    "Character",
    "Environment",
    "GenerationParams",
    "InvalidSectionError",
    "Mission",
    "dump_content",
    "get_section_spec",
    "infer_kind",
    "missing_required_fields",
    "normalize_generation_params",
    "parse_advanced_input",
    "parse_content",
    "regenerable_sections",
    "section_label",
    "validate_advanced_input",
    "validate_section_item",
    "validate_section_value",
]
