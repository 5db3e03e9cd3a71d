"""
Generation engine for SaveYourGoblin
"""

from .generator import ContentGenerator, build_advanced_constraints, summarize_content
from .mock import mock_content, mock_section
from .rules import ability_modifier, proficiency_bonus, validate_character_skills

__all__ = [
    "ContentGenerator",
    "build_advanced_constraints",
    "summarize_content",
    "mock_content",
    "mock_section",
    "ability_modifier",
    "proficiency_bonus",
    "validate_character_skills",
]
