"""
Regenerable sections of each content kind.

A section is one top-level key of a content document that can be
regenerated on its own while the rest of the document stays untouched.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter

from .content import ClassFeature, Objective, PowerfulItem, Rewards, Skill, Spell


class InvalidSectionError(ValueError):
    """Raised when a section is not regenerable for a content kind"""

    def __init__(self, kind: str, section: str):
        self.kind = kind
        self.section = section
        super().__init__(f'Invalid section "{section}" for content type "{kind}"')


@dataclass(frozen=True)
class SectionSpec:
    """Shape and prompt description of one regenerable section"""

    key: str
    label: str
    annotation: Any
    description: str
    is_list: bool

    @property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(self.annotation)

    @property
    def item_adapter(self) -> TypeAdapter:
        """Adapter for one element of a list section."""
        if not self.is_list:
            raise TypeError(f'Section "{self.key}" is not a list')
        return TypeAdapter(self.annotation.__args__[0])


def _spec(key: str, label: str, annotation: Any, description: str) -> SectionSpec:
    is_list = getattr(annotation, "__origin__", None) is list
    return SectionSpec(key, label, annotation, description, is_list)


SECTIONS: Dict[str, Dict[str, SectionSpec]] = {
    "character": {
        s.key: s
        for s in (
            _spec("spells", "Spells", List[Spell],
                  "spells appropriate for the character's class and level"),
            _spec("skills", "Skills", List[Skill],
                  "skills with correct proficiency flags and modifiers based on class, background, and race"),
            _spec("traits", "Traits", List[str], "personality traits and quirks"),
            _spec("racialTraits", "Racial Traits", List[str],
                  "racial traits for the character's race (standard D&D 5e racial features)"),
            _spec("classFeatures", "Class Features", List[ClassFeature],
                  "class features for the character's class and level (ALL mandatory features)"),
            _spec("background", "Background", str, "backstory and background"),
            _spec("personality", "Personality", str, "personality description"),
        )
    },
    "environment": {
        s.key: s
        for s in (
            _spec("npcs", "NPCs", List[str],
                  "NPCs present, each with name and short role description"),
            _spec("features", "Notable Features", List[str],
                  "notable features, objects, or architectural elements"),
            _spec("adventureHooks", "Adventure Hooks", List[str],
                  "2-3 concrete adventure hooks that can immediately involve the players"),
            _spec("currentConflict", "Current Conflict", str,
                  "what is currently wrong or unstable in this location"),
        )
    },
    "mission": {
        s.key: s
        for s in (
            _spec("objectives", "Objectives", List[Objective],
                  "mission objectives (primary and optional)"),
            _spec("rewards", "Rewards", Rewards, "rewards for completing the mission"),
            _spec("relatedNPCs", "Related NPCs", List[str],
                  "NPCs involved in or related to this mission"),
            _spec("relatedLocations", "Related Locations", List[str],
                  "locations relevant to this mission"),
            _spec("powerfulItems", "Powerful Items", List[PowerfulItem],
                  "powerful items or artifacts in the mission"),
            _spec("possibleOutcomes", "Possible Outcomes", List[str],
                  "3-4 possible outcomes based on player choices"),
        )
    },
}


def regenerable_sections(kind: str) -> List[str]:
    """Section keys of a kind, in display order."""
    return list(SECTIONS.get(kind, {}).keys())


def get_section_spec(kind: str, section: str) -> SectionSpec:
    spec = SECTIONS.get(kind, {}).get(section)
    if spec is None:
        raise InvalidSectionError(kind, section)
    return spec


def section_label(kind: str, section: str, index: Optional[int] = None) -> str:
    """Human label for a section, with the 1-based element number for list items."""
    spec = SECTIONS.get(kind, {}).get(section)
    label = spec.label if spec else section
    if index is not None:
        label = f"{label} #{index + 1}"
    return label


def validate_section_value(kind: str, section: str, value: Any) -> Any:
    """Validate a section value and return its camelCase JSON form."""
    spec = get_section_spec(kind, section)
    adapter = spec.adapter
    parsed = adapter.validate_python(value)
    return adapter.dump_python(parsed, by_alias=True, exclude_none=True, mode="json")


def validate_section_item(kind: str, section: str, value: Any) -> Any:
    """Validate one element of a list section and return its JSON form."""
    adapter = get_section_spec(kind, section).item_adapter
    parsed = adapter.validate_python(value)
    return adapter.dump_python(parsed, by_alias=True, exclude_none=True, mode="json")
