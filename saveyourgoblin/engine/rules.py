"""
D&D 5e rule helpers applied to generated characters.
"""

from typing import Any, Dict

from saveyourgoblin.schemas.reference import SKILL_ABILITIES


def proficiency_bonus(level: int) -> int:
    """Proficiency bonus for a character level (+2 at 1-4 up to +6 at 17-20)."""
    return (level + 7) // 4


def ability_modifier(score: int) -> int:
    return (score - 10) // 2


def validate_character_skills(character: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recompute every skill modifier from the character's ability scores.

    Stated modifiers are replaced: expertise adds twice the proficiency
    bonus, proficiency adds it once, otherwise the bare ability modifier
    applies. Unknown skills are scored against strength.

    Args:
        character: Character content dict (camelCase keys)

    Returns:
        A new character dict with corrected skills
    """
    attributes = character.get("attributes") or {}
    bonus = proficiency_bonus(int(character.get("level", 1)))
    expertise = set(character.get("expertise") or [])

    skills = []
    for skill in character.get("skills") or []:
        ability = SKILL_ABILITIES.get(skill.get("name", ""), "strength")
        modifier = ability_modifier(int(attributes.get(ability, 10)))
        if skill.get("name") in expertise:
            modifier += bonus * 2
        elif skill.get("proficiency"):
            modifier += bonus
        skills.append({**skill, "modifier": modifier})

    return {**character, "skills": skills}
