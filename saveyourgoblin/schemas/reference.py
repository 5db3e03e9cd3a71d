"""
D&D 5e SRD reference lists used by advanced generation inputs.
"""

from typing import Dict, Optional

CLASSES = (
    "Barbarian",
    "Bard",
    "Cleric",
    "Druid",
    "Fighter",
    "Monk",
    "Paladin",
    "Ranger",
    "Rogue",
    "Sorcerer",
    "Warlock",
    "Wizard",
)

RACES = (
    "Human",
    "Elf",
    "Dwarf",
    "Halfling",
    "Dragonborn",
    "Gnome",
    "Half-Elf",
    "Half-Orc",
    "Tiefling",
)

BACKGROUNDS = (
    "Acolyte",
    "Charlatan",
    "Criminal",
    "Entertainer",
    "Folk Hero",
    "Guild Artisan",
    "Hermit",
    "Noble",
    "Outlander",
    "Sage",
    "Soldier",
    "Urchin",
)

MOODS = ("dark", "mysterious", "cheerful", "tense", "peaceful", "eerie")

LIGHTING = ("bright", "dim", "dark", "candlelight", "torchlight", "magical")

DIFFICULTIES = ("easy", "medium", "hard", "deadly")

REWARD_TYPES = ("xp", "gold", "items")

SPELLCASTING_CLASSES = (
    "Bard",
    "Cleric",
    "Druid",
    "Paladin",
    "Ranger",
    "Sorcerer",
    "Warlock",
    "Wizard",
)

# Common spellings (English and Portuguese) mapped onto SRD class names
CLASS_ALIASES: Dict[str, str] = {
    "warrior": "Fighter",
    "guerreiro": "Fighter",
    "bárbaro": "Barbarian",
    "ladino": "Rogue",
    "thief": "Rogue",
    "bardo": "Bard",
    "mago": "Wizard",
    "mage": "Wizard",
    "clérigo": "Cleric",
    "patrulheiro": "Ranger",
    "paladino": "Paladin",
    "monge": "Monk",
    "feiticeiro": "Sorcerer",
    "bruxo": "Warlock",
    "druida": "Druid",
}

BACKGROUND_ALIASES: Dict[str, str] = {
    "artist": "Entertainer",
    "artista": "Entertainer",
    "nobre": "Noble",
    "sábio": "Sage",
    "acólito": "Acolyte",
    "criminoso": "Criminal",
}

# Skill -> governing ability
SKILL_ABILITIES: Dict[str, str] = {
    "Acrobatics": "dexterity",
    "Animal Handling": "wisdom",
    "Arcana": "intelligence",
    "Athletics": "strength",
    "Deception": "charisma",
    "History": "intelligence",
    "Insight": "wisdom",
    "Intimidation": "charisma",
    "Investigation": "intelligence",
    "Medicine": "wisdom",
    "Nature": "intelligence",
    "Perception": "wisdom",
    "Performance": "charisma",
    "Persuasion": "charisma",
    "Religion": "intelligence",
    "Sleight of Hand": "dexterity",
    "Stealth": "dexterity",
    "Survival": "wisdom",
}


def _normalize(value: Optional[str], canonical: tuple, aliases: Dict[str, str]) -> Optional[str]:
    if not value:
        return None
    cleaned = value.strip()
    lowered = cleaned.lower()
    for name in canonical:
        if name.lower() == lowered:
            return name
    return aliases.get(lowered, cleaned)


def normalize_class_name(value: Optional[str]) -> Optional[str]:
    """Map a free-form class name onto its SRD spelling when known."""
    return _normalize(value, CLASSES, CLASS_ALIASES)


def normalize_background_name(value: Optional[str]) -> Optional[str]:
    """Map a free-form background name onto its SRD spelling when known."""
    return _normalize(value, BACKGROUNDS, BACKGROUND_ALIASES)
