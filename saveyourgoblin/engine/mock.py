"""
Sample content used when no LLM is configured or the LLM call fails.

Output is keyword-driven (a scenario mentioning a tavern gets a tavern) and
seeded from the scenario text, so the same scenario always yields the same
artifact.
"""

import hashlib
import random
import re
from typing import Any, Dict, List, Optional

from saveyourgoblin.schemas.reference import (
    SPELLCASTING_CLASSES,
    normalize_background_name,
    normalize_class_name,
)
from saveyourgoblin.schemas.sections import get_section_spec

from .rules import ability_modifier, proficiency_bonus

MOCK_RACES = ["Human", "Elf", "Dwarf", "Halfling", "Tiefling", "Dragonborn", "Gnome", "Half-Elf"]
MOCK_CLASSES = ["Bard", "Wizard", "Fighter", "Rogue", "Cleric", "Paladin", "Ranger", "Sorcerer"]
MOCK_BACKGROUNDS = ["Entertainer", "Sage", "Noble", "Criminal", "Acolyte", "Folk Hero", "Hermit", "Soldier"]
VOICES = [
    "Hoarse voice",
    "Sweet voice",
    "Deep voice",
    "Melodic voice",
    "Raspy voice",
    "Gentle voice",
    "Commanding voice",
    "Whispery voice",
]

RACIAL_TRAITS = {
    "tiefling": ["Darkvision 60ft", "Hellish Resistance", "Infernal Legacy"],
    "half-elf": ["Darkvision 60ft", "Fey Ancestry", "Skill Versatility"],
    "elf": ["Darkvision 60ft", "Fey Ancestry", "Keen Senses", "Trance"],
    "dwarf": ["Darkvision 60ft", "Dwarven Resilience", "Stonecunning"],
    "halfling": ["Brave", "Halfling Luck", "Nimble"],
    "dragonborn": ["Draconic Ancestry", "Breath Weapon", "Damage Resistance"],
    "gnome": ["Darkvision 60ft", "Gnome Cunning"],
    "half-orc": ["Darkvision 60ft", "Relentless Endurance", "Savage Attacks"],
}

# (feature name, description, level gained)
CLASS_FEATURES = {
    "Barbarian": [
        ("Rage", "Enter a berserker rage for advantage on Strength checks, bonus damage, and resistance to physical damage.", 1),
        ("Unarmored Defense", "While not wearing armor, AC equals 10 + Dexterity modifier + Constitution modifier.", 1),
        ("Reckless Attack", "Gain advantage on melee attacks this turn; attacks against you have advantage until your next turn.", 2),
        ("Danger Sense", "Advantage on Dexterity saving throws against effects you can see.", 2),
        ("Primal Path", "Choose a path that shapes the nature of your rage.", 3),
    ],
    "Bard": [
        ("Bardic Inspiration", "Inspire others with a die they can add to one ability check, attack roll, or saving throw.", 1),
        ("Spellcasting", "Cast spells through music and oration.", 1),
        ("Jack of All Trades", "Add half your proficiency bonus to ability checks that don't already include it.", 2),
        ("Song of Rest", "Soothing music helps allies recover during a short rest.", 2),
        ("Bard College", "Delve into the techniques of a bard college.", 3),
        ("Expertise", "Double your proficiency bonus for two skills.", 3),
    ],
    "Cleric": [
        ("Spellcasting", "Cast cleric spells as a conduit for divine power.", 1),
        ("Divine Domain", "Choose a domain related to your deity.", 1),
        ("Channel Divinity", "Channel divine energy to fuel magical effects.", 2),
    ],
    "Druid": [
        ("Druidic", "Know the secret language of druids.", 1),
        ("Spellcasting", "Draw on the divine essence of nature to cast spells.", 1),
        ("Wild Shape", "Magically assume the shape of a beast.", 2),
    ],
    "Fighter": [
        ("Fighting Style", "Adopt a particular style of fighting as your specialty.", 1),
        ("Second Wind", "Use a bonus action to regain hit points.", 1),
        ("Action Surge", "Take one additional action on your turn.", 2),
        ("Martial Archetype", "Choose an archetype that embodies your martial tradition.", 3),
    ],
    "Monk": [
        ("Unarmored Defense", "Without armor, AC equals 10 + Dexterity modifier + Wisdom modifier.", 1),
        ("Martial Arts", "Master combat styles using unarmed strikes and monk weapons.", 1),
        ("Ki", "Harness ki points equal to your monk level.", 2),
        ("Unarmored Movement", "Speed increases by 10 feet without armor or shield.", 2),
        ("Monastic Tradition", "Commit to a monastic tradition.", 3),
    ],
    "Paladin": [
        ("Divine Sense", "Sense the presence of strong evil and powerful good.", 1),
        ("Lay on Hands", "Heal wounds from a pool of healing power.", 1),
        ("Fighting Style", "Adopt a particular style of fighting as your specialty.", 2),
        ("Spellcasting", "Draw on divine magic to cast spells.", 2),
        ("Divine Smite", "Expend a spell slot to deal radiant damage on a melee hit.", 2),
        ("Sacred Oath", "Swear the oath that binds you as a paladin.", 3),
    ],
    "Ranger": [
        ("Favored Enemy", "Significant experience hunting a certain type of enemy.", 1),
        ("Natural Explorer", "Adept at traveling and surviving in one type of terrain.", 1),
        ("Fighting Style", "Adopt a particular style of fighting as your specialty.", 2),
        ("Spellcasting", "Use the magical essence of nature to cast spells.", 2),
        ("Ranger Archetype", "Choose an archetype to emulate.", 3),
    ],
    "Rogue": [
        ("Sneak Attack", "Deal extra damage once per turn when you have advantage.", 1),
        ("Thieves' Cant", "Hide messages in seemingly normal conversation.", 1),
        ("Expertise", "Double your proficiency bonus for two skills.", 1),
        ("Cunning Action", "Dash, Disengage, or Hide as a bonus action.", 2),
        ("Roguish Archetype", "Choose an archetype that reflects your training.", 3),
    ],
    "Sorcerer": [
        ("Spellcasting", "Innate arcane magic from a mark in your past.", 1),
        ("Sorcerous Origin", "Your magic comes from a bloodline or magical exposure.", 1),
        ("Font of Magic", "Tap into sorcery points.", 2),
    ],
    "Warlock": [
        ("Otherworldly Patron", "Strike a bargain with an otherworldly being.", 1),
        ("Pact Magic", "Cast spells granted by your patron.", 1),
        ("Eldritch Invocations", "Learn fragments of forbidden knowledge.", 2),
    ],
    "Wizard": [
        ("Spellcasting", "Cast spells from your spellbook.", 1),
        ("Arcane Recovery", "Recover expended spell slots during a short rest.", 1),
        ("Arcane Tradition", "Choose a school of magic to specialize in.", 2),
    ],
}

MOCK_SPELLS = [
    {"name": "Magic Missile", "level": 1, "description": "A dart of force strikes the target"},
    {"name": "Charm Person", "level": 1, "description": "Attempt to charm a humanoid"},
    {"name": "Detect Magic", "level": 1, "description": "Sense the presence of magic"},
]

MOCK_SECTIONS: Dict[str, Any] = {
    "character:spells": [],
    "character:skills": [],
    "character:traits": ["Mock trait 1", "Mock trait 2"],
    "character:racialTraits": ["Mock racial trait"],
    "character:classFeatures": [],
    "character:background": "Mock background",
    "character:personality": "Mock personality",
    "environment:npcs": ["Mock NPC"],
    "environment:features": ["Mock feature"],
    "environment:adventureHooks": ["Mock hook"],
    "environment:currentConflict": "Mock conflict",
    "mission:objectives": [],
    "mission:rewards": {"items": []},
    "mission:relatedNPCs": [],
    "mission:relatedLocations": [],
    "mission:powerfulItems": [],
    "mission:possibleOutcomes": [],
}

# One element of a list section, for single-element regeneration
MOCK_SECTION_ITEMS: Dict[str, Any] = {
    "character:spells": {"name": "Mock spell", "level": 0, "description": "Mock spell description"},
    "character:skills": {"name": "Perception", "proficiency": True, "modifier": 0},
    "character:traits": "Mock trait",
    "character:racialTraits": "Mock racial trait",
    "character:classFeatures": {"name": "Mock feature", "description": "Mock feature description", "level": 1},
    "environment:npcs": "Mock NPC",
    "environment:features": "Mock feature",
    "environment:adventureHooks": "Mock hook",
    "mission:objectives": {"description": "Mock objective", "primary": False},
    "mission:relatedNPCs": "Mock NPC",
    "mission:relatedLocations": "Mock location",
    "mission:powerfulItems": {"name": "Mock item", "status": "Held by the villain"},
    "mission:possibleOutcomes": "Mock outcome",
}


def _rng(scenario: str) -> random.Random:
    seed = int(hashlib.sha256(scenario.encode("utf-8")).hexdigest()[:12], 16)
    return random.Random(seed)


def _racial_traits(race: str) -> List[str]:
    race_lower = race.lower()
    for key, traits in RACIAL_TRAITS.items():
        if key in race_lower:
            return list(traits)
    return []


def _attributes(char_class: str, rng: random.Random) -> Dict[str, int]:
    primary = 15 + rng.randint(0, 2)
    secondary = 13 + rng.randint(0, 2)
    others = [10 + rng.randint(0, 2) for _ in range(4)]
    if char_class in ("Wizard",):
        order = ["intelligence", "dexterity"]
    elif char_class in ("Bard", "Paladin", "Sorcerer", "Warlock"):
        order = ["charisma", "dexterity"]
    elif char_class in ("Rogue", "Ranger", "Monk"):
        order = ["dexterity", "constitution"]
    elif char_class in ("Cleric", "Druid"):
        order = ["wisdom", "constitution"]
    else:
        order = ["strength", "constitution"]

    attributes = {order[0]: primary, order[1]: secondary}
    for ability in ("strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma"):
        if ability not in attributes:
            attributes[ability] = others.pop()
    return attributes


def mock_character(scenario: str, advanced: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    advanced = advanced or {}
    rng = _rng(scenario)
    lowered = scenario.lower()

    race = advanced.get("race") or rng.choice(MOCK_RACES)
    char_class = normalize_class_name(advanced.get("class")) or rng.choice(MOCK_CLASSES)
    background = normalize_background_name(advanced.get("background")) or rng.choice(MOCK_BACKGROUNDS)
    level = advanced.get("level") or rng.randint(1, 10)

    name_match = re.search(r"\b([A-Z][a-z]+)\b", scenario)
    name = name_match.group(1) if name_match else f"{race} {char_class}"

    attributes = _attributes(char_class, rng)
    bonus = proficiency_bonus(level)
    cha_mod = ability_modifier(attributes["charisma"])
    int_mod = ability_modifier(attributes["intelligence"])

    features = [
        {"name": n, "description": d, "level": lvl}
        for n, d, lvl in CLASS_FEATURES.get(char_class, [])
        if lvl <= level
    ]
    racial_traits = _racial_traits(race)

    character: Dict[str, Any] = {
        "kind": "character",
        "name": name,
        "race": race,
        "class": char_class,
        "level": level,
        "background": background,
        "history": (
            f"Born in a {'tavern' if 'tavern' in lowered else 'distant land'}, {name} has always "
            f"been drawn to the path of the {char_class.lower()}. Their past is shrouded in mystery, "
            f"but their connection to {scenario} is undeniable."
        ),
        "personality": (
            f"A {char_class.lower()} with a {background.lower()} background, {name} is known for "
            f"{'deep knowledge of ancient lore' if 'ancient' in lowered else 'quick wit and a charming demeanor'}."
        ),
        "attributes": attributes,
        "expertise": ["Stealth", "Persuasion"] if char_class in ("Rogue", "Bard") else [],
        "spells": MOCK_SPELLS[: min(3, level)] if char_class in SPELLCASTING_CLASSES else [],
        "skills": [
            {"name": "Persuasion", "proficiency": True, "modifier": cha_mod + bonus},
            {"name": "Performance", "proficiency": True, "modifier": cha_mod + bonus},
            {"name": "Investigation", "proficiency": False, "modifier": int_mod},
            {"name": "History", "proficiency": True, "modifier": int_mod + bonus},
        ],
        "traits": [
            "Quick to make friends",
            "Loves telling stories",
            "Always carries a keepsake from home",
        ],
        "voiceDescription": rng.choice(VOICES),
    }
    if racial_traits:
        character["racialTraits"] = racial_traits
    if features:
        character["classFeatures"] = features
    if "flute" in lowered:
        character["associatedMission"] = "The Lost Melody"
    return character


def mock_environment(scenario: str, advanced: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    advanced = advanced or {}
    lowered = scenario.lower()
    is_dark = "dark" in lowered or "abandoned" in lowered
    is_tavern = "tavern" in lowered
    is_tower = "tower" in lowered

    name = "Mysterious Location"
    if is_tavern:
        name = "The Rusty Tankard"
    if is_tower:
        name = "The Abandoned Tower"
    if "wizard" in lowered:
        name = "Wizard's Sanctum"

    if is_tavern:
        conflict = "A heated argument between two merchants is escalating, and the tavern keeper is trying to calm them before it turns violent."
        hooks = [
            "The merchants offer gold to anyone who can resolve their dispute",
            "A mysterious figure in the corner watches the party with keen interest",
            "The tavern keeper mentions a missing shipment that needs investigating",
        ]
        features = ["Large fireplace", "Bar counter with stools", "Stage for performers", "Private booths"]
    elif is_tower:
        conflict = "Magical wards are failing, causing unpredictable magical effects throughout the tower."
        hooks = [
            "A magical artifact at the top of the tower is causing the instability",
            "Ancient guardians have awakened and are hostile to all intruders",
            "A previous explorer left behind notes about the tower's secrets",
        ]
        features = ["Spiral staircase", "Ancient library", "Magical traps", "Observation deck"]
    else:
        conflict = "Strange occurrences have been reported, and the locals are growing increasingly fearful."
        hooks = [
            "Locals are offering a reward for anyone who can solve the mystery",
            "A witness saw something important but is too scared to talk",
            "The strange occurrences follow a pattern that suggests a hidden cause",
        ]
        features = ["Mysterious artifacts", "Hidden passages", "Magical auras"]

    if "bard" in lowered:
        npcs = [
            "The Mysterious Bard - Performs nightly and knows many local secrets",
            "Tavern Keeper - Owner who keeps a watchful eye on patrons",
            "Local Patrons - Regulars who gossip about town happenings",
        ]
    else:
        npcs = [
            "Guardian Spirit - Protects the location from intruders",
            "Ancient Wizard - Former owner who left behind magical research",
            "Curious Apprentice - Seeks knowledge about the location's history",
        ]
    npc_count = advanced.get("npcCount")
    if npc_count is not None:
        extras = [
            f"Wandering Stranger {i + 1} - Passing through"
            for i in range(len(npcs), npc_count)
        ]
        npcs = (npcs + extras)[:npc_count]

    return {
        "kind": "environment",
        "name": name,
        "description": scenario or f"A {'dark and foreboding' if is_dark else 'welcoming'} place that holds many secrets.",
        "ambient": (
            "Echoing footsteps, distant whispers, the creaking of old wood"
            if is_dark
            else "Lively chatter, clinking mugs, crackling fire, bardic music"
        ),
        "mood": advanced.get("mood") or ("Tense and mysterious" if is_dark else "Warm and inviting"),
        "lighting": advanced.get("lighting")
        or ("Dim torchlight casting long shadows" if is_dark else "Warm firelight illuminating the space"),
        "features": features,
        "npcs": npcs,
        "currentConflict": conflict,
        "adventureHooks": hooks,
    }


RECOMMENDED_LEVELS = {"easy": "Level 1-3", "medium": "Level 4-6", "hard": "Level 7-10", "deadly": "Level 11+"}
XP_BY_DIFFICULTY = {"easy": 200, "medium": 500, "hard": 1000, "deadly": 2000}
GOLD_BY_DIFFICULTY = {"easy": 100, "medium": 250, "hard": 500, "deadly": 1000}


def mock_mission(scenario: str, advanced: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    advanced = advanced or {}
    lowered = scenario.lower()
    has_artifact = "artifact" in lowered or "flute" in lowered
    has_thieves = "thief" in lowered or "thieves" in lowered or "stolen" in lowered
    has_guild = "guild" in lowered

    if has_artifact:
        title = "The Lost Artifact"
        context = "An ancient artifact of great power has been stolen, and the heroes must retrieve it before it falls into the wrong hands."
        objectives = [
            {"description": "Retrieve the stolen artifact", "primary": True, "pathType": "mixed"},
            {"description": "Negotiate with the sorceress for the artifact", "primary": False, "isAlternative": True, "pathType": "social"},
            {"description": "Defeat the sorceress in combat", "primary": False, "isAlternative": True, "pathType": "combat"},
            {"description": "Rescue any hostages", "primary": False},
        ]
        outcomes = [
            "If the artifact is retrieved and sealed, balance is maintained but factions seek it later",
            "If the artifact is destroyed, magical instability spreads",
            "If the party keeps the artifact, it attracts powerful enemies",
            "If negotiation succeeds, an alliance forms but the artifact remains a threat",
        ]
        choice_rewards: Optional[List[Dict[str, Any]]] = [
            {"condition": "If negotiated with the sorceress", "rewards": {"xp": 300, "gold": 150, "items": ["Alliance Favor", "Ancient Knowledge Scroll"]}},
            {"condition": "If combat is chosen", "rewards": {"xp": 500, "gold": 250, "items": ["Sorceress's Staff", "Combat Loot"]}},
        ]
    elif has_thieves:
        title = "Thieves' Guild Infiltration"
        context = "The local thieves' guild has been causing trouble, and someone needs to put a stop to their activities."
        objectives = [
            {"description": "Infiltrate the thieves' guild hideout", "primary": True, "pathType": "stealth"},
            {"description": "Negotiate with the guild leader", "primary": False, "isAlternative": True, "pathType": "social"},
            {"description": "Assault the hideout directly", "primary": False, "isAlternative": True, "pathType": "combat"},
            {"description": "Rescue any hostages", "primary": False},
        ]
        outcomes = [
            "If the guild is infiltrated, information is gained but the guild turns hostile",
            "If negotiation succeeds, a temporary alliance forms and the guild demands favors",
            "If combat is chosen, the guild is weakened and rival gangs take notice",
            "If hostages are rescued, reputation grows and the guild seeks revenge",
        ]
        choice_rewards = [
            {"condition": "If negotiation succeeds", "rewards": {"xp": 400, "gold": 200, "items": ["Guild Favor", "Information Package"]}},
            {"condition": "If combat is chosen", "rewards": {"xp": 600, "gold": 300, "items": ["Guild Leader's Dagger", "Stolen Goods"]}},
        ]
    else:
        title = "A Mysterious Quest"
        context = "A mysterious figure has approached the heroes with an offer they cannot refuse."
        objectives = [
            {"description": "Complete the primary objective", "primary": True, "pathType": "mixed"},
            {"description": "Avoid detection", "primary": False, "pathType": "stealth"},
            {"description": "Rescue any hostages", "primary": False},
        ]
        outcomes = [
            "If the primary objective succeeds, the quest giver becomes an ally",
            "If the stealth approach is used, information is gained without confrontation",
            "If hostages are rescued, additional rewards and reputation follow",
        ]
        choice_rewards = None

    difficulty = advanced.get("difficulty") or ("hard" if has_guild else "medium" if has_artifact else "easy")
    objective_count = advanced.get("objectiveCount")
    if objective_count:
        while len(objectives) < objective_count:
            objectives.append({"description": f"Optional task {len(objectives) + 1}", "primary": False})
        objectives = objectives[:objective_count]

    reward_types = advanced.get("rewardTypes") or ["xp", "gold", "items"]
    rewards: Dict[str, Any] = {
        "items": (["Magical Scroll", "Potion of Healing"] if has_artifact else ["Thieves' Tools", "Lockpicks", "Smoke Bomb"])
        if "items" in reward_types
        else []
    }
    if "xp" in reward_types:
        rewards["xp"] = XP_BY_DIFFICULTY[difficulty]
    if "gold" in reward_types:
        rewards["gold"] = GOLD_BY_DIFFICULTY[difficulty]

    mission: Dict[str, Any] = {
        "kind": "mission",
        "title": title,
        "description": scenario or "A quest that will test the heroes' resolve and skills.",
        "context": context,
        "objectives": objectives,
        "rewards": rewards,
        "difficulty": difficulty,
        "recommendedLevel": RECOMMENDED_LEVELS[difficulty],
        "possibleOutcomes": outcomes,
        "relatedNPCs": ["Guild Master", "Thief Leader", "Innocent Bystander"]
        if has_guild
        else ["Quest Giver", "Ancient Guardian", "Mysterious Benefactor"],
        "relatedLocations": ["Thieves' Guild Hideout", "City Streets", "Underground Tunnels"]
        if has_guild
        else ["Ancient Ruins", "Mysterious Tower", "Hidden Temple"],
    }
    if has_artifact:
        mission["powerfulItems"] = [
            {"name": "The Heart of Balance", "status": "Dormant Artifact (awakens later, DM-controlled)"}
        ]
    if choice_rewards:
        mission["choiceBasedRewards"] = choice_rewards
    return mission


MOCK_GENERATORS = {
    "character": mock_character,
    "environment": mock_environment,
    "mission": mock_mission,
}


def mock_content(scenario: str, kind: str, advanced: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Sample artifact of the requested kind."""
    generator = MOCK_GENERATORS.get(kind)
    if generator is None:
        raise ValueError(f"Unknown content type: {kind}")
    return generator(scenario, advanced)


def mock_section(kind: str, section: str, index: Optional[int] = None) -> Any:
    """Placeholder value for a regenerated section, or for one element when ``index`` is given."""
    get_section_spec(kind, section)
    table = MOCK_SECTIONS if index is None else MOCK_SECTION_ITEMS
    value = table[f"{kind}:{section}"]
    # Fresh copy so callers may mutate it
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value
