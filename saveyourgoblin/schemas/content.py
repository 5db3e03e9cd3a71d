"""
Generated content schema definitions.

A generated artifact is one of three kinds (character, environment,
mission). Every artifact carries an explicit ``kind`` tag; payloads that
predate the tag are classified once, at the boundary, from the fields they
carry and are tagged from then on.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

ContentKind = Literal["character", "environment", "mission"]
CONTENT_KINDS: Tuple[str, ...] = ("character", "environment", "mission")

# Identifying fields a stored artifact must carry, per kind
REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "character": ("name", "race", "class"),
    "environment": ("name", "description"),
    "mission": ("title", "description"),
}


class ContentModel(BaseModel):
    """Base model: camelCase aliases, constructible by field name too"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Attributes(ContentModel):
    """The six ability scores"""

    strength: int = Field(..., ge=1, le=30)
    dexterity: int = Field(..., ge=1, le=30)
    constitution: int = Field(..., ge=1, le=30)
    intelligence: int = Field(..., ge=1, le=30)
    wisdom: int = Field(..., ge=1, le=30)
    charisma: int = Field(..., ge=1, le=30)


class Spell(ContentModel):
    name: str
    level: int = Field(..., ge=0, le=9, description="Spell level (0 for cantrips)")
    description: str


class Skill(ContentModel):
    name: str
    proficiency: bool
    modifier: int


class ClassFeature(ContentModel):
    name: str
    description: str
    level: int = Field(..., ge=1, le=20)


class Character(ContentModel):
    """A player or non-player character"""

    kind: Literal["character"] = "character"
    name: str = Field(..., description="Character name (name only, no race or class)")
    race: str
    class_: str = Field(..., alias="class")
    level: int = Field(..., ge=1, le=20)
    background: str
    history: str = Field(..., description="Backstory")
    personality: str
    attributes: Attributes
    expertise: List[str] = Field(default_factory=list)
    spells: List[Spell] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    traits: List[str] = Field(default_factory=list)
    racial_traits: Optional[List[str]] = None
    class_features: Optional[List[ClassFeature]] = None
    voice_description: str = Field(
        default="", description="Voice quality, e.g. 'Raspy voice'"
    )
    associated_mission: Optional[str] = None


class Environment(ContentModel):
    """A location the party can visit"""

    kind: Literal["environment"] = "environment"
    name: str
    description: str = Field(..., description="Visual description of the place")
    ambient: str = Field(..., description="Sounds, smells and ambient details")
    mood: str
    lighting: str
    features: List[str] = Field(default_factory=list)
    npcs: List[str] = Field(
        default_factory=list, description="NPCs present, 'Name - role' each"
    )
    current_conflict: Optional[str] = None
    adventure_hooks: Optional[List[str]] = None


class Objective(ContentModel):
    description: str
    primary: bool
    is_alternative: Optional[bool] = None
    path_type: Optional[Literal["combat", "social", "stealth", "mixed"]] = None


class Rewards(ContentModel):
    xp: Optional[int] = Field(None, ge=0)
    gold: Optional[int] = Field(None, ge=0)
    items: List[str] = Field(default_factory=list)


class PowerfulItem(ContentModel):
    name: str
    status: str = Field(..., description="How the item is controlled at the table")


class ChoiceBasedReward(ContentModel):
    condition: str
    rewards: Rewards


class Mission(ContentModel):
    """A quest with objectives and rewards"""

    kind: Literal["mission"] = "mission"
    title: str
    description: str
    context: str
    objectives: List[Objective] = Field(default_factory=list)
    rewards: Rewards = Field(default_factory=Rewards)
    difficulty: Literal["easy", "medium", "hard", "deadly"]
    related_npcs: List[str] = Field(default_factory=list, alias="relatedNPCs")
    related_locations: List[str] = Field(default_factory=list)
    recommended_level: Optional[str] = None
    powerful_items: Optional[List[PowerfulItem]] = None
    possible_outcomes: Optional[List[str]] = None
    choice_based_rewards: Optional[List[ChoiceBasedReward]] = None


GeneratedContent = Annotated[
    Union[Character, Environment, Mission], Field(discriminator="kind")
]

MODEL_BY_KIND: Dict[str, type] = {
    "character": Character,
    "environment": Environment,
    "mission": Mission,
}

_content_adapter: TypeAdapter = TypeAdapter(GeneratedContent)


def infer_kind(data: Dict[str, Any]) -> Optional[str]:
    """
    Determine the kind of a content payload.

    The explicit ``kind`` tag wins. Untagged payloads are classified from
    their identifying fields; None means the shape matches no kind.
    """
    kind = data.get("kind")
    if kind in CONTENT_KINDS:
        return kind
    if "race" in data and "name" in data:
        return "character"
    if "title" in data and "description" in data:
        return "mission"
    if "name" in data and "description" in data:
        return "environment"
    return None


def parse_content(data: Dict[str, Any], kind: Optional[str] = None):
    """
    Validate a content payload into its model.

    Args:
        data: Content payload (camelCase keys)
        kind: Expected kind; when given it must agree with the payload's tag

    Returns:
        Character, Environment or Mission instance

    Raises:
        ValueError: If the kind is unknown or contradicts the payload
        pydantic.ValidationError: If the payload does not match its kind
    """
    if not isinstance(data, dict):
        raise ValueError("Content must be a JSON object")

    detected = infer_kind(data)
    if kind is not None:
        if kind not in CONTENT_KINDS:
            raise ValueError(f"Unknown content type: {kind}")
        if data.get("kind") not in (None, kind):
            raise ValueError(
                f"Content is tagged '{data.get('kind')}' but '{kind}' was expected"
            )
        detected = kind
    if detected is None:
        raise ValueError("Unable to determine content type")

    return _content_adapter.validate_python({**data, "kind": detected})


def dump_content(model: BaseModel) -> Dict[str, Any]:
    """Serialize a content model to its camelCase wire form."""
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")


def tag_content(data: Dict[str, Any], kind: str) -> Dict[str, Any]:
    """Return a copy of ``data`` carrying the ``kind`` tag."""
    return {**data, "kind": kind}


def missing_required_fields(kind: str, data: Dict[str, Any]) -> List[str]:
    """List the identifying fields a payload lacks for its kind."""
    return [field for field in REQUIRED_FIELDS[kind] if not data.get(field)]


def llm_json_schema(kind: str) -> Dict[str, Any]:
    """JSON schema handed to the LLM for structured output (no ``kind`` tag)."""
    schema = MODEL_BY_KIND[kind].model_json_schema(by_alias=True)
    schema.get("properties", {}).pop("kind", None)
    schema["description"] = f"A D&D 5e {kind}"
    return schema
