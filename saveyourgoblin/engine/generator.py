"""
Content generator for characters, environments and missions.

Full artifacts and single sections are requested from the LLM with a JSON
schema for structured output. When no provider is configured, or the LLM
call fails or returns something that does not validate, the generator
falls back to the sample content in ``engine.mock``.
"""

import json
from typing import Any, Dict, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from saveyourgoblin import prompts
from saveyourgoblin.config import settings
from saveyourgoblin.providers import BaseProvider, ProviderError, create_provider
from saveyourgoblin.schemas.advanced import normalize_generation_params
from saveyourgoblin.schemas.content import dump_content, llm_json_schema, parse_content
from saveyourgoblin.schemas.reference import (
    SPELLCASTING_CLASSES,
    normalize_background_name,
    normalize_class_name,
)
from saveyourgoblin.schemas.sections import (
    get_section_spec,
    validate_section_item,
    validate_section_value,
)
from saveyourgoblin.utils.logger import get_logger

from .mock import mock_content, mock_section
from .rules import validate_character_skills

logger = get_logger(__name__)


def build_advanced_constraints(kind: str, advanced: Optional[Dict[str, Any]]) -> str:
    """Render advanced input as a block of hard requirements for the prompt."""
    if not advanced:
        return ""

    constraints: List[str] = []
    if kind == "character":
        char_class = normalize_class_name(advanced.get("class"))
        background = normalize_background_name(advanced.get("background"))
        if advanced.get("level"):
            constraints.append(f"The character MUST be exactly level {advanced['level']}.")
        if char_class:
            constraints.append(f'The character MUST be a {char_class}. The "class" field must be exactly "{char_class}".')
        if advanced.get("race"):
            constraints.append(f'The character MUST be a {advanced["race"]}. The "race" field must be exactly "{advanced["race"]}".')
        if background:
            constraints.append(f'The character MUST have the {background} background. The "background" field must be exactly "{background}".')
    elif kind == "environment":
        if advanced.get("mood"):
            constraints.append(f"The environment MUST have a {advanced['mood']} mood.")
        if advanced.get("lighting"):
            constraints.append(f"The environment MUST have {advanced['lighting']} lighting.")
        if advanced.get("npcCount") is not None:
            count = advanced["npcCount"]
            constraints.append(f"The environment MUST include exactly {count} NPC{'s' if count != 1 else ''}.")
    elif kind == "mission":
        if advanced.get("difficulty"):
            constraints.append(f"The mission MUST be {advanced['difficulty']} difficulty.")
        if advanced.get("objectiveCount"):
            constraints.append(f"The mission MUST have exactly {advanced['objectiveCount']} objectives.")
        if advanced.get("rewardTypes"):
            constraints.append(f"The mission rewards MUST include: {', '.join(advanced['rewardTypes'])}.")

    if not constraints:
        return ""
    return prompts.ADVANCED_CONSTRAINTS_BLOCK.format(
        constraints="\n".join(f"- {c}" for c in constraints)
    )


def summarize_content(kind: str, content: Dict[str, Any]) -> str:
    """One-line summary used as the seed of a variation."""
    if kind == "character":
        detail = content.get("personality") or content.get("history") or ""
        return (
            f"{content.get('name')}, a {content.get('race')} {content.get('class')} "
            f"(Level {content.get('level')}). {detail}"
        )
    label = content.get("name") if kind == "environment" else content.get("title")
    return f"{label}: {(content.get('description') or '')[:200]}..."


def _section_context(kind: str, content: Dict[str, Any]) -> str:
    if kind == "character":
        return (
            f"Character: {content.get('name')}, {content.get('race')} "
            f"{content.get('class')} (Level {content.get('level')})"
        )
    if kind == "environment":
        return f"Environment: {content.get('name')}"
    return f"Mission: {content.get('title')}"


def _section_schema(kind: str, section: str, item: bool = False) -> Dict[str, Any]:
    """Wrap a section's (or one element's) schema in an object so every reply is a JSON object."""
    spec = get_section_spec(kind, section)
    adapter = spec.item_adapter if item else spec.adapter
    inner = adapter.json_schema(by_alias=True)
    defs = inner.pop("$defs", None)
    schema: Dict[str, Any] = {
        "title": f"{section}_{'item' if item else 'section'}",
        "description": f"Regenerated {section} {'entry ' if item else ''}of a {kind}",
        "type": "object",
        "properties": {"value": inner},
        "required": ["value"],
    }
    if defs:
        schema["$defs"] = defs
    return schema


class ContentGenerator:
    """
    Generates RPG content through the configured LLM provider.

    Attributes:
        provider: LLM provider, or None to always serve sample content
    """

    def __init__(self, provider: Optional[BaseProvider] = None, use_mock: bool = False):
        if use_mock:
            self.provider: Optional[BaseProvider] = None
        else:
            self.provider = provider if provider is not None else create_provider()

    @property
    def uses_mock(self) -> bool:
        return self.provider is None

    def _build_messages(
        self,
        scenario: str,
        kind: str,
        campaign_context: Optional[str],
        advanced: Optional[Dict[str, Any]],
        params: Dict[str, Any],
    ) -> List[Any]:
        advanced = advanced or {}
        fmt = {
            "tone": prompts.TONE_INSTRUCTIONS[params["tone"]],
            "complexity": prompts.COMPLEXITY_INSTRUCTIONS[params["complexity"]],
            "language_rule": prompts.LANGUAGE_RULE,
        }
        user_fmt = {
            "scenario": scenario,
            "constraints": build_advanced_constraints(kind, advanced),
            "campaign_context": prompts.CAMPAIGN_CONTEXT_BLOCK.format(campaign_context=campaign_context)
            if campaign_context
            else "",
        }

        if kind == "character":
            char_class = normalize_class_name(advanced.get("class"))
            level = advanced.get("level")
            system = prompts.CHARACTER_SYSTEM.format(**fmt)
            user = prompts.CHARACTER_USER.format(
                level_rule=f"exactly {level}" if level else "between 1-10, chosen to fit the scenario",
                spell_rule=(
                    "appropriate spells for the class and level"
                    if char_class is None or char_class in SPELLCASTING_CLASSES
                    else "none, this class does not cast spells (empty list)"
                ),
                **user_fmt,
            )
        elif kind == "environment":
            npc_count = advanced.get("npcCount")
            system = prompts.ENVIRONMENT_SYSTEM.format(**fmt)
            user = prompts.ENVIRONMENT_USER.format(
                npc_rule=f"exactly {npc_count}" if npc_count is not None else "the key NPCs present",
                **user_fmt,
            )
        elif kind == "mission":
            objective_count = advanced.get("objectiveCount")
            reward_types = advanced.get("rewardTypes")
            system = prompts.MISSION_SYSTEM.format(**fmt)
            user = prompts.MISSION_USER.format(
                objective_rule=f"exactly {objective_count}" if objective_count else "2-4, mixing primary and optional",
                reward_rule=", ".join(reward_types) if reward_types else "XP, gold, items",
                **user_fmt,
            )
        else:
            raise ValueError(f"Unknown content type: {kind}")

        return [SystemMessage(content=system), HumanMessage(content=user)]

    async def generate(
        self,
        scenario: str,
        kind: str,
        campaign_context: Optional[str] = None,
        advanced_input: Optional[Dict[str, Any]] = None,
        generation_params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Generate a complete artifact.

        Args:
            scenario: Free-text scenario from the user
            kind: character, environment or mission
            campaign_context: Optional campaign summary to stay consistent with
            advanced_input: Validated advanced input (camelCase keys)
            generation_params: Raw generation parameters (normalized here)

        Returns:
            Content dict tagged with its kind
        """
        params = normalize_generation_params(generation_params)
        logger.info(f"Generating {kind} (tone={params['tone']}, complexity={params['complexity']})")

        if self.provider is None:
            return mock_content(scenario, kind, advanced_input)

        messages = self._build_messages(scenario, kind, campaign_context, advanced_input, params)
        try:
            response = await self.provider.chat(
                messages,
                json_schema=llm_json_schema(kind),
                temperature=params["temperature"],
            )
            content = dump_content(parse_content(response.parse_json(), kind))
        except (ProviderError, ValueError) as e:
            logger.warning(f"{kind} generation failed, using sample content: {e}")
            return mock_content(scenario, kind, advanced_input)

        if kind == "character":
            content = validate_character_skills(content)
        logger.info(f"✓ Generated {kind}: {content.get('name') or content.get('title')}")
        return content

    async def generate_section(
        self,
        scenario: str,
        kind: str,
        section: str,
        current_content: Dict[str, Any],
        section_index: Optional[int] = None,
    ) -> Any:
        """
        Regenerate one section of an existing artifact.

        With ``section_index`` only that element of a list section is
        generated, and the single element is returned.

        Raises:
            InvalidSectionError: If the section is not regenerable for the kind
            ValueError: If ``section_index`` is given for a section that is not a list
        """
        spec = get_section_spec(kind, section)
        if section_index is not None and not spec.is_list:
            raise ValueError(f'Section "{section}" is not a list')
        logger.info(f"Regenerating {kind}.{section} (index={section_index})")

        if self.provider is None:
            return self._finish_section(
                kind, section, current_content, section_index, mock_section(kind, section, section_index)
            )

        fmt = {
            "section": section,
            "kind": kind,
            "summary": _section_context(kind, current_content),
            "scenario": scenario,
            "current_content": json.dumps(current_content, indent=2, ensure_ascii=False),
            "description": spec.description,
        }
        if section_index is None:
            user = prompts.SECTION_USER.format(**fmt)
        else:
            current_list = current_content.get(section) or []
            current_item = current_list[section_index] if section_index < len(current_list) else None
            user = prompts.SECTION_ITEM_USER.format(
                number=section_index + 1,
                current_item=json.dumps(current_item, ensure_ascii=False),
                **fmt,
            )
        messages = [
            SystemMessage(
                content=prompts.SECTION_SYSTEM.format(
                    section=section, kind=kind, language_rule=prompts.LANGUAGE_RULE
                )
            ),
            HumanMessage(content=user),
        ]
        try:
            response = await self.provider.chat(
                messages,
                json_schema=_section_schema(kind, section, item=section_index is not None),
                temperature=settings.section_temperature,
            )
            payload = response.parse_json()
            if not isinstance(payload, dict) or "value" not in payload:
                raise ValueError("Section response is missing 'value'")
            if section_index is None:
                value = validate_section_value(kind, section, payload["value"])
            else:
                value = validate_section_item(kind, section, payload["value"])
        except (ProviderError, ValueError) as e:
            logger.warning(f"Section regeneration failed, using sample section: {e}")
            value = mock_section(kind, section, section_index)

        return self._finish_section(kind, section, current_content, section_index, value)

    def _finish_section(
        self,
        kind: str,
        section: str,
        current_content: Dict[str, Any],
        section_index: Optional[int],
        value: Any,
    ) -> Any:
        if kind != "character" or section != "skills":
            return value
        # Skill modifiers are derived from the character, never taken from the model
        if section_index is None:
            return validate_character_skills({**current_content, "skills": value})["skills"]
        return validate_character_skills({**current_content, "skills": [value]})["skills"][0]

    async def generate_variation(
        self,
        original_content: Dict[str, Any],
        kind: str,
        original_scenario: str,
        variation_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Generate a new artifact similar in theme to an existing one."""
        instructions = (
            f" Make the following specific changes: {variation_prompt}"
            if variation_prompt
            else prompts.VARIATION_DEFAULT_INSTRUCTIONS
        )
        scenario = prompts.VARIATION_SCENARIO.format(
            kind=kind,
            summary=summarize_content(kind, original_content),
            instructions=instructions,
            scenario=original_scenario,
        )
        return await self.generate(
            scenario,
            kind,
            generation_params={"temperature": settings.variation_temperature},
        )
