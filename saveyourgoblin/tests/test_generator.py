"""
Unit tests for the content generator with a stubbed LLM provider.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from saveyourgoblin.engine import (
    ContentGenerator,
    ability_modifier,
    build_advanced_constraints,
    proficiency_bonus,
    summarize_content,
    validate_character_skills,
)
from saveyourgoblin.engine.mock import mock_character, mock_environment, mock_mission
from saveyourgoblin.providers import BaseProvider, ProviderError, ProviderResponse
from saveyourgoblin.schemas import InvalidSectionError


def stub_provider(*replies):
    """Provider whose chat() returns (or raises) the given replies in order."""
    provider = MagicMock(spec=BaseProvider)
    side_effect = [
        reply if isinstance(reply, Exception) else ProviderResponse(content=reply)
        for reply in replies
    ]
    provider.chat = AsyncMock(side_effect=side_effect)
    return provider


class TestRules:
    @pytest.mark.parametrize("level,bonus", [(1, 2), (4, 2), (5, 3), (9, 4), (13, 5), (17, 6), (20, 6)])
    def test_proficiency_bonus(self, level, bonus):
        assert proficiency_bonus(level) == bonus

    def test_ability_modifier(self):
        assert ability_modifier(10) == 0
        assert ability_modifier(8) == -1
        assert ability_modifier(17) == 3

    def test_skills_recomputed(self):
        character = {
            "level": 5,
            "attributes": {"dexterity": 16, "charisma": 14, "strength": 8},
            "expertise": ["Stealth"],
            "skills": [
                {"name": "Stealth", "proficiency": True, "modifier": 0},
                {"name": "Persuasion", "proficiency": True, "modifier": 0},
                {"name": "Athletics", "proficiency": False, "modifier": 9},
            ],
        }
        skills = validate_character_skills(character)["skills"]
        assert [s["modifier"] for s in skills] == [3 + 6, 2 + 3, -1]
        assert character["skills"][0]["modifier"] == 0


class TestPromptHelpers:
    def test_character_constraints(self):
        block = build_advanced_constraints("character", {"level": 5, "class": "mago", "background": "artista"})
        assert "exactly level 5" in block
        assert '"Wizard"' in block
        assert '"Entertainer"' in block

    def test_environment_constraints(self):
        block = build_advanced_constraints("environment", {"npcCount": 1, "mood": "eerie"})
        assert "exactly 1 NPC." in block
        assert "eerie mood" in block

    def test_empty_constraints(self):
        assert build_advanced_constraints("mission", None) == ""
        assert build_advanced_constraints("mission", {}) == ""

    def test_summaries(self):
        character = mock_character("A bard named Lyra")
        assert summarize_content("character", character).startswith("Lyra, a ")
        environment = mock_environment("A tavern")
        assert summarize_content("environment", environment).startswith(environment["name"])
        mission = mock_mission("A heist")
        assert summarize_content("mission", mission).startswith(mission["title"])


class TestMockGeneration:
    @pytest.mark.asyncio
    async def test_mock_content(self):
        generator = ContentGenerator(use_mock=True)
        assert generator.uses_mock
        content = await generator.generate("A mysterious tavern", "environment", advanced_input={"npcCount": 0})
        assert content["kind"] == "environment"
        assert content["npcs"] == []

    @pytest.mark.asyncio
    async def test_mock_section(self):
        generator = ContentGenerator(use_mock=True)
        value = await generator.generate_section("A bard", "character", "traits", mock_character("A bard"))
        assert value == ["Mock trait 1", "Mock trait 2"]

    @pytest.mark.asyncio
    async def test_invalid_section(self):
        generator = ContentGenerator(use_mock=True)
        with pytest.raises(InvalidSectionError):
            await generator.generate_section("A bard", "character", "npcs", mock_character("A bard"))


class TestProviderGeneration:
    @pytest.mark.asyncio
    async def test_generate_uses_schema_and_temperature(self):
        reply = mock_environment("A tavern")
        del reply["kind"]
        provider = stub_provider(json.dumps(reply))
        generator = ContentGenerator(provider=provider)

        content = await generator.generate(
            "A tavern", "environment", generation_params={"temperature": 9, "tone": "serious"}
        )

        assert content["kind"] == "environment"
        assert content["name"] == reply["name"]
        kwargs = provider.chat.call_args.kwargs
        assert kwargs["temperature"] == 1.5
        assert "npcs" in kwargs["json_schema"]["properties"]

    @pytest.mark.asyncio
    async def test_character_skills_corrected(self):
        reply = mock_character("A rogue named Vex", {"class": "Rogue", "level": 5})
        reply["skills"] = [{"name": "Stealth", "proficiency": True, "modifier": 99}]
        generator = ContentGenerator(provider=stub_provider(json.dumps(reply)))

        content = await generator.generate("A rogue named Vex", "character")

        dex_mod = ability_modifier(reply["attributes"]["dexterity"])
        assert content["skills"][0]["modifier"] == dex_mod + 2 * proficiency_bonus(5)

    @pytest.mark.asyncio
    async def test_fenced_json_is_accepted(self):
        reply = mock_mission("A heist")
        generator = ContentGenerator(provider=stub_provider(f"```json\n{json.dumps(reply)}\n```"))
        content = await generator.generate("A heist", "mission")
        assert content["title"] == reply["title"]

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self):
        generator = ContentGenerator(provider=stub_provider(ProviderError("timeout")))
        content = await generator.generate("A bard named Lyra", "character")
        assert content == mock_character("A bard named Lyra")

    @pytest.mark.asyncio
    async def test_invalid_reply_falls_back(self):
        generator = ContentGenerator(provider=stub_provider('{"title": "No description"}'))
        content = await generator.generate("A heist", "mission")
        assert content == mock_mission("A heist")

    @pytest.mark.asyncio
    async def test_section_value_unwrapped(self):
        provider = stub_provider(json.dumps({"value": ["Old Tom - innkeeper"]}))
        generator = ContentGenerator(provider=provider)

        value = await generator.generate_section("A tavern", "environment", "npcs", mock_environment("A tavern"))

        assert value == ["Old Tom - innkeeper"]
        schema = provider.chat.call_args.kwargs["json_schema"]
        assert schema["required"] == ["value"]

    @pytest.mark.asyncio
    async def test_section_without_value_falls_back(self):
        generator = ContentGenerator(provider=stub_provider(json.dumps(["Old Tom"])))
        value = await generator.generate_section("A tavern", "environment", "npcs", mock_environment("A tavern"))
        assert value == ["Mock NPC"]

    @pytest.mark.asyncio
    async def test_variation_temperature(self):
        original = mock_mission("The stolen flute")
        provider = stub_provider(json.dumps(mock_mission("Another flute")))
        generator = ContentGenerator(provider=provider)

        await generator.generate_variation(original, "mission", "The stolen flute", "Set it in winter")

        kwargs = provider.chat.call_args.kwargs
        assert kwargs["temperature"] == 0.9
        prompt = provider.chat.call_args.args[0][1].content
        assert "Set it in winter" in prompt
        assert original["title"] in prompt

    @pytest.mark.asyncio
    async def test_single_element_uses_item_schema(self):
        provider = stub_provider(json.dumps({"value": "B2 - a nervous bard"}))
        generator = ContentGenerator(provider=provider)
        environment = {**mock_environment("A tavern"), "npcs": ["A", "B", "C"]}

        value = await generator.generate_section("A tavern", "environment", "npcs", environment, section_index=1)

        assert value == "B2 - a nervous bard"
        schema = provider.chat.call_args.kwargs["json_schema"]
        assert schema["properties"]["value"]["type"] == "string"
        prompt = provider.chat.call_args.args[0][1].content
        assert "entry #2" in prompt
        assert '"B"' in prompt

    @pytest.mark.asyncio
    async def test_single_element_falls_back_to_one_sample(self):
        generator = ContentGenerator(provider=stub_provider(json.dumps({"value": ["too", "many"]})))
        environment = {**mock_environment("A tavern"), "npcs": ["A", "B", "C"]}
        value = await generator.generate_section("A tavern", "environment", "npcs", environment, section_index=2)
        assert value == "Mock NPC"

    @pytest.mark.asyncio
    async def test_index_on_scalar_section(self):
        generator = ContentGenerator(use_mock=True)
        with pytest.raises(ValueError):
            await generator.generate_section(
                "A tavern", "environment", "currentConflict", mock_environment("A tavern"), section_index=0
            )
