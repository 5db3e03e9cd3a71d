"""
Test content, section and advanced input schemas
"""

import pytest
from pydantic import ValidationError

from saveyourgoblin.engine.mock import mock_character, mock_environment, mock_mission
from saveyourgoblin.schemas import (
    InvalidSectionError,
    dump_content,
    infer_kind,
    missing_required_fields,
    normalize_generation_params,
    parse_advanced_input,
    parse_content,
    regenerable_sections,
    section_label,
    validate_advanced_input,
    validate_section_value,
)
from saveyourgoblin.schemas.content import llm_json_schema
from saveyourgoblin.schemas.reference import normalize_background_name, normalize_class_name


class TestContentModels:
    def test_character_wire_aliases(self):
        data = mock_character("A bard named Lyra")
        model = parse_content(data, "character")
        assert model.class_ == data["class"]

        dumped = dump_content(model)
        assert dumped["class"] == data["class"]
        assert "class_" not in dumped
        assert dumped["voiceDescription"] == data["voiceDescription"]

    def test_mission_related_npcs_alias(self):
        data = mock_mission("The stolen flute")
        dumped = dump_content(parse_content(data))
        assert "relatedNPCs" in dumped
        assert "relatedNpcs" not in dumped

    def test_kind_conflict(self):
        with pytest.raises(ValueError):
            parse_content(mock_environment("A tavern"), "mission")

    def test_invalid_payload(self):
        with pytest.raises(ValidationError):
            parse_content({"kind": "character", "name": "Lyra"})

    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"kind": "mission", "name": "x", "race": "y"}, "mission"),
            ({"name": "Lyra", "race": "Elf"}, "character"),
            ({"title": "Heist", "description": "Steal it"}, "mission"),
            ({"name": "Tavern", "description": "Smoky"}, "environment"),
            ({"foo": "bar"}, None),
        ],
    )
    def test_infer_kind(self, data, expected):
        assert infer_kind(data) == expected

    def test_missing_required_fields(self):
        assert missing_required_fields("character", {"name": "Lyra", "race": ""}) == ["race", "class"]
        assert missing_required_fields("mission", mock_mission("A heist")) == []

    def test_llm_schema_has_no_kind(self):
        schema = llm_json_schema("environment")
        assert "kind" not in schema["properties"]
        assert "npcs" in schema["properties"]


class TestSections:
    def test_section_lists(self):
        assert regenerable_sections("environment") == ["npcs", "features", "adventureHooks", "currentConflict"]
        assert "rewards" in regenerable_sections("mission")
        assert regenerable_sections("dragon") == []

    def test_labels(self):
        assert section_label("character", "classFeatures") == "Class Features"
        assert section_label("mission", "objectives", 2) == "Objectives #3"

    def test_validate_section_value(self):
        value = validate_section_value(
            "mission", "objectives", [{"description": "Find the flute", "primary": True, "pathType": "stealth"}]
        )
        assert value == [{"description": "Find the flute", "primary": True, "pathType": "stealth"}]

    def test_invalid_section(self):
        with pytest.raises(InvalidSectionError) as exc_info:
            validate_section_value("character", "npcs", [])
        assert str(exc_info.value) == 'Invalid section "npcs" for content type "character"'


class TestAdvancedInput:
    def test_valid_character(self):
        assert validate_advanced_input("character", {"level": 5, "class": "Bard", "race": "Tiefling"}) == {}
        model = parse_advanced_input("character", {"level": 5, "class": "Bard"})
        assert model.model_dump(by_alias=True, exclude_none=True) == {"level": 5, "class": "Bard"}

    def test_level_out_of_range(self):
        errors = validate_advanced_input("character", {"level": 25})
        assert list(errors) == ["level"]

    def test_strict_types(self):
        errors = validate_advanced_input("environment", {"npcCount": "3"})
        assert "npcCount" in errors

    def test_unknown_field(self):
        errors = validate_advanced_input("mission", {"difficulty": "hard", "bossName": "Grug"})
        assert "bossName" in errors

    def test_unknown_choice(self):
        assert "rewardTypes" in validate_advanced_input("mission", {"rewardTypes": ["xp", "land"]})
        assert "objectiveCount" in validate_advanced_input("mission", {"objectiveCount": 1})

    def test_absent_input(self):
        assert validate_advanced_input("mission", None) == {}
        assert parse_advanced_input("mission", {}) is None


class TestGenerationParams:
    @pytest.mark.parametrize(
        "temperature,expected",
        [(2.0, 1.5), (-1, 0.1), (0.8, 0.8), (None, 0.8), ("hot", 0.8), (True, 0.8), (float("nan"), 0.8)],
    )
    def test_temperature_clamped(self, temperature, expected):
        assert normalize_generation_params({"temperature": temperature})["temperature"] == expected

    def test_defaults(self):
        assert normalize_generation_params(None) == {
            "temperature": 0.8,
            "tone": "balanced",
            "complexity": "standard",
        }

    def test_idempotent(self):
        once = normalize_generation_params({"temperature": 3, "tone": "playful", "complexity": "huge"})
        assert normalize_generation_params(once) == once
        assert once == {"temperature": 1.5, "tone": "playful", "complexity": "standard"}


class TestReferenceNames:
    def test_class_names(self):
        assert normalize_class_name(" wizard ") == "Wizard"
        assert normalize_class_name("guerreiro") == "Fighter"
        assert normalize_class_name("Artificer") == "Artificer"
        assert normalize_class_name("") is None

    def test_background_names(self):
        assert normalize_background_name("folk hero") == "Folk Hero"
        assert normalize_background_name("artista") == "Entertainer"
