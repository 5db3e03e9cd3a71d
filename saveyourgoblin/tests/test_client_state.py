"""
Tests for the content store and request builder.
"""

import pytest

from saveyourgoblin.client import (
    ContentStore,
    GenerationFailed,
    RequestValidationError,
    build_generation_request,
)
from saveyourgoblin.engine.mock import mock_character


class TestContentStore:
    def test_merge_keeps_other_sections(self):
        store = ContentStore()
        content = mock_character("A bard named Lyra")
        store.replace(content, "A bard named Lyra", "character")

        merged = store.merge_section("traits", ["Bold"])

        assert merged is not content
        assert merged["traits"] == ["Bold"]
        assert content["traits"] != ["Bold"]
        for key in content:
            if key != "traits":
                assert merged[key] is content[key]

    def test_merge_without_content(self):
        with pytest.raises(GenerationFailed):
            ContentStore().merge_section("traits", [])

    def test_stale_token_is_discarded(self):
        store = ContentStore()
        first = store.begin_generation()
        second = store.begin_generation()

        assert store.replace({"name": "Old"}, "old", "character", first) is False
        assert store.content is None
        assert store.replace({"name": "New"}, "new", "character", second) is True
        assert store.content == {"name": "New"}

    def test_type_switch_clears_and_invalidates(self):
        store = ContentStore()
        token = store.begin_generation()
        store.replace({"name": "Lyra"}, "bard", "character", token)
        store.mark_saved("abc")

        store.set_content_type("mission")

        assert store.content is None
        assert store.content_id is None
        assert store.scenario is None
        assert not store.is_current(token)

    def test_same_type_keeps_content(self):
        store = ContentStore()
        store.replace({"name": "Lyra"}, "bard", "character")
        store.set_content_type("character")
        assert store.content == {"name": "Lyra"}

    def test_replace_forgets_library_id(self):
        store = ContentStore()
        store.replace({"name": "Lyra"}, "bard", "character")
        store.mark_saved("abc")
        store.replace({"name": "Kael"}, "fighter", "character")
        assert store.content_id is None

    def test_load_library_item(self):
        store = ContentStore()
        store.load({
            "id": "abc",
            "type": "environment",
            "scenario_input": "A tavern",
            "content_data": {"name": "The Gilded Griffin"},
        })
        assert store.content_id == "abc"
        assert store.content_type == "environment"
        assert store.scenario == "A tavern"


class TestBuildGenerationRequest:
    def test_basic_body(self):
        body = build_generation_request("  A bard named Lyra  ", "character")
        assert body == {
            "scenario": "A bard named Lyra",
            "contentType": "character",
            "generationParams": {"temperature": 0.8, "tone": "balanced", "complexity": "standard"},
        }

    def test_missing_scenario_and_type(self):
        with pytest.raises(RequestValidationError) as exc_info:
            build_generation_request("   ", "dragon")
        assert set(exc_info.value.errors) == {"scenario", "contentType"}

    def test_advanced_input_validated_in_advanced_mode(self):
        with pytest.raises(RequestValidationError) as exc_info:
            build_generation_request("A knight", "character", advanced_mode=True, advanced_input={"level": 25})
        assert "level" in exc_info.value.errors

    def test_advanced_input_ignored_outside_advanced_mode(self):
        body = build_generation_request("A knight", "character", advanced_input={"level": 25})
        assert "advancedInput" not in body

    def test_advanced_input_uses_wire_names(self):
        body = build_generation_request(
            "A cellar",
            "environment",
            advanced_mode=True,
            advanced_input={"mood": "eerie", "npcCount": 2},
        )
        assert body["advancedInput"] == {"mood": "eerie", "npcCount": 2}

    def test_params_clamped(self):
        body = build_generation_request(
            "A heist", "mission", generation_params={"temperature": 2.0, "tone": "grim"}
        )
        assert body["generationParams"] == {"temperature": 1.5, "tone": "balanced", "complexity": "standard"}

    def test_campaign_context(self):
        body = build_generation_request("A heist", "mission", campaign_context="Act II of the goblin war")
        assert body["campaignContext"] == "Act II of the goblin war"
