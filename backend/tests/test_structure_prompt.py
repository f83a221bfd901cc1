"""
Tests for structure prompt building and JSON extraction
"""
import json

import pytest

from bricks_builder.agents.prompts.structure_prompt import (
    ExtractionStrategy, build_structure_prompt, extract_json,
    extract_json_from_response, format_few_shot_examples, parse_brace_scan,
    parse_direct, parse_fenced_block)
from bricks_builder.agents.structure_contracts import (ReferenceScenario,
                                                       StructureAgentInput)
from bricks_builder.components.prompt_repository import (
    ComponentPromptRepository, PromptNotFoundError)


class TestBuildStructurePrompt:

    def test_default_system_prompt_is_packaged(self):
        prompt = build_structure_prompt(StructureAgentInput(description="Hero"))

        assert "You are a Bricks Builder expert" in prompt.system_prompt
        assert "Return ONLY a JSON code block" in prompt.system_prompt

    def test_user_prompt_sections(self):
        prompt = build_structure_prompt(
            StructureAgentInput(
                description="Hero",
                acss_js_dump={"spacing": {"m": "1rem"}},
                container_grid_code=".grid { display: grid; }",
            ),
            system_prompt="SYSTEM",
        )

        assert prompt.user_prompt == (
            "Generate a Bricks Builder JSON structure for the following:\n"
            "\nDescription: Hero\n"
            '\nACSS JS Dump:\n{"spacing":{"m":"1rem"}}\n'
            "\nContainer Grid CSS:\n.grid { display: grid; }"
        )
        assert prompt.system_prompt == "SYSTEM"

    def test_only_header_without_inputs(self):
        prompt = build_structure_prompt(StructureAgentInput(), system_prompt="SYSTEM")
        assert prompt.user_prompt == "Generate a Bricks Builder JSON structure for the following:"

    def test_empty_dump_still_included(self):
        prompt = build_structure_prompt(StructureAgentInput(acss_js_dump={}), system_prompt="SYSTEM")
        assert prompt.user_prompt.endswith("\nACSS JS Dump:\n{}")

    def test_large_dump_truncated(self):
        dump = {"values": "x" * 5000}
        prompt = build_structure_prompt(StructureAgentInput(acss_js_dump=dump), system_prompt="SYSTEM")

        dump_text = prompt.user_prompt.split("ACSS JS Dump:\n", 1)[1]
        assert len(dump_text) == 4000 + len("...")
        assert dump_text.endswith("...")

    def test_few_shot_examples_appended_to_system(self):
        scenarios = [
            ReferenceScenario(name="Hero", expected_output={"id": "a"}),
            ReferenceScenario(name="Grid", expected_output={"id": "b"}),
        ]
        prompt = build_structure_prompt(StructureAgentInput(reference_scenarios=scenarios), system_prompt="SYSTEM")

        assert prompt.system_prompt.startswith("SYSTEM\n\n## Reference Examples\n")
        assert '### Example 1: Hero\n```json\n{\n  "id": "a"\n}\n```' in prompt.system_prompt
        assert "### Example 2: Grid" in prompt.system_prompt

    def test_no_examples_no_section(self):
        assert format_few_shot_examples([]) == ""

    def test_combined(self):
        prompt = build_structure_prompt(StructureAgentInput(description="Hero"), system_prompt="SYSTEM")
        combined = prompt.combined()

        assert combined.startswith("SYSTEM")
        assert combined.endswith("Description: Hero")


class TestPromptRepository:

    def test_custom_root(self, tmp_path):
        (tmp_path / "reviewer.system").write_text("Review things.\n", encoding="utf-8")
        repo = ComponentPromptRepository(prompts_root=tmp_path)

        assert repo.get_system_prompt("reviewer") == "Review things."

    def test_missing_prompt(self, tmp_path):
        with pytest.raises(PromptNotFoundError):
            ComponentPromptRepository(prompts_root=tmp_path).get_system_prompt("missing")


class TestExtractJson:

    @pytest.mark.parametrize("value", [
        {"id": "a", "children": [{"id": "b"}]},
        [1, 2, {"three": 3}],
        {},
    ])
    def test_direct(self, value):
        result = extract_json(json.dumps(value))

        assert result.ok
        assert result.strategy == ExtractionStrategy.DIRECT
        assert result.value == value

    def test_fenced_json_block(self):
        text = 'Here it is:\n```json\n{"id": "a"}\n```\nDone.'
        result = extract_json(text)

        assert result.strategy == ExtractionStrategy.FENCED_BLOCK
        assert result.value == {"id": "a"}
        assert [a.strategy for a in result.attempts] == [
            ExtractionStrategy.DIRECT,
            ExtractionStrategy.FENCED_BLOCK,
        ]
        assert result.attempts[0].succeeded is False

    def test_untagged_fence(self):
        assert extract_json('```\n[1, 2]\n```').value == [1, 2]

    def test_brace_scan(self):
        result = extract_json('The structure is {"id": "a", "name": "div"} as requested.')

        assert result.strategy == ExtractionStrategy.BRACE_SCAN
        assert result.value == {"id": "a", "name": "div"}

    def test_invalid_fence_falls_through_to_brace_scan(self):
        text = '```json\nnot json\n```\n{"id": "a"}'
        assert extract_json(text).strategy == ExtractionStrategy.BRACE_SCAN

    def test_prose_fails(self):
        result = extract_json("There is no JSON in this reply.")

        assert result.ok is False
        assert result.strategy == ExtractionStrategy.FAILED
        assert result.value is None
        assert len(result.attempts) == 3
        assert all(not a.succeeded and a.error for a in result.attempts)

    def test_scalars_are_not_accepted(self):
        assert extract_json("42").ok is False
        assert extract_json('"text"').ok is False

    def test_convenience_wrapper(self):
        assert extract_json_from_response('{"a": 1}') == {"a": 1}
        assert extract_json_from_response("nothing here") is None


class TestStrategies:

    def test_each_strategy_independent(self):
        fenced = '```json\n{"a": 1}\n```'

        assert parse_direct('{"a": 1}') == {"a": 1}
        assert parse_fenced_block(fenced) == {"a": 1}
        assert parse_brace_scan('prefix {"a": 1} suffix') == {"a": 1}

    def test_strategy_errors(self):
        with pytest.raises(ValueError, match="no fenced code block"):
            parse_fenced_block('{"a": 1}')
        with pytest.raises(ValueError, match="no brace-delimited span"):
            parse_brace_scan("}{")
