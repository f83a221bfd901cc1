from bricks_builder.agents.prompts.structure_prompt import (
    ExtractionStrategy, JsonExtraction, StructurePrompt,
    build_structure_prompt, extract_json, extract_json_from_response,
    format_few_shot_examples)

__all__ = [
    "ExtractionStrategy",
    "JsonExtraction",
    "StructurePrompt",
    "build_structure_prompt",
    "extract_json",
    "extract_json_from_response",
    "format_few_shot_examples",
]
