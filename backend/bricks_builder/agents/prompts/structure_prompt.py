"""
Prompt building and response parsing for the structure agent

build_structure_prompt turns a StructureAgentInput into the system and user
prompts sent to the text generation CLI. extract_json pulls a JSON object out
of the free-form reply, trying three strategies in order and reporting which
one succeeded.
"""
import json
import re
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from bricks_builder.agents.constants import AGENT_LIMITS
from bricks_builder.agents.structure_contracts import (ReferenceScenario,
                                                       StructureAgentInput)
from bricks_builder.components.prompt_repository import \
    get_default_prompt_repository

STRUCTURE_PROMPT_COMPONENT = "structure_agent"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")


class StructurePrompt(BaseModel):
    system_prompt: str
    user_prompt: str

    def combined(self) -> str:
        """Single text for CLIs that take one prompt on stdin"""
        return f"{self.system_prompt}\n\n---\n\n{self.user_prompt}"


def format_few_shot_examples(scenarios: Sequence[ReferenceScenario]) -> str:
    """Render reference scenarios as numbered JSON code blocks"""
    if not scenarios:
        return ""

    examples = "\n\n".join(
        f"### Example {i}: {scenario.name}\n```json\n"
        f"{json.dumps(scenario.expected_output, indent=2, ensure_ascii=False)}\n```"
        for i, scenario in enumerate(scenarios, start=1)
    )
    return (
        "\n\n## Reference Examples\n"
        "Here are similar layouts and their correct Bricks JSON output:\n\n"
        f"{examples}"
    )


def _truncate_dump(dump: Any) -> str:
    text = json.dumps(dump, separators=(",", ":"), ensure_ascii=False)
    if len(text) > AGENT_LIMITS.MAX_ACSS_DUMP_CHARS:
        return text[:AGENT_LIMITS.MAX_ACSS_DUMP_CHARS] + "..."
    return text


def build_structure_prompt(
    input_data: StructureAgentInput,
    system_prompt: Optional[str] = None
) -> StructurePrompt:
    """
    Build the prompts for one structure generation call

    Args:
        input_data: Structure agent input
        system_prompt: Base instructions; defaults to the packaged
            structure_agent.system prompt

    Returns:
        StructurePrompt with few-shot examples appended to the system prompt
    """
    if system_prompt is None:
        system_prompt = get_default_prompt_repository().get_system_prompt(STRUCTURE_PROMPT_COMPONENT)

    parts = ["Generate a Bricks Builder JSON structure for the following:"]

    if input_data.description:
        parts.append(f"\nDescription: {input_data.description}")

    if input_data.acss_js_dump is not None:
        parts.append(f"\nACSS JS Dump:\n{_truncate_dump(input_data.acss_js_dump)}")

    if input_data.container_grid_code:
        parts.append(f"\nContainer Grid CSS:\n{input_data.container_grid_code}")

    if input_data.reference_scenarios:
        system_prompt += format_few_shot_examples(input_data.reference_scenarios)

    return StructurePrompt(system_prompt=system_prompt, user_prompt="\n".join(parts))


class ExtractionStrategy(str, Enum):
    DIRECT = "direct"
    FENCED_BLOCK = "fenced_block"
    BRACE_SCAN = "brace_scan"
    FAILED = "failed"


class ExtractionAttempt(BaseModel):
    strategy: ExtractionStrategy
    succeeded: bool
    error: Optional[str] = None


class JsonExtraction(BaseModel):
    """Tagged result of extract_json"""
    strategy: ExtractionStrategy
    value: Any = None
    attempts: List[ExtractionAttempt] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.strategy != ExtractionStrategy.FAILED


class JsonStrategyError(ValueError):
    """A single extraction strategy could not produce a JSON object or array"""
    pass


def _loads_container(text: str) -> Any:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise JsonStrategyError(f"invalid JSON: {e.msg} at line {e.lineno} column {e.colno}") from e
    if not isinstance(value, (dict, list)):
        raise JsonStrategyError(f"expected an object or array, got {type(value).__name__}")
    return value


def parse_direct(text: str) -> Any:
    """Parse the whole text as JSON"""
    return _loads_container(text.strip())


def parse_fenced_block(text: str) -> Any:
    """Parse the first ``` or ```json code block"""
    match = _FENCED_BLOCK.search(text)
    if not match:
        raise JsonStrategyError("no fenced code block")
    return _loads_container(match.group(1).strip())


def parse_brace_scan(text: str) -> Any:
    """Parse the span from the first '{' to the last '}'"""
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        raise JsonStrategyError("no brace-delimited span")
    return _loads_container(text[first:last + 1])


STRATEGIES: Tuple[Tuple[ExtractionStrategy, Callable[[str], Any]], ...] = (
    (ExtractionStrategy.DIRECT, parse_direct),
    (ExtractionStrategy.FENCED_BLOCK, parse_fenced_block),
    (ExtractionStrategy.BRACE_SCAN, parse_brace_scan),
)


def extract_json(text: str) -> JsonExtraction:
    """
    Extract a JSON object or array from free-form text

    Strategies run in order (direct, fenced block, brace scan) and the first
    success wins. Every attempt is recorded on the result.
    """
    attempts: List[ExtractionAttempt] = []
    for strategy, parse in STRATEGIES:
        try:
            value = parse(text)
        except JsonStrategyError as e:
            attempts.append(ExtractionAttempt(strategy=strategy, succeeded=False, error=str(e)))
            continue
        attempts.append(ExtractionAttempt(strategy=strategy, succeeded=True))
        return JsonExtraction(strategy=strategy, value=value, attempts=attempts)

    return JsonExtraction(strategy=ExtractionStrategy.FAILED, attempts=attempts)


def extract_json_from_response(text: str) -> Optional[Any]:
    """Extracted value, or None when no strategy succeeded"""
    result = extract_json(text)
    return result.value if result.ok else None
