"""
Structure Agent
Generates a Bricks element tree from an ACSS JS dump, container grid code and
a layout description.

With the AI flag on, the agent asks the text generation CLI for the tree,
using reference scenarios as few-shot examples. Any failure on that path is
recorded as a warning and the deterministic template is used instead, so
execute() always returns a structure.
"""
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import ValidationError

from bricks_builder.agents.base_agent import BaseAgent
from bricks_builder.agents.constants import AGENT_LIMITS, CONFIDENCE_SCORING
from bricks_builder.agents.contracts import AgentContext
from bricks_builder.agents.prompts.structure_prompt import (
    build_structure_prompt, extract_json)
from bricks_builder.agents.structure_contracts import (BricksElement,
                                                       StructureAgentInput,
                                                       StructureAgentOutput,
                                                       StructureMetadata)
from bricks_builder.core.cancellation import OperationCancelled
from bricks_builder.core.config import get_settings
from bricks_builder.core.logging_config import LoggingConfig
from bricks_builder.core.text_generation import (TextGenerator,
                                                 build_text_generator)

logger = LoggingConfig.get_logger(__name__)

StructureInputLike = Union[StructureAgentInput, Dict[str, Any]]


class StructureGenerationError(Exception):
    """The generated structure could not be used"""
    pass


class StructureAgent(BaseAgent[StructureAgentInput, StructureAgentOutput]):
    """
    Agent producing Bricks Builder element structures

    Confidence is a fixed additive heuristic over which inputs were supplied
    (see CONFIDENCE_SCORING), not a measured quality score.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        text_generator: Optional[TextGenerator] = None,
        use_ai: Optional[bool] = None,
        system_prompt: Optional[str] = None
    ):
        super().__init__({"type": "StructureAgent", **(config or {})})
        settings = get_settings()

        self.use_ai = settings.structure_agent_use_ai if use_ai is None else use_ai
        self.generation_timeout_ms = settings.text_generation_timeout_seconds * 1000
        self.system_prompt = system_prompt

        if text_generator is None and self.use_ai:
            text_generator = build_text_generator(settings)
        self.text_generator = text_generator

    @staticmethod
    def coerce_input(input_data: StructureInputLike) -> StructureAgentInput:
        return StructureAgentInput.model_validate(input_data)

    def validate_input(self, input_data: StructureInputLike) -> None:
        self.coerce_input(input_data)

    async def analyze(self, input_data: StructureInputLike) -> StructureAgentOutput:
        """
        Run the agent logic directly, without the run() envelope

        Raises pydantic.ValidationError for malformed input.
        """
        return await self.execute(self.coerce_input(input_data), AgentContext())

    async def execute(
        self,
        input_data: StructureInputLike,
        context: AgentContext
    ) -> StructureAgentOutput:
        input_data = self.coerce_input(input_data)
        context.add_reasoning("Starting structure analysis...")

        structure: Optional[BricksElement] = None
        if self.use_ai and self.text_generator is not None:
            structure = await self._generate_with_ai(input_data, context)
        elif self.use_ai:
            context.add_warning("AI generation enabled but no text generator configured")

        ai_generated = structure is not None
        if structure is None:
            structure = self.generate_template(input_data)
            context.add_reasoning("Generated basic container structure")

        reference_names = input_data.reference_names()
        if reference_names:
            context.add_reasoning(f"Found {len(reference_names)} reference scenarios")
        elif ai_generated:
            context.add_warning("No reference scenarios available - generated without examples")
        else:
            context.add_warning("No reference scenarios available - using default template")

        elements_generated = structure.count_elements()
        context.update_metadata(elements_generated=elements_generated, ai_generated=ai_generated)

        return StructureAgentOutput(
            confidence=self.score_confidence(input_data, ai_generated),
            structure=structure,
            reasoning=list(context.reasoning),
            warnings=list(context.warnings),
            metadata=StructureMetadata(
                elements_generated=elements_generated,
                used_reference_scenarios=reference_names if ai_generated else [],
                available_reference_scenarios=reference_names,
                execution_time_ms=context.elapsed_ms(),
                ai_generated=ai_generated,
            ),
        )

    def calculate_confidence(self, output: StructureAgentOutput, context: AgentContext) -> float:
        return output.confidence

    @staticmethod
    def score_confidence(input_data: StructureAgentInput, ai_generated: bool) -> float:
        """Additive heuristic over the supplied inputs, capped at MAX_CONFIDENCE"""
        confidence = (
            CONFIDENCE_SCORING.AI_BASE_CONFIDENCE if ai_generated
            else CONFIDENCE_SCORING.BASE_CONFIDENCE
        )
        if input_data.acss_js_dump is not None:
            confidence += CONFIDENCE_SCORING.ACSS_JS_DUMP_BOOST
        if input_data.container_grid_code:
            confidence += CONFIDENCE_SCORING.CONTAINER_GRID_BOOST
        if input_data.has_reference_scenarios():
            confidence += CONFIDENCE_SCORING.REFERENCE_SCENARIOS_BOOST
        return round(min(confidence, CONFIDENCE_SCORING.MAX_CONFIDENCE), 2)

    @staticmethod
    def generate_template(input_data: StructureAgentInput) -> BricksElement:
        """Fixed container > section > heading tree; the heading only when a description is given"""
        suffix = uuid4().hex[:12]

        children: List[BricksElement] = []
        if input_data.description:
            children.append(BricksElement(
                id=f"heading_{suffix}",
                name="heading",
                label="Heading",
                settings={"text": input_data.description, "tag": "h2"},
            ))

        return BricksElement(
            id=f"container_{suffix}",
            name="container",
            label="Container",
            settings={"_cssClasses": ["container"], "tag": "div"},
            children=[
                BricksElement(
                    id=f"section_{suffix}",
                    name="section",
                    label="Section",
                    settings={"_cssClasses": ["section"], "tag": "section"},
                    children=children,
                )
            ],
        )

    async def _generate_with_ai(
        self,
        input_data: StructureAgentInput,
        context: AgentContext
    ) -> Optional[BricksElement]:
        prompt_text: Optional[str] = None
        response: Optional[str] = None
        try:
            prompt = build_structure_prompt(input_data, system_prompt=self.system_prompt)
            prompt_text = prompt.combined()
            context.add_reasoning(
                f"Requesting AI generation with {len(input_data.reference_names())} reference examples"
            )

            timeout_ms = min(
                self.generation_timeout_ms,
                context.remaining_ms(self.config.max_execution_time_ms)
            )
            response = await self.text_generator.generate(
                prompt_text,
                timeout_ms=timeout_ms,
                cancellation=context.cancellation
            )

            extraction = extract_json(response)
            if not extraction.ok:
                raise StructureGenerationError("Could not extract JSON from the generated response")
            context.update_metadata(json_extraction=extraction.strategy.value)

            structure = self.parse_structure(extraction.value)
        except OperationCancelled:
            raise
        except Exception as e:
            if response is not None:
                # Do not serve a rejected reply to the next run
                self.text_generator.discard(prompt_text)
            logger.warning(
                f"AI structure generation failed, falling back to template: {e}",
                extra={"agent_id": self.config.id, "error_type": type(e).__name__}
            )
            context.add_warning(f"AI generation failed, using template fallback: {e}")
            return None

        context.add_reasoning(f"Generated structure with AI ({extraction.strategy.value} parse)")
        return structure

    @staticmethod
    def parse_structure(value: Any) -> BricksElement:
        """
        Validate an extracted JSON value as a Bricks element tree

        Raises:
            StructureGenerationError: Wrong shape, missing fields or limits exceeded
        """
        if isinstance(value, list):
            if len(value) != 1:
                raise StructureGenerationError(f"Expected a single root element, got {len(value)}")
            value = value[0]

        try:
            structure = BricksElement.model_validate(value)
        except ValidationError as e:
            raise StructureGenerationError(
                f"Generated structure is not a valid Bricks element ({e.error_count()} issues)"
            ) from e

        elements = structure.count_elements()
        if elements > AGENT_LIMITS.MAX_ELEMENTS:
            raise StructureGenerationError(
                f"Generated structure has {elements} elements (limit {AGENT_LIMITS.MAX_ELEMENTS})"
            )
        depth = structure.depth()
        if depth > AGENT_LIMITS.MAX_NESTING_DEPTH:
            raise StructureGenerationError(
                f"Generated structure is nested {depth} levels deep (limit {AGENT_LIMITS.MAX_NESTING_DEPTH})"
            )
        return structure
