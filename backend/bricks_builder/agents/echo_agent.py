"""
Echo Agent

Minimal concrete agent showing how to extend BaseAgent: pydantic input
validation, reasoning/warnings on the context, and a confidence score derived
from the processed output.

Example:
    >>> agent = EchoAgent({"id": "echo-1"})
    >>> result = await agent.run({"message": "Hello World", "repeat": 2, "transform": "uppercase"})
    >>> result.data.processed_message
    'HELLO WORLD HELLO WORLD'
"""
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from bricks_builder.agents.base_agent import BaseAgent
from bricks_builder.agents.contracts import AgentContext


class EchoTransform(str, Enum):
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    REVERSE = "reverse"
    NONE = "none"


class EchoInput(BaseModel):
    message: str = Field(..., min_length=1)
    repeat: int = Field(default=1, ge=1, le=10)
    transform: EchoTransform = EchoTransform.NONE


class EchoOutput(BaseModel):
    original_message: str
    processed_message: str
    transform_applied: EchoTransform
    repeat_count: int
    message_length: int


class EchoAgent(BaseAgent[EchoInput, EchoOutput]):

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__({"type": "EchoAgent", "min_confidence": 0.7, **(config or {})})

    def validate_input(self, input_data: Union[EchoInput, Dict[str, Any]]) -> None:
        EchoInput.model_validate(input_data)

    async def execute(self, input_data: Union[EchoInput, Dict[str, Any]], context: AgentContext) -> EchoOutput:
        context.add_reasoning("Starting echo agent execution")

        validated = EchoInput.model_validate(input_data)
        message, repeat, transform = validated.message, validated.repeat, validated.transform

        context.add_reasoning(f'Input message: "{message}"')
        context.add_reasoning(f"Transform: {transform.value}, Repeat: {repeat}")

        if transform == EchoTransform.UPPERCASE:
            processed = message.upper()
            context.add_reasoning("Applied uppercase transformation")
        elif transform == EchoTransform.LOWERCASE:
            processed = message.lower()
            context.add_reasoning("Applied lowercase transformation")
        elif transform == EchoTransform.REVERSE:
            processed = message[::-1]
            context.add_reasoning("Applied reverse transformation")
        else:
            processed = message
            context.add_reasoning("No transformation applied")

        if repeat > 1:
            processed = " ".join([processed] * repeat)
            context.add_reasoning(f"Repeated message {repeat} times")

        if len(message) > 1000:
            context.add_warning("Input message is very long (>1000 chars)")
        if repeat > 5:
            context.add_warning("High repeat count may impact performance")

        context.update_metadata(character_count=len(message), word_count=len(message.split()))
        context.add_reasoning("Echo agent execution completed")

        return EchoOutput(
            original_message=message,
            processed_message=processed,
            transform_applied=transform,
            repeat_count=repeat,
            message_length=len(processed),
        )

    def calculate_confidence(self, output: EchoOutput, context: AgentContext) -> float:
        confidence = 1.0

        # Best between 10 and 500 characters
        if len(output.original_message) < 10:
            confidence -= 0.1
        if len(output.original_message) > 500:
            confidence -= 0.2

        if output.repeat_count > 5:
            confidence -= 0.15

        confidence -= len(context.warnings) * 0.1

        return max(0.0, min(1.0, confidence))
