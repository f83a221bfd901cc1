"""
Agents for the Bricks Builder teaching system
"""
from bricks_builder.agents.base_agent import BaseAgent
from bricks_builder.agents.constants import (AGENT_LIMITS,
                                             AUTO_REVIEW_THRESHOLD,
                                             CONFIDENCE_SCORING)
from bricks_builder.agents.contracts import (AgentConfig, AgentContext,
                                             AgentOutput, AgentOutputMetadata)
from bricks_builder.agents.echo_agent import EchoAgent, EchoInput, EchoOutput
from bricks_builder.agents.structure_agent import (StructureAgent,
                                                   StructureGenerationError)
from bricks_builder.agents.structure_contracts import (BricksElement,
                                                       ReferenceScenario,
                                                       StructureAgentInput,
                                                       StructureAgentOutput,
                                                       StructureMetadata)

__all__ = [
    "AGENT_LIMITS",
    "AUTO_REVIEW_THRESHOLD",
    "AgentConfig",
    "AgentContext",
    "AgentOutput",
    "AgentOutputMetadata",
    "BaseAgent",
    "BricksElement",
    "CONFIDENCE_SCORING",
    "EchoAgent",
    "EchoInput",
    "EchoOutput",
    "ReferenceScenario",
    "StructureAgent",
    "StructureAgentInput",
    "StructureAgentOutput",
    "StructureGenerationError",
    "StructureMetadata",
]
