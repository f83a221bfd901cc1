"""
Input and output models of the structure agent
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BricksElement(BaseModel):
    """One node of a Bricks element tree"""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    label: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    children: List["BricksElement"] = Field(default_factory=list)

    # Generated trees may carry element-specific keys we pass through untouched
    model_config = ConfigDict(extra="allow")

    def count_elements(self) -> int:
        """Number of nodes in this tree, the root included"""
        return 1 + sum(child.count_elements() for child in self.children)

    def depth(self) -> int:
        """Nesting depth; a leaf has depth 1"""
        return 1 + max((child.depth() for child in self.children), default=0)

    def shape(self) -> Any:
        """Node types and nesting with ids and settings stripped"""
        return (self.name, tuple(child.shape() for child in self.children))


class ReferenceScenario(BaseModel):
    """Few-shot example: a scenario name and its correct Bricks output"""
    name: str = Field(..., min_length=1)
    expected_output: Any


class StructureAgentInput(BaseModel):
    acss_js_dump: Optional[Dict[str, Any]] = None
    container_grid_code: Optional[str] = None
    description: Optional[str] = None
    reference_scenarios: Optional[List[ReferenceScenario]] = None

    def has_reference_scenarios(self) -> bool:
        return bool(self.reference_scenarios)

    def reference_names(self) -> List[str]:
        return [scenario.name for scenario in self.reference_scenarios or []]


class StructureMetadata(BaseModel):
    elements_generated: int = Field(..., ge=1)
    # Names of the examples that actually went into a successful generation call
    used_reference_scenarios: List[str] = Field(default_factory=list)
    # Names of every example supplied, whichever path was taken
    available_reference_scenarios: List[str] = Field(default_factory=list)
    execution_time_ms: int = Field(..., ge=0)
    ai_generated: bool


class StructureAgentOutput(BaseModel):
    success: bool = True
    confidence: float = Field(..., ge=0.0, le=1.0)
    structure: BricksElement
    reasoning: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    metadata: StructureMetadata
