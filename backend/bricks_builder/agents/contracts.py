"""
Contract models for agent runs.

AgentOutput is the envelope every run produces; AgentContext is the scratch
state one run writes its reasoning/warnings/errors into.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bricks_builder.core.cancellation import CancellationToken

T = TypeVar("T")


class AgentConfig(BaseModel):
    """Agent configuration, read-only while a run is in flight"""
    id: str
    type: str
    max_execution_time_ms: int = Field(default=30000, ge=1)
    min_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    enable_logging: bool = True
    # Agent-specific settings
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class AgentOutputMetadata(BaseModel):
    """
    Envelope metadata

    The fixed fields are always present. `extra` is the only extension point:
    it receives whatever the agent stored in `context.metadata`.
    """
    agent_type: str
    execution_time_ms: int = Field(..., ge=0)
    timestamp: int  # epoch milliseconds when the envelope was built
    error_code: Optional[str] = None
    recoverable: Optional[bool] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class AgentOutput(BaseModel, Generic[T]):
    """Standard result envelope of BaseAgent.run"""
    success: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    data: Optional[T] = None
    reasoning: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    errors: Optional[List[str]] = None
    metadata: AgentOutputMetadata

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_success_coupling(self) -> "AgentOutput[T]":
        if self.success and self.data is None:
            raise ValueError("successful output must carry data")
        if not self.success:
            if self.data is not None:
                raise ValueError("failed output must not carry data")
            if not self.errors:
                raise ValueError("failed output must list at least one error")
        return self


class AgentContext:
    """
    Mutable state of a single run

    Created by BaseAgent.run, passed to execute(), discarded once the envelope
    is built. Nothing in here is shared between runs.
    """

    def __init__(self, start_time: Optional[float] = None):
        self.start_time = time.monotonic() if start_time is None else start_time
        self.reasoning: List[str] = []
        self.warnings: List[str] = []
        self.errors: List[str] = []
        self.metadata: Dict[str, Any] = {}
        self.cancellation = CancellationToken()

    def add_reasoning(self, step: str) -> None:
        self.reasoning.append(step)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def update_metadata(self, **kwargs: Any) -> None:
        self.metadata.update(kwargs)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.start_time) * 1000)

    def remaining_ms(self, budget_ms: int) -> int:
        """Milliseconds left of budget_ms since the run started"""
        return max(0, budget_ms - self.elapsed_ms())

    def __repr__(self) -> str:
        return (
            f"AgentContext(elapsed_ms={self.elapsed_ms()}, reasoning={len(self.reasoning)}, "
            f"warnings={len(self.warnings)}, errors={len(self.errors)})"
        )
