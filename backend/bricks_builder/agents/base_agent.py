"""
Base Agent class for the Bricks Builder teaching system
All agents should inherit from this class
"""
import asyncio
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import ValidationError

from bricks_builder.agents.contracts import (AgentConfig, AgentContext,
                                             AgentOutput, AgentOutputMetadata)
from bricks_builder.core.config import get_settings
from bricks_builder.core.execution_error_types import (AgentError,
                                                       AgentErrorCode,
                                                       classify_exception,
                                                       timeout_error,
                                                       validation_error)
from bricks_builder.core.logging_config import LoggingConfig
from bricks_builder.core.metrics import (agent_confidence,
                                         agent_execution_duration_seconds,
                                         agent_executions_total)

logger = LoggingConfig.get_logger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

_STATUS_BY_CODE = {
    AgentErrorCode.VALIDATION_ERROR: "validation_error",
    AgentErrorCode.EXECUTION_TIMEOUT: "timeout",
    AgentErrorCode.UNKNOWN_ERROR: "error",
}


def _consume_task_result(task: "asyncio.Future[Any]") -> None:
    # Abandoned tasks may still finish with an exception; retrieve it so it is not reported as lost
    if not task.cancelled():
        task.exception()


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """
    Base class for all agents

    A subclass implements three things:
    - validate_input: reject bad input before any work starts (optional)
    - execute: do the work, recording decisions in the context
    - calculate_confidence: score the output (pure, no I/O)

    run() wraps them with a timeout, confidence clamping and a uniform
    AgentOutput envelope. It never raises for validation errors, timeouts or
    unexpected exceptions; those become failed envelopes with confidence 0.
    There are no retries here, the caller decides whether to run again.

    Example:
        >>> class MyAgent(BaseAgent[MyInput, MyOutput]):
        ...     async def execute(self, input_data, context):
        ...         context.add_reasoning("Starting execution")
        ...         return MyOutput(result="done")
        ...
        ...     def calculate_confidence(self, output, context):
        ...         return 0.8
    """

    # Time given to an abandoned execute() to react to cancellation
    CANCELLATION_GRACE_SECONDS = 0.1

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize agent

        Args:
            config: Partial configuration. Missing values come from settings;
                unknown keys are kept in `config.options`.
        """
        settings = get_settings()
        values = dict(config or {})

        def pick(key: str, default: Any) -> Any:
            value = values.pop(key, None)
            return default if value is None else value

        self.config = AgentConfig(
            id=pick("id", f"agent_{uuid4().hex[:12]}"),
            type=pick("type", type(self).__name__),
            max_execution_time_ms=pick("max_execution_time_ms", settings.agent_max_execution_time_ms),
            min_confidence=pick("min_confidence", settings.agent_min_confidence),
            enable_logging=pick("enable_logging", settings.agent_enable_logging),
            options={**pick("options", {}), **values},
        )

    @property
    def agent_type(self) -> str:
        return self.config.type

    def validate_input(self, input_data: InputT) -> None:
        """
        Validate input before execution

        Default: no validation. Raise AgentError (or a pydantic ValidationError,
        which run() converts) to reject the input.
        """
        return None

    @abstractmethod
    async def execute(self, input_data: InputT, context: AgentContext) -> OutputT:
        """
        Do the agent's work

        Args:
            input_data: Validated agent input
            context: Per-run context; append reasoning and warnings so the
                decisions made are auditable. Pass `context.cancellation` to
                anything that starts external work.

        Returns:
            Agent-specific output (must not be None)
        """
        pass

    @abstractmethod
    def calculate_confidence(self, output: OutputT, context: AgentContext) -> float:
        """
        Score the output between 0 and 1

        Must be a pure function of output and context: no mutation, no I/O.
        Values outside [0, 1] are clamped by run().
        """
        pass

    async def run(self, input_data: InputT) -> AgentOutput[OutputT]:
        """
        Run the agent with the full execution pipeline

        1. Input validation
        2. execute() raced against max_execution_time_ms
        3. Confidence calculation, clamped to [0, 1]
        4. Advisory warning when confidence is below min_confidence
        5. Envelope with timing and metadata
        6. Logging hook

        Args:
            input_data: Agent-specific input

        Returns:
            AgentOutput envelope
        """
        config = self.config
        context = AgentContext()

        try:
            self._run_validation(input_data)
            context.add_reasoning("Input validation passed")

            data = await self._execute_with_timeout(input_data, context, config.max_execution_time_ms)

            confidence = self._clamp(self.calculate_confidence(data, context))
            if confidence < config.min_confidence:
                context.add_warning(
                    f"Confidence {confidence:.2f} below minimum threshold {config.min_confidence}"
                )

            output = AgentOutput(
                success=True,
                confidence=confidence,
                data=data,
                reasoning=list(context.reasoning),
                warnings=list(context.warnings),
                errors=list(context.errors) if context.errors else None,
                metadata=self._build_metadata(config, context),
            )
        except Exception as exc:
            output = self._build_failure(exc, config, context)

        self._record_metrics(output)
        self.log_execution(output)
        return output

    def _run_validation(self, input_data: InputT) -> None:
        try:
            self.validate_input(input_data)
        except ValidationError as e:
            issues = [
                {"loc": [str(part) for part in err["loc"]], "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ]
            raise validation_error("Input validation failed", details={"issues": issues}) from e

    async def _execute_with_timeout(
        self,
        input_data: InputT,
        context: AgentContext,
        timeout_ms: int
    ) -> OutputT:
        task = asyncio.ensure_future(self.execute(input_data, context))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            context.cancellation.cancel("Run cancelled by caller")
            task.cancel()
            raise

        if task in done:
            return task.result()

        context.cancellation.cancel(f"Agent execution exceeded {timeout_ms}ms")
        task.cancel()
        await asyncio.wait({task}, timeout=self.CANCELLATION_GRACE_SECONDS)
        if task.done():
            _consume_task_result(task)
        else:
            task.add_done_callback(_consume_task_result)
            logger.warning(
                f"Agent {self.agent_type} did not stop within {self.CANCELLATION_GRACE_SECONDS}s of cancellation",
                extra={"agent_id": self.config.id}
            )
        raise timeout_error(timeout_ms)

    def _build_failure(
        self,
        exc: Exception,
        config: AgentConfig,
        context: AgentContext
    ) -> AgentOutput[OutputT]:
        error = classify_exception(exc)
        context.add_error(error.describe())

        if config.enable_logging:
            if error.code == AgentErrorCode.UNKNOWN_ERROR:
                logger.error(
                    f"Agent {config.type} unexpected error: {exc}",
                    exc_info=exc,
                    extra={"agent_id": config.id, "agent_error": error.to_dict()}
                )
            else:
                logger.error(
                    f"Agent {config.type} error: {error.describe()}",
                    extra={"agent_id": config.id, "agent_error": error.to_dict()}
                )

        return AgentOutput(
            success=False,
            confidence=0.0,
            reasoning=list(context.reasoning),
            warnings=list(context.warnings),
            errors=list(context.errors),
            metadata=self._build_metadata(config, context, error),
        )

    @staticmethod
    def _build_metadata(
        config: AgentConfig,
        context: AgentContext,
        error: Optional[AgentError] = None
    ) -> AgentOutputMetadata:
        return AgentOutputMetadata(
            agent_type=config.type,
            execution_time_ms=context.elapsed_ms(),
            timestamp=int(time.time() * 1000),
            error_code=error.code.value if error else None,
            recoverable=error.recoverable if error else None,
            extra=dict(context.metadata),
        )

    @staticmethod
    def _clamp(confidence: float) -> float:
        confidence = float(confidence)
        if math.isnan(confidence):
            return 0.0
        return max(0.0, min(1.0, confidence))

    def _record_metrics(self, output: AgentOutput[OutputT]) -> None:
        if output.success:
            status = "success"
            agent_confidence.labels(agent_type=self.agent_type).observe(output.confidence)
        else:
            status = _STATUS_BY_CODE.get(AgentErrorCode(output.metadata.error_code), "error")
        agent_executions_total.labels(agent_type=self.agent_type, status=status).inc()
        agent_execution_duration_seconds.labels(agent_type=self.agent_type).observe(
            output.metadata.execution_time_ms / 1000
        )

    def log_execution(self, output: AgentOutput[OutputT]) -> None:
        """
        Log agent execution for telemetry and debugging

        Override to customize. Does nothing when enable_logging is off.
        """
        if not self.config.enable_logging:
            return

        logger.info(
            f"[{self.agent_type}] Execution completed",
            extra={
                "agent_id": self.config.id,
                "success": output.success,
                "confidence": round(output.confidence, 2),
                "execution_time_ms": output.metadata.execution_time_ms,
                "warnings": len(output.warnings),
                "errors": len(output.errors or []),
            }
        )

    def get_config(self) -> AgentConfig:
        """Get agent configuration"""
        return self.config

    def update_config(self, **updates: Any) -> AgentConfig:
        """
        Replace configuration values between runs

        Runs already in flight keep the configuration they started with.
        """
        merged = self.config.model_dump()
        options = {**merged["options"], **updates.pop("options", {})}
        merged.update(updates)
        merged["options"] = options
        self.config = AgentConfig(**merged)
        return self.config
