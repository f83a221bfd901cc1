"""
Agent error classification
"""
from enum import Enum
from typing import Any, Dict, Optional


class AgentErrorCode(str, Enum):
    """Error codes surfaced in failed agent envelopes"""
    VALIDATION_ERROR = "VALIDATION_ERROR"  # Input rejected before execution, caller-fixable
    EXECUTION_TIMEOUT = "EXECUTION_TIMEOUT"  # Run exceeded max_execution_time_ms
    UNKNOWN_ERROR = "UNKNOWN_ERROR"  # Anything else


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_CATEGORY_BY_CODE = {
    AgentErrorCode.VALIDATION_ERROR: ErrorCategory.VALIDATION,
    AgentErrorCode.EXECUTION_TIMEOUT: ErrorCategory.TIMEOUT,
    AgentErrorCode.UNKNOWN_ERROR: ErrorCategory.UNKNOWN,
}


class AgentError(Exception):
    """
    Classified agent error

    Raised by agents (usually from validate_input) and by the run wrapper.
    `recoverable` tells the caller whether fixing the input and retrying can help.
    """

    def __init__(
        self,
        code: AgentErrorCode,
        message: str,
        details: Optional[Any] = None,
        recoverable: bool = True
    ):
        super().__init__(message)
        self.code = AgentErrorCode(code)
        self.message = message
        self.details = details
        self.recoverable = recoverable

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORY_BY_CODE[self.code]

    def describe(self) -> str:
        """Short form stored in envelope error lists"""
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "code": self.code.value,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
            "recoverable": self.recoverable,
        }

    def __repr__(self) -> str:
        return f"AgentError(code={self.code.value!r}, message={self.message!r}, recoverable={self.recoverable})"


def validation_error(message: str, details: Optional[Any] = None) -> AgentError:
    """Build a recoverable validation error"""
    return AgentError(AgentErrorCode.VALIDATION_ERROR, message, details=details, recoverable=True)


def timeout_error(timeout_ms: int) -> AgentError:
    """Build the non-recoverable timeout error for a run limited to timeout_ms"""
    return AgentError(
        AgentErrorCode.EXECUTION_TIMEOUT,
        f"Agent execution exceeded {timeout_ms}ms",
        details={"timeout_ms": timeout_ms},
        recoverable=False
    )


def classify_exception(exc: BaseException) -> AgentError:
    """
    Map any exception raised during a run onto an AgentError

    AgentErrors are returned as-is. Everything else becomes a non-recoverable
    UNKNOWN_ERROR whose message carries no internal detail; the original
    exception type is kept in `details` for server-side logs.
    """
    if isinstance(exc, AgentError):
        return exc
    return AgentError(
        AgentErrorCode.UNKNOWN_ERROR,
        "Unexpected error during agent execution",
        details={"error_type": type(exc).__name__},
        recoverable=False
    )
