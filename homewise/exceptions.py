"""Domain exceptions for the Homewise backend.

Only FatalRequestError escapes to the caller as a hard failure. Every other
error here is caught close to where it is raised and converted into degraded
output: fallback numbers, canned text or a structured tool result.
"""
from typing import Any, Dict, List, Optional


class HomewiseError(Exception):
    """Base exception for all Homewise errors."""

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ToolValidationError(HomewiseError):
    """A tool call carried parameters outside their allowed ranges."""

    def __init__(self, tool_name: str, errors: List[str]) -> None:
        self.tool_name = tool_name
        self.errors = list(errors)
        super().__init__(
            f"Invalid parameters for {tool_name}: {'; '.join(errors)}",
            details={"tool_name": tool_name, "errors": self.errors},
        )


class UpstreamTimeout(HomewiseError):
    """A data source or model call did not answer in time."""

    def __init__(self, source: str, timeout_seconds: float) -> None:
        self.source = source
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"{source} timed out after {timeout_seconds}s",
            details={"source": source, "timeout_seconds": timeout_seconds},
        )


class UpstreamFailure(HomewiseError):
    """A data source or model call raised or returned an unusable payload."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"{source} failed: {reason}", details={"source": source, "reason": reason})


class GuardrailDenial(HomewiseError):
    """User input was blocked by the input guardrail."""

    def __init__(self, reason: str, canned_response: str) -> None:
        self.reason = reason
        self.canned_response = canned_response
        super().__init__(f"Input denied: {reason}", details={"reason": reason})


class LoopExhausted(HomewiseError):
    """The tool-use loop reached its iteration cap without a final answer."""

    def __init__(self, iterations: int) -> None:
        self.iterations = iterations
        super().__init__(
            f"Tool loop exhausted after {iterations} iterations",
            details={"iterations": iterations},
        )


class FatalRequestError(HomewiseError):
    """The submitted profile failed schema validation before any work started."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid profile: " + "; ".join(errors), details={"errors": self.errors})
