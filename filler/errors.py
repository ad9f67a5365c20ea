"""
Filler Error Hierarchy

Unified exception hierarchy for the collaborators around the decision engine.
All custom exceptions inherit from FillerError for easy catching and filtering.

Placement illegality is *not* an exception: the validator reports it as a
:class:`filler.ai.placement.PlacementResult` value because rejecting anchors is
the normal, high-frequency outcome of candidate generation.

Usage:
    from filler.errors import ProtocolError

    try:
        turn = read_turn(stream)
    except ProtocolError as e:
        logger.error(f"Bad input: {e.message}, line: {e.line_number}")
"""

from typing import Any

__all__ = [
    "ConfigurationError",
    # Base error
    "FillerError",
    "InvalidStateError",
    # Input errors
    "ProtocolError",
]


class FillerError(Exception):
    """Base exception for all Filler errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "FILLER_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Input Errors
# =============================================================================


class ProtocolError(FillerError):
    """Malformed input from the game VM.

    Raised by the protocol reader when a header, grid row or piece row does
    not match the expected format. The line_number field points at the
    offending line of the current turn (1-based) when it is known.

    Attributes:
        line_number: Line of the turn block that failed to parse
    """
    code: str = "PROTOCOL_ERROR"

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.line_number = line_number
        if line_number is not None:
            self.context["line"] = line_number


class InvalidStateError(FillerError):
    """Board snapshot that the engine cannot reason about.

    Raised when a snapshot is structurally valid but semantically unusable,
    e.g. the acting player number is not 1 or 2.
    """
    code: str = "INVALID_STATE"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(FillerError):
    """Invalid engine configuration.

    Raised for unknown strategy profiles, weight tables with unknown signal
    keys, or out-of-range tuning values.
    """
    code: str = "CONFIGURATION_ERROR"
