"""
Application-level exceptions.

Not-found lookups never raise (they resolve to empty results); these cover
invalid input, invalid configuration and cancellation. Each carries a stable
``code`` for the CLI and any host service that maps errors to responses.
"""

from __future__ import annotations

from typing import Any


class SignalEngineError(Exception):
    """Base class for all engine errors."""

    code = "signal_engine_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ConfigurationError(SignalEngineError, ValueError):
    """Invalid RecursiveSignalConfig, rule table, or environment setting."""

    code = "invalid_config"


class SignalValidationError(SignalEngineError, ValueError):
    """Malformed growth signal or entity record in the supplied snapshot."""

    code = "invalid_signal"


class OperationCancelled(SignalEngineError):
    """Raised when a CancellationToken fires during a long computation."""

    code = "cancelled"
