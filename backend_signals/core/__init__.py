"""
Core utilities: exceptions and cancellation shared by the chain engine,
config layer and tools.
"""

from backend_signals.core.cancellation import CancellationToken, check_cancelled
from backend_signals.core.exceptions import (
    ConfigurationError,
    OperationCancelled,
    SignalEngineError,
    SignalValidationError,
)

__all__ = [
    "CancellationToken",
    "check_cancelled",
    "ConfigurationError",
    "OperationCancelled",
    "SignalEngineError",
    "SignalValidationError",
]
