"""
Cooperative cancellation for long engine passes (cluster analysis over a
large population). Workers call ``raise_if_cancelled`` between units of work.
"""

from __future__ import annotations

import threading

from backend_signals.core.exceptions import OperationCancelled


class CancellationToken:
    """Thread-safe one-shot cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(
                f"Operation cancelled: {self._reason}", reason=self._reason
            )


def check_cancelled(token: CancellationToken | None) -> None:
    """No-op when token is None."""
    if token is not None:
        token.raise_if_cancelled()
