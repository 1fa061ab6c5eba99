# =============================================================================
# haccp_core/utils/cancellation.py
# Cooperative cancellation for remote calls
# =============================================================================

from __future__ import annotations
import threading
from typing import Optional

from haccp_core.errors import OperationCancelledError


class CancellationToken:
    """
    Flag checked before every remote call.

    Usage:
        token = CancellationToken()
        result = repository.list_daily_logs(cancel=token)
        token.cancel()  # from a button callback or another thread
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by user") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str = "") -> None:
        if self.cancelled:
            raise OperationCancelledError(
                f"{operation or 'Operation'} cancelled: {self.reason}",
                details={"operation": operation} if operation else None,
            )


def check_cancelled(token: Optional[CancellationToken], operation: str = "") -> None:
    """No-op when no token was passed."""
    if token is not None:
        token.raise_if_cancelled(operation)
