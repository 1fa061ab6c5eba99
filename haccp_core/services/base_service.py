# =============================================================================
# haccp_core/services/base_service.py
# Shared plumbing for the register services: clock, logging, result wrapping
# =============================================================================

from __future__ import annotations
from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from haccp_core.errors import ErrorKind, HaccpError, error_kind_of
from haccp_core.logging import LogContext, get_logger


@dataclass
class ServiceResult:
    """
    What a page gets back from an operation it should not have to wrap in
    try/except (report exports mostly). Truthy on success.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    kind: Optional[ErrorKind] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def from_exception(cls, e: Exception) -> ServiceResult:
        if isinstance(e, HaccpError):
            return cls(success=False, error=e.message, error_code=e.code, kind=e.kind)
        return cls(success=False, error=str(e), error_code="EXCEPTION", kind=error_kind_of(e))


class BaseService(ABC):
    """
    Base class of the checklist, traceability, stock and report services.

    Subclasses get a logger named after the class and an injectable clock,
    so every timestamp they write can be pinned in tests:

        service = ChecklistService(repository, clock=lambda: datetime(2024, 6, 1, 8, 30))
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.logger = get_logger(self.__class__.__name__)
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def timestamp(self) -> str:
        """Current time as stored in records (ISO 8601, second precision)."""
        return self._clock().isoformat(timespec="seconds")

    def log_operation(self, operation: str) -> LogContext:
        return LogContext(self.logger, operation)

    def safe_execute(
        self,
        operation: str,
        func: Callable[..., Any],
        *args,
        **kwargs,
    ) -> ServiceResult:
        """Run ``func`` and turn any exception into a failed ServiceResult."""
        try:
            with self.log_operation(operation):
                data = func(*args, **kwargs)
        except HaccpError as e:
            self.logger.warning(f"{operation} failed: {e}")
            return ServiceResult.from_exception(e)
        except Exception as e:
            self.logger.error(f"{operation} failed: {e}", exc_info=True)
            return ServiceResult(success=False, error=str(e), error_code="UNKNOWN", kind=ErrorKind.UNKNOWN)
        return ServiceResult(success=True, data=data)
