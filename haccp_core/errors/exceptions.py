# =============================================================================
# haccp_core/errors/exceptions.py
# Custom Exception Hierarchy for the HACCP register
# =============================================================================

from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(Enum):
    """What went wrong, independent of where it was raised."""
    REMOTE_UNCONFIGURED = "remote_unconfigured"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    REMOTE_SCHEMA = "remote_schema"
    MALFORMED_RESPONSE = "malformed_response"
    CANCELLED = "cancelled"
    UNKNOWN_ITEM = "unknown_item"
    INVALID_INPUT = "invalid_input"
    IMAGE_EMBED = "image_embed"
    AI_UNAVAILABLE = "ai_unavailable"
    REPORT = "report"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class HaccpError(Exception):
    """
    Base exception for all HACCP register errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "REMOTE_001")
        kind: ErrorKind classification used by callers and the UI
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    kind = ErrorKind.UNKNOWN
    default_code = "HACCP_000"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# REMOTE STORE EXCEPTIONS
# =============================================================================

class RemoteError(HaccpError):
    """Base class for failures talking to the remote store"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", None) or {}
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation

        super().__init__(message=message, details=details, **kwargs)


class RemoteUnconfiguredError(RemoteError):
    """Raised when Supabase credentials are missing"""
    kind = ErrorKind.REMOTE_UNCONFIGURED
    default_code = "REMOTE_000"


class RemoteUnavailableError(RemoteError):
    """Raised when the remote store cannot be reached or rejects the call"""
    kind = ErrorKind.REMOTE_UNAVAILABLE
    default_code = "REMOTE_001"


class RemoteSchemaError(RemoteError):
    """Raised when an expected table does not exist (deployment defect)"""
    kind = ErrorKind.REMOTE_SCHEMA
    default_code = "REMOTE_002"


class MalformedResponseError(RemoteError):
    """Raised when the remote answers with data of an unexpected shape"""
    kind = ErrorKind.MALFORMED_RESPONSE
    default_code = "REMOTE_003"


class OperationCancelledError(HaccpError):
    """Raised when a cancellation token was triggered before a remote call"""
    kind = ErrorKind.CANCELLED
    default_code = "CANCEL_001"


# =============================================================================
# INVENTORY EXCEPTIONS
# =============================================================================

class InvalidMovementError(HaccpError):
    """Raised when a stock movement request fails boundary validation"""
    kind = ErrorKind.INVALID_INPUT
    default_code = "STOCK_001"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", None) or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value

        super().__init__(message=message, details=details, **kwargs)


class UnknownItemError(HaccpError):
    """Raised when an OUT movement targets a product absent from inventory"""
    kind = ErrorKind.UNKNOWN_ITEM
    default_code = "STOCK_002"

    def __init__(self, item_name: str, **kwargs):
        details = kwargs.pop("details", None) or {}
        details["item_name"] = item_name
        super().__init__(
            message=kwargs.pop("message", "Produit inconnu pour une sortie."),
            details=details,
            **kwargs,
        )
        self.item_name = item_name


class ValidationError(HaccpError):
    """Raised when user input for a record is incomplete"""
    kind = ErrorKind.INVALID_INPUT
    default_code = "INPUT_001"


# =============================================================================
# REPORT / AI EXCEPTIONS
# =============================================================================

class ReportError(HaccpError):
    """Raised when a report cannot be generated from its input"""
    kind = ErrorKind.REPORT
    default_code = "REPORT_001"


class ImageEmbedError(HaccpError):
    """Raised when a traceability photo cannot be fetched or re-encoded"""
    kind = ErrorKind.IMAGE_EMBED
    default_code = "REPORT_002"

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if source:
            # data URLs can be megabytes long
            details["source"] = source[:80]
        super().__init__(message=message, details=details, **kwargs)


class AssistantError(HaccpError):
    """Raised inside the AI assistant; never escapes its public methods"""
    kind = ErrorKind.AI_UNAVAILABLE
    default_code = "AI_001"


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(HaccpError):
    """Raised when configuration is invalid or missing"""
    kind = ErrorKind.CONFIGURATION
    default_code = "CONFIG_001"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", None) or {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            details=details,
            recoverable=False,
            **kwargs,
        )


def error_kind_of(error: BaseException) -> ErrorKind:
    """Return the ErrorKind of any exception (UNKNOWN for foreign ones)."""
    if isinstance(error, HaccpError):
        return error.kind
    return ErrorKind.UNKNOWN
