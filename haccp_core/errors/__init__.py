# =============================================================================
# haccp_core/errors/__init__.py
# Centralized Error Handling for the HACCP register
# =============================================================================

from .exceptions import (
    ErrorKind,
    HaccpError,
    RemoteError,
    RemoteUnconfiguredError,
    RemoteUnavailableError,
    RemoteSchemaError,
    MalformedResponseError,
    OperationCancelledError,
    InvalidMovementError,
    UnknownItemError,
    ValidationError,
    ReportError,
    ImageEmbedError,
    AssistantError,
    ConfigurationError,
    error_kind_of,
)

__all__ = [
    # Classification
    "ErrorKind",
    "error_kind_of",
    # Exceptions
    "HaccpError",
    "RemoteError",
    "RemoteUnconfiguredError",
    "RemoteUnavailableError",
    "RemoteSchemaError",
    "MalformedResponseError",
    "OperationCancelledError",
    "InvalidMovementError",
    "UnknownItemError",
    "ValidationError",
    "ReportError",
    "ImageEmbedError",
    "AssistantError",
    "ConfigurationError",
]
