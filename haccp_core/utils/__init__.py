# =============================================================================
# haccp_core/utils/__init__.py
# =============================================================================

from .cancellation import CancellationToken, check_cancelled

__all__ = ["CancellationToken", "check_cancelled"]
