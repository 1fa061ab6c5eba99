# =============================================================================
# haccp_core/offline/connection_manager.py
# Connection Status Detection for the connectivity indicator
# =============================================================================
"""
ConnectionManager - answers "is the remote store usable right now?".

The answer only drives the status badge; repository calls always try the
remote anyway and fall back on their own. A probe result is reused for
CHECK_INTERVAL seconds so reruns of a page do not hit the network each time.
"""

from __future__ import annotations
import socket
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from haccp_core.config import Settings, get_settings
from haccp_core.logging import get_logger

logger = get_logger(__name__)


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"               # Supabase configured and reachable
    OFFLINE = "offline"             # Supabase configured but unreachable
    UNCONFIGURED = "unconfigured"   # No Supabase credentials
    UNKNOWN = "unknown"             # Initial state


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None


class ConnectionManager:
    """
    Probe for the connectivity indicator.

    Usage:
        manager = get_connection_manager()
        st.caption("Cloud" if manager.is_available() else "Local")
    """

    CHECK_INTERVAL = 30  # Seconds a probe result stays valid

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._state = ConnectionState()
        self._checked_at: Optional[float] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_configured(self) -> bool:
        return self.settings.remote_configured

    def is_available(self, force: bool = False) -> bool:
        """True when Supabase is configured and its host answers."""
        stale = self._checked_at is None or time.monotonic() - self._checked_at > self.CHECK_INTERVAL
        if force or stale:
            self.check_connection()
        return self._state.status == ConnectionStatus.ONLINE

    def check_connection(self) -> ConnectionState:
        """
        Perform a connection check and update state.

        Returns:
            Updated ConnectionState
        """
        old_status = self._state.status
        self._state.last_check = datetime.now()
        self._checked_at = time.monotonic()

        if not self.is_configured:
            self._state.status = ConnectionStatus.UNCONFIGURED
            self._state.error_message = "Supabase credentials missing"
        elif self._check_supabase():
            self._mark_online()
        else:
            self._mark_offline(self._state.error_message or "Supabase host unreachable")

        if old_status != self._state.status:
            logger.info(f"Connection status changed: {old_status.value} -> {self._state.status.value}")

        return self._state

    def _check_supabase(self) -> bool:
        """Open (and close) a TCP connection to the Supabase host."""
        parsed = urlparse(self.settings.supabase_url)
        host = parsed.hostname
        port = parsed.port or (443 if parsed.scheme != "http" else 80)
        if not host:
            self._state.error_message = f"Invalid Supabase URL: {self.settings.supabase_url!r}"
            return False

        try:
            with socket.create_connection((host, port), timeout=self.settings.request_timeout):
                return True
        except OSError as e:
            self._state.error_message = str(e)
            logger.debug(f"Supabase check failed: {e}")
            return False

    def _mark_online(self) -> None:
        self._state.status = ConnectionStatus.ONLINE
        self._state.last_online = datetime.now()
        self._state.consecutive_failures = 0
        self._state.error_message = None

    def _mark_offline(self, error: str) -> None:
        self._state.status = ConnectionStatus.OFFLINE
        self._state.consecutive_failures += 1
        self._state.error_message = error

    def report_success(self) -> None:
        """Record that a real remote call just succeeded."""
        if self.is_configured:
            self._mark_online()
            self._checked_at = time.monotonic()

    def report_failure(self, error: str) -> None:
        """Record that a real remote call just failed."""
        if self.is_configured:
            self._mark_offline(error)
            self._checked_at = time.monotonic()

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self._state.status == ConnectionStatus.ONLINE,
            "configured": self.is_configured,
            "last_check": self._state.last_check.isoformat() if self._state.last_check else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "failures": self._state.consecutive_failures,
            "error": self._state.error_message,
        }


# Singleton accessor
_connection_manager: Optional[ConnectionManager] = None
_lock = threading.Lock()


def get_connection_manager() -> ConnectionManager:
    """Get the global ConnectionManager instance."""
    global _connection_manager
    if _connection_manager is None:
        with _lock:
            if _connection_manager is None:
                _connection_manager = ConnectionManager()
    return _connection_manager
