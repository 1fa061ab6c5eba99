# =============================================================================
# haccp_core/logging/config.py
# Logging setup: console plus one file per day beside the local mirror
# =============================================================================

import logging
import sys
import time
from datetime import date
from pathlib import Path
from typing import Optional, Union

from haccp_core.errors.exceptions import HaccpError

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP and SDK loggers that chatter at INFO on every Supabase/OpenAI call
QUIET_LOGGERS = ("urllib3", "PIL", "httpx", "httpcore", "hpack", "supabase", "postgrest", "openai")


def resolve_level(level: Union[int, str]) -> int:
    """Accept 10 / "debug" / "INFO"; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[int, str] = logging.INFO, log_dir: Optional[Path] = None) -> None:
    """
    Configure the root logger once for the whole app.

    Args:
        level: Level for haccp_core loggers (name or number)
        log_dir: When given, also write to <log_dir>/haccp_YYYY-MM-DD.log
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.FileHandler(log_dir / f"haccp_{date.today().isoformat()}.log", encoding="utf-8")
        )

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("haccp_core").info(
        f"Logging initialized (level={logging.getLevelName(resolve_level(level))}, dir={log_dir})"
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Time an operation and log how it ended.

        with LogContext(logger, "Recording receipt of Saumon"):
            repository.add_traceability_record(record)

    Register errors (HaccpError, e.g. remote unreachable) are expected in a
    kitchen with flaky wifi and log as warnings; anything else logs with its
    traceback. Exceptions are never suppressed.
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.elapsed: Optional[float] = None
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.debug(f"{self.operation}: started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self._started

        if exc_type is None:
            self.logger.info(f"{self.operation}: done in {self.elapsed:.2f}s")
        elif isinstance(exc_val, HaccpError):
            self.logger.warning(f"{self.operation}: {exc_val} ({self.elapsed:.2f}s)")
        else:
            self.logger.error(f"{self.operation}: failed after {self.elapsed:.2f}s", exc_info=True)
        return False
