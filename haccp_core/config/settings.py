# =============================================================================
# haccp_core/config/settings.py
# Application settings from Streamlit secrets and environment variables
# =============================================================================
"""
Settings are read once per process.

Expected secrets.toml format:

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [openai]
    api_key = "sk-..."
    model = "gpt-4o-mini"

    [app]
    restaurant_name = "La Oncé"
    local_db_path = "local_data/haccp.db"
    request_timeout = 10
    allow_local_only = false

Every key has an environment fallback (see ENV_KEYS); a `.env` file at the
project root is loaded first when present.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from haccp_core.domain.constants import RESTAURANT_NAME
from haccp_core.errors import ConfigurationError
from haccp_core.logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_LOCAL_DB = PROJECT_ROOT / "local_data" / "haccp.db"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_REQUEST_TIMEOUT = 10.0

ENV_KEYS = {
    ("supabase", "url"): "SUPABASE_URL",
    ("supabase", "key"): "SUPABASE_ANON_KEY",
    ("openai", "api_key"): "OPENAI_API_KEY",
    ("openai", "model"): "OPENAI_MODEL",
    ("app", "restaurant_name"): "HACCP_RESTAURANT_NAME",
    ("app", "local_db_path"): "HACCP_LOCAL_DB",
    ("app", "request_timeout"): "HACCP_REQUEST_TIMEOUT",
    ("app", "allow_local_only"): "HACCP_ALLOW_LOCAL_ONLY",
    ("app", "log_level"): "HACCP_LOG_LEVEL",
}


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one running application."""
    supabase_url: str = ""
    supabase_key: str = ""
    openai_api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL
    restaurant_name: str = RESTAURANT_NAME
    local_db_path: Path = DEFAULT_LOCAL_DB
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    allow_local_only: bool = False
    log_level: str = "INFO"

    @property
    def remote_configured(self) -> bool:
        """True when both Supabase URL and key are present."""
        return bool(self.supabase_url and self.supabase_key)

    @property
    def assistant_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def log_dir(self) -> Path:
        """Log files live beside the local mirror."""
        return Path(self.local_db_path).parent / "logs"


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _read_streamlit_secrets() -> Mapping[str, Any]:
    """Return st.secrets as a plain dict, or {} when no secrets file exists."""
    try:
        import streamlit as st
        return {section: dict(values) for section, values in st.secrets.items()
                if hasattr(values, "items")}
    except Exception as e:
        # st.secrets raises when .streamlit/secrets.toml is absent
        logger.debug(f"Streamlit secrets not available: {e}")
        return {}


def _lookup(secrets: Mapping[str, Any], env: Mapping[str, str], section: str, key: str) -> Optional[Any]:
    value = secrets.get(section, {}).get(key)
    if value in (None, ""):
        value = env.get(ENV_KEYS[(section, key)])
    return value if value not in (None, "") else None


def load_settings(
    secrets: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from secrets (Streamlit) with environment fallbacks.

    Args:
        secrets: Sectioned mapping shaped like secrets.toml (default: st.secrets)
        env: Environment mapping (default: os.environ after loading .env)

    Raises:
        ConfigurationError: when a numeric setting cannot be parsed
    """
    if env is None:
        load_dotenv(PROJECT_ROOT / ".env")
        env = os.environ
    if secrets is None:
        secrets = _read_streamlit_secrets()

    raw_timeout = _lookup(secrets, env, "app", "request_timeout")
    try:
        timeout = float(raw_timeout) if raw_timeout is not None else DEFAULT_REQUEST_TIMEOUT
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"request_timeout must be a number, got {raw_timeout!r}",
            config_key="app.request_timeout",
        )
    if timeout <= 0:
        raise ConfigurationError("request_timeout must be positive", config_key="app.request_timeout")

    db_path = _lookup(secrets, env, "app", "local_db_path")
    allow_local = _lookup(secrets, env, "app", "allow_local_only")

    settings = Settings(
        supabase_url=str(_lookup(secrets, env, "supabase", "url") or ""),
        supabase_key=str(_lookup(secrets, env, "supabase", "key") or ""),
        openai_api_key=str(_lookup(secrets, env, "openai", "api_key") or ""),
        openai_model=str(_lookup(secrets, env, "openai", "model") or DEFAULT_OPENAI_MODEL),
        restaurant_name=str(_lookup(secrets, env, "app", "restaurant_name") or RESTAURANT_NAME),
        local_db_path=Path(db_path) if db_path else DEFAULT_LOCAL_DB,
        request_timeout=timeout,
        allow_local_only=_to_bool(allow_local) if allow_local is not None else False,
        log_level=str(_lookup(secrets, env, "app", "log_level") or "INFO").upper(),
    )

    if not settings.remote_configured:
        logger.warning("Supabase credentials not found; running on the local mirror only")
    return settings


# Process-wide settings
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide Settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings (tests, secrets edited at runtime)."""
    global _settings
    _settings = None
