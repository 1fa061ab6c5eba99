from __future__ import annotations
from typing import Optional

import streamlit as st

from haccp_core.config import Settings, get_settings
from haccp_core.errors import ConfigurationError
from haccp_core.logging import get_logger, setup_logging
from haccp_core.state import init_state
from .components import connectivity_badge
from .theme import apply_css

logger = get_logger(__name__)

_logging_ready = False


def _ensure_logging(settings: Optional[Settings] = None):
    global _logging_ready
    if not _logging_ready:
        if settings is None:
            setup_logging()
        else:
            setup_logging(settings.log_level, log_dir=settings.log_dir)
        _logging_ready = True


def configuration_required(settings: Settings):
    """Blocking screen shown when Supabase credentials are missing."""
    st.title("Configuration requise")
    st.error("Les identifiants Supabase sont introuvables.")
    st.markdown("""
Ajoutez-les dans `.streamlit/secrets.toml` :

```toml
[supabase]
url = "https://votre-projet.supabase.co"
key = "votre-cle-anon"
```

ou dans les variables d'environnement `SUPABASE_URL` et `SUPABASE_ANON_KEY`.

Pour travailler uniquement en local, définissez `HACCP_ALLOW_LOCAL_ONLY=true`
(ou `allow_local_only = true` dans la section `[app]`).
""")
    st.caption(f"Base locale : {settings.local_db_path}")
    st.stop()


def setup_page(title: str, icon: str) -> Settings:
    """
    Common start of every page: page config, logging, state, theme,
    connectivity badge and the configuration gate.
    """
    st.set_page_config(page_title=f"{title} - HACCP", page_icon=icon, layout="wide")
    init_state()
    apply_css()

    try:
        settings = get_settings()
    except ConfigurationError as e:
        _ensure_logging()
        logger.error(f"Invalid configuration: {e}")
        st.error(f"Configuration invalide : {e.message}")
        st.stop()

    _ensure_logging(settings)
    if not settings.remote_configured and not settings.allow_local_only:
        configuration_required(settings)

    st.sidebar.markdown(f"## {settings.restaurant_name}")
    connectivity_badge()
    return settings
