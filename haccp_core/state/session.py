import streamlit as st

# Central registry for session-state keys used across the app.
SESSION_DEFAULTS = {
    "selected_date": None,       # Checklist date being edited (YYYY-MM-DD)
    "traceability_month": None,  # YYYY-MM selected for the monthly register
    "assistant_history": [],     # (question, answer) pairs
    "last_analysis": None,       # Compliance analysis of the selected log
    "debug_mode": False,
}


def init_state():
    """Initialize session state with defaults."""
    for k, v in SESSION_DEFAULTS.items():
        if k not in st.session_state:
            st.session_state[k] = list(v) if isinstance(v, list) else v
