import streamlit as st

# === COLOR PALETTE ===
PRIMARY_COLOR    = "#4338ca"
SECONDARY_COLOR  = "#6366f1"
SUCCESS_COLOR    = "#16a34a"
WARNING_COLOR    = "#f59e0b"
DANGER_COLOR     = "#dc2626"
TEXT_COLOR       = "#2c3e50"
SUBTLE_TEXT      = "#6b7280"
GRID_COLOR       = "#e5e7eb"
BACKGROUND_COLOR = "#f8fafc"
CARD_BG_LIGHT    = "#ffffff"


def apply_css():
    """Shared styles for every page of the register."""
    st.markdown(f"""
        <style>
        .main {{
            background-color: {BACKGROUND_COLOR};
            color: {TEXT_COLOR};
            font-family: 'Segoe UI','Inter','SF Pro Display',sans-serif;
        }}
        .main-header {{
            background: linear-gradient(135deg, {PRIMARY_COLOR} 0%, {SECONDARY_COLOR} 100%);
            padding: 1.6rem 2rem; border-radius: 16px; margin-bottom: 1.5rem;
            box-shadow: 0 8px 32px rgba(67,56,202,.25);
        }}
        .metric-card {{
            background: {CARD_BG_LIGHT}; padding: 18px; border-radius: 12px;
            box-shadow: 0 2px 8px rgba(0,0,0,0.06); margin: 8px 0; border: 1px solid {GRID_COLOR};
        }}
        .metric-card .value {{ font-size: 1.8rem; font-weight: 700; color: {TEXT_COLOR}; }}
        .metric-card .label {{ font-size: .8rem; text-transform: uppercase; color: {SUBTLE_TEXT}; }}
        .status-pill {{
            display: inline-block; padding: 2px 10px; border-radius: 999px;
            font-size: .75rem; font-weight: 600; color: white;
        }}
        .stButton button {{
            background: linear-gradient(135deg, {PRIMARY_COLOR} 0%, {SECONDARY_COLOR} 100%);
            color: white; border: none; border-radius: 10px; padding: .48rem 1.2rem; font-weight: 600;
        }}
        .stButton button:disabled {{ background: #ced4da; color: #6c757d; cursor: not-allowed; opacity: 0.65; }}
        h1,h2,h3,h4 {{ color: {TEXT_COLOR}; font-weight: 600; }}
        h3 {{ color: {PRIMARY_COLOR}; }}
        [data-testid="stSidebar"] {{ background-color: {CARD_BG_LIGHT}; border-right: 1px solid {GRID_COLOR}; }}
        </style>
    """, unsafe_allow_html=True)
