from __future__ import annotations
from typing import Optional

import streamlit as st

from haccp_core.offline import ConnectionStatus, DataSource, RepositoryResult, get_connection_manager
from haccp_core.errors import ErrorKind
from .theme import (PRIMARY_COLOR, SUCCESS_COLOR, WARNING_COLOR, DANGER_COLOR,
                    TEXT_COLOR, SUBTLE_TEXT, GRID_COLOR, CARD_BG_LIGHT)


def header(title: str, subtitle: str, icon: str = "🧾"):
    st.markdown(f"""
        <div class="main-header">
            <div style="display:flex;gap:1.2rem;align-items:center;">
                <div style="font-size:2.6rem;">{icon}</div>
                <div>
                    <h1 style="margin:0; font-size:2rem; color:white;">{title}</h1>
                    <p style="margin:.35rem 0 0 0;color:rgba(255,255,255,.85);font-size:1rem">{subtitle}</p>
                </div>
            </div>
        </div>
    """, unsafe_allow_html=True)


def stat_card(label: str, value: str, color: str = PRIMARY_COLOR):
    st.markdown(f"""
        <div class="metric-card" style="border-left: 4px solid {color};">
            <div class="label">{label}</div>
            <div class="value">{value}</div>
        </div>
    """, unsafe_allow_html=True)


def connectivity_badge():
    """Sidebar indicator: cloud, local fallback, or unconfigured."""
    manager = get_connection_manager()
    manager.is_available()
    status = manager.status
    if status == ConnectionStatus.ONLINE:
        color, text = SUCCESS_COLOR, "Cloud synchronisé"
    elif status == ConnectionStatus.UNCONFIGURED:
        color, text = SUBTLE_TEXT, "Mode local (Supabase non configuré)"
    else:
        color, text = WARNING_COLOR, "Hors ligne : données locales"
    st.sidebar.markdown(
        f'<span class="status-pill" style="background:{color}">{text}</span>',
        unsafe_allow_html=True,
    )


_SOURCE_MESSAGES = {
    ErrorKind.REMOTE_SCHEMA: "Les tables Supabase sont absentes : données locales affichées. "
                             "Lancez scripts/check_supabase_schema.py.",
    ErrorKind.CANCELLED: "Requête annulée : données locales affichées.",
}


def source_notice(result: RepositoryResult, saved: bool = False):
    """Tell the user when a read or write did not reach the cloud."""
    if result.source == DataSource.LIVE:
        return
    if result.source == DataSource.FAILED:
        st.error("Enregistrement local impossible." if saved else "Données indisponibles.")
        return
    if result.error_kind == ErrorKind.REMOTE_UNCONFIGURED:
        return
    message = _SOURCE_MESSAGES.get(result.error_kind)
    if message is None:
        message = ("Enregistré localement, la synchronisation cloud a échoué."
                   if saved else "Connexion au cloud impossible : données locales affichées.")
    st.warning(message)


def add_grid(fig):
    """Consistent plotly styling."""
    fig.update_xaxes(showgrid=True, gridcolor=GRID_COLOR, zeroline=False,
                     showline=True, linecolor=GRID_COLOR,
                     tickfont=dict(color=SUBTLE_TEXT), title_font=dict(color=TEXT_COLOR))
    fig.update_yaxes(showgrid=True, gridcolor=GRID_COLOR, zeroline=False,
                     showline=True, linecolor=GRID_COLOR,
                     tickfont=dict(color=SUBTLE_TEXT), title_font=dict(color=TEXT_COLOR))
    fig.update_layout(plot_bgcolor=CARD_BG_LIGHT, paper_bgcolor=CARD_BG_LIGHT,
                      font=dict(family="Segoe UI, sans-serif", size=12, color=TEXT_COLOR),
                      title_font=dict(color=TEXT_COLOR))
    return fig


def status_color(done: bool, partial: Optional[bool] = None) -> str:
    if done:
        return SUCCESS_COLOR
    return WARNING_COLOR if partial else DANGER_COLOR
