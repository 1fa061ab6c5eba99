# =============================================================================
# Welcome.py - Tableau de bord du registre HACCP
# =============================================================================
"""
Entry page: today's progress, section status, alerts and the last two weeks
of compliance.
"""
from __future__ import annotations
import pandas as pd
import plotly.express as px
import streamlit as st

from haccp_core.errors.handlers import ErrorContext
from haccp_core.reports.layout import long_french_date
from haccp_core.services import (
    get_checklist_service,
    get_report_service,
    get_stock_service,
    get_traceability_service,
)
from haccp_core.ui import add_grid, header, setup_page, source_notice, stat_card
from haccp_core.ui.components import status_color
from haccp_core.ui.theme import DANGER_COLOR, PRIMARY_COLOR, SUCCESS_COLOR

settings = setup_page("Tableau de bord", "🧾")

checklist = get_checklist_service()
today = checklist.today()

header(settings.restaurant_name, f"Aujourd'hui, {long_french_date(today)}")

today_result = checklist.get_log(today)
source_notice(today_result)
log = today_result.first

inventory = get_stock_service().list_inventory().data
records = get_traceability_service().list_records().data
low_stock = get_stock_service().low_stock_items(inventory)
expired = get_traceability_service().expired(records)

# ============================================================================
# KPIs
# ============================================================================
c1, c2, c3 = st.columns(3)
with c1:
    stat_card("Progression HACCP", f"{log.progress if log else 0}%", PRIMARY_COLOR)
with c2:
    stat_card("Contrôles validés",
              f"{log.completed_count}/{log.total_count}" if log else "-", SUCCESS_COLOR)
with c3:
    stat_card("Alertes sanitaires", str(len(low_stock) + len(expired)), DANGER_COLOR)

if low_stock:
    st.warning("Stock bas : " + ", ".join(item.name for item in low_stock))
if expired:
    st.error("DLC dépassée : " + ", ".join(record.item_name for record in expired))

# ============================================================================
# SECTION STATUS
# ============================================================================
left, right = st.columns([3, 2])

with left:
    st.markdown("### État des sections")
    if log:
        for status in checklist.category_status(log):
            color = status_color(status.done, partial=status.completed > 0)
            st.markdown(
                f'<div class="metric-card" style="border-left:4px solid {color};padding:10px 16px">'
                f'<b>{status.label}</b> <span style="float:right">{status.completed}/{status.total} effectués</span>'
                f'</div>',
                unsafe_allow_html=True,
            )
        st.page_link("pages/01_Checklist.py", label="Ouvrir la checklist", icon="✅")

        report = get_report_service().daily_log(log)
        if report:
            st.download_button(
                "Exporter le relevé du jour (PDF)",
                data=report.data.content,
                file_name=report.data.filename,
                mime=report.data.mime,
            )
        else:
            st.warning(report.error)

with right:
    st.markdown("### Conseil hygiène")
    st.info(
        "Pensez à bien étiqueter tous vos bacs gastronormes avec la date de production "
        "et d'ouverture. C'est le premier point vérifié en cas d'inspection."
    )
    st.page_link("pages/05_Assistant.py", label="Poser une question", icon="💬")

# ============================================================================
# LAST 14 DAYS
# ============================================================================
st.markdown("### Conformité des 14 derniers jours")

with ErrorContext("Chargement de l'historique"):
    logs = checklist.list_logs().data
    recent = sorted(logs, key=lambda entry: entry.date)[-14:]
    if recent:
        df = pd.DataFrame({
            "Date": [entry.date for entry in recent],
            "Progression (%)": [entry.progress for entry in recent],
            "Statut": ["Conforme" if entry.is_conforming else "Incomplet" for entry in recent],
        })
        fig = px.bar(
            df, x="Date", y="Progression (%)", color="Statut",
            color_discrete_map={"Conforme": SUCCESS_COLOR, "Incomplet": DANGER_COLOR},
            range_y=[0, 100],
        )
        st.plotly_chart(add_grid(fig), use_container_width=True)
    else:
        st.caption("Aucun relevé enregistré pour le moment.")
