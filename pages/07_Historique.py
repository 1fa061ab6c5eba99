# =============================================================================
# 07_Historique.py - Past daily logs and the history report
# =============================================================================
from __future__ import annotations
import pandas as pd
import streamlit as st

from haccp_core.reports import history_rows
from haccp_core.services import get_checklist_service, get_report_service
from haccp_core.ui import header, setup_page, source_notice, stat_card
from haccp_core.ui.theme import PRIMARY_COLOR, SUCCESS_COLOR, WARNING_COLOR

setup_page("Historique", "🗂️")
header("Historique des contrôles", "Tous les relevés enregistrés", "🗂️")

checklist = get_checklist_service()
listed = checklist.list_logs()
source_notice(listed)
logs = sorted(listed.data, key=lambda log: log.date, reverse=True)

if not logs:
    st.caption("Aucun relevé enregistré.")
    st.stop()

summary = checklist.summary(logs)
c1, c2, c3 = st.columns(3)
with c1:
    stat_card("Jours enregistrés", str(summary["days"]), PRIMARY_COLOR)
with c2:
    stat_card("Jours conformes", str(summary["conforming_days"]), SUCCESS_COLOR)
with c3:
    stat_card("Progression moyenne", f"{summary['average_progress']}%", WARNING_COLOR)

st.dataframe(
    pd.DataFrame(
        [row.cells for row in history_rows(logs)],
        columns=["Date", "Contrôles effectués", "Statut global", "Temp. Matin/Soir"],
    ),
    hide_index=True,
    use_container_width=True,
)

c1, c2 = st.columns(2)
with c1:
    report = get_report_service().history(logs)
    if report:
        st.download_button("Exporter l'historique (PDF)", data=report.data.content,
                           file_name=report.data.filename, mime=report.data.mime)
    else:
        st.warning(report.error)
with c2:
    day = st.selectbox("Relevé détaillé", [log.date for log in logs])
    selected = next(log for log in logs if log.date == day)
    daily = get_report_service().daily_log(selected)
    if daily:
        st.download_button(f"Relevé du {day} (PDF)", data=daily.data.content,
                           file_name=daily.data.filename, mime=daily.data.mime)
