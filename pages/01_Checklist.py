# =============================================================================
# 01_Checklist.py - Daily control points and temperature readings
# =============================================================================
from __future__ import annotations
from datetime import date

import streamlit as st

from haccp_core.domain import HaccpCategory
from haccp_core.domain.constants import CATEGORY_LABELS
from haccp_core.errors import ValidationError
from haccp_core.services import get_checklist_service, get_report_service
from haccp_core.ui import header, setup_page, source_notice

setup_page("Checklist", "✅")
header("Checklist HACCP", "Contrôles du jour et relevés de températures", "✅")

checklist = get_checklist_service()

picked = st.date_input(
    "Date du relevé",
    value=date.fromisoformat(st.session_state.get("selected_date") or checklist.today()),
    format="DD/MM/YYYY",
)
selected = picked.isoformat()
st.session_state["selected_date"] = selected

result = checklist.get_log(selected)
source_notice(result)
log = result.first
if log is None:
    st.stop()

st.progress(log.progress / 100, text=f"{log.completed_count}/{log.total_count} contrôles ({log.progress}%)")
if log.is_locked:
    st.info(f"Relevé signé par {log.signature} : lecture seule.")


def _toggle(item_id: str):
    completed = st.session_state[f"chk_{selected}_{item_id}"]
    saved = checklist.set_completed(selected, item_id, completed)
    if not saved.is_live:
        source_notice(saved, saved=True)


def _temperature(item_id: str):
    raw = st.session_state[f"temp_{selected}_{item_id}"]
    if not str(raw).strip():
        return
    try:
        saved = checklist.record_temperature(selected, item_id, raw)
    except ValidationError as e:
        st.toast(e.message, icon="⚠️")
        return
    if not saved.is_live:
        source_notice(saved, saved=True)


for category, label in CATEGORY_LABELS.items():
    items = log.items_in(category)
    if not items:
        continue
    done = sum(1 for item in items if item.completed)
    with st.expander(f"{label} ({done}/{len(items)})", expanded=done < len(items)):
        for item in items:
            if category == HaccpCategory.TEMPERATURE:
                c1, c2 = st.columns([3, 1])
                c1.markdown(f"{'✅' if item.completed else '⬜'} {item.label}")
                c2.text_input(
                    "°C",
                    value="" if item.value is None else str(item.value),
                    key=f"temp_{selected}_{item.id}",
                    on_change=_temperature,
                    args=(item.id,),
                    disabled=log.is_locked,
                    label_visibility="collapsed",
                    placeholder="°C",
                )
            else:
                st.checkbox(
                    item.label,
                    value=item.completed,
                    key=f"chk_{selected}_{item.id}",
                    on_change=_toggle,
                    args=(item.id,),
                    disabled=log.is_locked,
                )

st.markdown("### Validation")
c1, c2 = st.columns(2)
with c1:
    if not log.is_locked:
        with st.form("signature"):
            name = st.text_input("Nom du responsable")
            if st.form_submit_button("Signer et verrouiller"):
                try:
                    signed = checklist.sign(log, name)
                    source_notice(signed, saved=True)
                    st.rerun()
                except ValidationError as e:
                    st.warning(e.message)
with c2:
    report = get_report_service().daily_log(log)
    if report:
        st.download_button("Télécharger le relevé (PDF)", data=report.data.content,
                           file_name=report.data.filename, mime=report.data.mime)
    else:
        st.warning(report.error)
