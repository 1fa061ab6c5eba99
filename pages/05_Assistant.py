# =============================================================================
# 05_Assistant.py - AI compliance analysis and food-safety questions
# =============================================================================
from __future__ import annotations
import streamlit as st

from haccp_core.ai import get_assistant
from haccp_core.services import get_checklist_service
from haccp_core.ui import header, setup_page

setup_page("Assistant", "💬")
header("Assistant HACCP", "Analyse du relevé et questions d'hygiène", "💬")

assistant = get_assistant()
if not assistant.available:
    st.info("Clé OpenAI absente : l'assistant répondra par un message d'indisponibilité.")

checklist = get_checklist_service()
day = st.session_state.get("selected_date") or checklist.today()

st.markdown(f"### Analyse du relevé du {day}")
if st.button("Analyser la conformité"):
    log = checklist.get_log(day).first
    if log is not None:
        with st.spinner("Analyse en cours..."):
            st.session_state["last_analysis"] = assistant.analyze_compliance(log)
if st.session_state.get("last_analysis"):
    st.markdown(st.session_state["last_analysis"])

st.markdown("### Poser une question")
with st.form("question", clear_on_submit=True):
    question = st.text_area(
        "Question",
        placeholder="Ex: Quelle est la durée de conservation d'un fond de veau maison au frigo ?",
        label_visibility="collapsed",
    )
    if st.form_submit_button("Interroger l'IA") and question.strip():
        with st.spinner("Recherche..."):
            answer = assistant.answer_question(question)
        st.session_state["assistant_history"].insert(0, (question.strip(), answer))

for asked, answer in st.session_state["assistant_history"]:
    with st.chat_message("user"):
        st.write(asked)
    with st.chat_message("assistant"):
        st.markdown(answer)
