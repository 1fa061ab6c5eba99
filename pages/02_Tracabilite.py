# =============================================================================
# 02_Tracabilite.py - Goods receipts with label photos, monthly register
# =============================================================================
from __future__ import annotations
from datetime import date

import streamlit as st

from haccp_core.errors import ValidationError
from haccp_core.reports.layout import format_day, long_french_date
from haccp_core.services import PhotoUpload, get_report_service, get_traceability_service
from haccp_core.ui import header, setup_page, source_notice

setup_page("Traçabilité", "📦")
header("Traçabilité Photos", "Archives des étiquettes reçues", "📦")

service = get_traceability_service()
listed = service.list_records()
source_notice(listed)
records = listed.data

# ============================================================================
# MONTHLY REGISTER
# ============================================================================
c1, c2 = st.columns([2, 1])
with c1:
    default_month = st.session_state.get("traceability_month") or date.today().strftime("%Y-%m")
    months = sorted({record.date[:7] for record in records} | {default_month}, reverse=True)
    month = st.selectbox("Mois du registre", months, index=months.index(default_month))
    st.session_state["traceability_month"] = month
with c2:
    st.write("")
    if st.button("Générer Registre Mensuel (PDF)"):
        with st.spinner("Génération du registre..."):
            report = get_report_service().traceability_month(records, month)
        if report:
            for warning in report.data.warnings:
                st.warning(warning)
            st.download_button("Télécharger le registre", data=report.data.content,
                               file_name=report.data.filename, mime=report.data.mime)
        else:
            st.warning(report.error)

# ============================================================================
# NEW RECEIPT
# ============================================================================
with st.expander("➕ Arrivage du jour", expanded=not records):
    with st.form("receipt", clear_on_submit=True):
        item_name = st.text_input("Produit", placeholder="Ex: Saumon, Farine, Beurre...")
        lot_number = st.text_input("Numéro de lot (optionnel)")
        expiry = st.date_input("DLC / DDM", value=None, format="DD/MM/YYYY")
        photo = st.camera_input("Prendre l'étiquette en photo") or st.file_uploader(
            "ou importer une photo", type=["jpg", "jpeg", "png", "webp"]
        )
        if st.form_submit_button("Enregistrer"):
            upload = None
            if photo is not None:
                upload = PhotoUpload(photo.getvalue(), photo.name or "etiquette.jpg",
                                     photo.type or "image/jpeg")
            try:
                outcome = service.record_receipt(
                    item_name,
                    expiry.isoformat() if expiry else "",
                    lot_number,
                    photo=upload,
                )
            except ValidationError as e:
                st.warning(e.message)
            else:
                if outcome.photo is not None and not outcome.photo.stored_remotely:
                    st.info("Photo conservée localement (stockage cloud indisponible).")
                source_notice(outcome.result, saved=True)
                st.success(f"{outcome.record.item_name} enregistré.")
                records = outcome.result.data or service.list_records().data

# ============================================================================
# ARCHIVE BY DAY
# ============================================================================
expired_ids = {record.id for record in service.expired(records)}
for index, (day, day_records) in enumerate(service.by_day(records).items()):
    with st.expander(f"{long_french_date(day)} - {len(day_records)} étiquettes", expanded=index == 0):
        for record in day_records:
            c1, c2, c3 = st.columns([1, 3, 1])
            with c1:
                if record.photo_url:
                    st.image(record.photo_url, use_container_width=True)
                else:
                    st.caption("Pas de photo")
            with c2:
                st.markdown(f"**{record.item_name}**")
                st.caption(f"Lot : {record.lot_number}")
                dlc = f"DLC : {format_day(record.expiry_date)}"
                if record.id in expired_ids:
                    st.error(dlc)
                else:
                    st.caption(dlc)
            with c3:
                if st.button("Supprimer", key=f"del_{record.id}"):
                    deleted = service.delete_record(record.id)
                    source_notice(deleted, saved=True)
                    st.rerun()

if not records:
    st.caption("Aucun arrivage enregistré.")
