# =============================================================================
# 03_Stocks.py - Inventory ledger: deliveries, exits, low-stock alerts
# =============================================================================
from __future__ import annotations
import pandas as pd
import streamlit as st

from haccp_core.domain import MovementType
from haccp_core.errors import InvalidMovementError, UnknownItemError
from haccp_core.offline import RepositoryResult
from haccp_core.services import MovementRequest, get_report_service, get_stock_service
from haccp_core.ui import header, setup_page, source_notice

setup_page("Stocks", "📊")
header("Gestion des stocks", "Réceptions, sorties et seuils d'alerte", "📊")

service = get_stock_service()
inventory_result = service.list_inventory()
source_notice(inventory_result)
inventory = inventory_result.data
movements = service.list_movements().data

# ============================================================================
# NEW MOVEMENT
# ============================================================================
with st.expander("➕ Mouvement", expanded=False):
    with st.form("movement", clear_on_submit=True):
        known = sorted(item.name for item in inventory)
        c1, c2 = st.columns(2)
        name = c1.text_input("Produit", placeholder="Produit (ex: Steak, Pain...)",
                             help="Produits connus : " + ", ".join(known) if known else None)
        quantity = c2.number_input("Quantité", min_value=0.0, step=1.0)
        c3, c4 = st.columns(2)
        temperature = c3.number_input("Température à réception (°C)", value=None, step=0.5)
        reason = c4.text_input("Motif", placeholder="Livraison / Sortie manuelle")
        in_col, out_col = st.columns(2)
        add = in_col.form_submit_button("Entrée (livraison)")
        remove = out_col.form_submit_button("Sortie")

        if add or remove:
            request = MovementRequest(
                name=name,
                type=MovementType.IN if add else MovementType.OUT,
                quantity=quantity,
                reason=reason,
                temperature=temperature,
            )
            try:
                outcome = service.record_movement(request, inventory)
            except (InvalidMovementError, UnknownItemError) as e:
                st.warning(e.message)
            else:
                source_notice(RepositoryResult(outcome.source, error_kind=outcome.error_kind), saved=True)
                if outcome.created_item:
                    st.info(f"Nouveau produit créé : {outcome.item.name}")
                if outcome.went_negative:
                    st.warning(f"Stock négatif pour {outcome.item.name}.")
                st.success(f"{outcome.item.name} : {outcome.item.current_quantity:g} {outcome.item.unit}")
                inventory = outcome.inventory
                movements = service.list_movements().data

# ============================================================================
# INVENTORY
# ============================================================================
search = st.text_input("Rechercher", placeholder="🔍 Rechercher un produit")
visible = [item for item in inventory if search.lower() in item.name.lower()]

low = service.low_stock_items(inventory)
if low:
    st.warning("Sous le seuil : " + ", ".join(f"{item.name} ({item.current_quantity:g} {item.unit})" for item in low))

if visible:
    st.dataframe(
        pd.DataFrame([
            {
                "Produit": item.name,
                "Catégorie": item.category,
                "Quantité": item.current_quantity,
                "Unité": item.unit,
                "Seuil": item.min_threshold,
                "Temp. réception (°C)": item.last_delivery_temp,
                "Alerte": "⚠️" if item.is_low_stock else "",
            }
            for item in visible
        ]),
        hide_index=True,
        use_container_width=True,
    )
else:
    st.caption("Aucun produit.")

if inventory:
    with st.expander("🗑️ Retirer un produit", expanded=False):
        by_name = {item.name: item for item in inventory}
        name = st.selectbox("Produit à retirer", sorted(by_name))
        if st.button("Retirer de l'inventaire"):
            deleted = service.delete_item(by_name[name].id)
            source_notice(deleted, saved=True)
            st.rerun()

# ============================================================================
# HISTORY
# ============================================================================
st.markdown("### Derniers mouvements")
if movements:
    st.dataframe(
        pd.DataFrame([
            {
                "Date": movement.date[:16].replace("T", " "),
                "Produit": movement.item_name,
                "Sens": "⬆️ Entrée" if movement.type == MovementType.IN else "⬇️ Sortie",
                "Quantité": movement.quantity,
                "Motif": movement.reason,
                "Temp. (°C)": movement.temperature,
            }
            for movement in movements
        ]),
        hide_index=True,
        use_container_width=True,
    )
else:
    st.caption("Aucun mouvement enregistré.")

if inventory:
    report = get_report_service().stock(inventory, movements)
    if report:
        st.download_button("État des stocks (PDF)", data=report.data.content,
                           file_name=report.data.filename, mime=report.data.mime)
