# =============================================================================
# 04_Recettes.py - Technical sheets, production and labels
# =============================================================================
from __future__ import annotations
import streamlit as st

from haccp_core.domain.constants import find_recipes
from haccp_core.errors.handlers import ErrorContext
from haccp_core.services import get_report_service, get_stock_service
from haccp_core.ui import header, setup_page

setup_page("Recettes", "📖")
header("Fiches techniques", "Recettes, allergènes et étiquettes de production", "📖")

search = st.text_input("Rechercher", placeholder="Chercher une recette...")
recipes = find_recipes(search)
if not recipes:
    st.caption("Aucune recette trouvée.")
    st.stop()

names = [recipe.name for recipe in recipes]
recipe = recipes[names.index(st.radio("Recette", names, horizontal=True))]

c1, c2 = st.columns([3, 2])
with c1:
    st.markdown(f"### {recipe.name}")
    st.caption(f"⏱️ {recipe.prep_time} · {recipe.category} · DLC {recipe.shelf_life_days} j")
    st.markdown("#### Ingrédients")
    for ingredient in recipe.ingredients:
        st.markdown(f"- {ingredient.name} : {ingredient.amount:g} {ingredient.unit}")
    st.markdown("#### Étapes")
    for number, step in enumerate(recipe.steps, start=1):
        st.markdown(f"{number}. {step}")

with c2:
    st.markdown("#### Allergènes")
    st.error(" · ".join(recipe.allergens) if recipe.allergens else "Aucun allergène déclaré")

    if st.button("Lancer la production", help="Déduit les ingrédients du stock"):
        with ErrorContext("Mise à jour des stocks"):
            outcome = get_stock_service().produce_recipe(recipe)
            if outcome.movements:
                st.success(f"{len(outcome.movements)} ingrédient(s) déduit(s) du stock.")
            if outcome.skipped:
                st.info("Non suivis en stock : " + ", ".join(outcome.skipped))

    label = get_report_service().production_label(recipe)
    if label:
        st.download_button("🖨️ Imprimer l'étiquette", data=label.data.content,
                           file_name=label.data.filename, mime=label.data.mime)
    else:
        st.warning(label.error)
