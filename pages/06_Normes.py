# =============================================================================
# 06_Normes.py - Hygiene reference sheet
# =============================================================================
from __future__ import annotations
import streamlit as st

from haccp_core.domain.constants import ALLERGENS_LIST, COLOR_BOARDS
from haccp_core.ui import header, setup_page

setup_page("Normes", "📏")
header("Normes d'hygiène", "Rappels affichés en cuisine", "📏")

HANDWASHING = [
    "En arrivant au poste de travail",
    "Après avoir touché des denrées souillées (cartons, œufs, terre...)",
    "Après chaque passage aux toilettes (lavage + désinfection)",
    "Après s'être mouché, avoir fumé ou touché son visage",
    "Entre deux manipulations de produits différents (ex: poulet cru vers légumes)",
    "Toutes les 15-30 min : lavage réflexe de sécurité pendant le rush",
]

c1, c2 = st.columns(2)
with c1:
    st.markdown("### 🧼 Lavage des mains")
    st.warning("RECOMMANDATION : Se laver les mains toutes les 15 à 30 minutes en période de service intense.")
    for text in HANDWASHING:
        st.markdown(f"- {text}")

with c2:
    st.markdown("### 🎨 Code couleur des planches")
    for board in COLOR_BOARDS:
        st.markdown(
            f'<div style="display:flex;align-items:center;gap:10px;margin:6px 0">'
            f'<span style="width:22px;height:22px;border-radius:6px;border:1px solid #d1d5db;'
            f'background:{board["hex"]}"></span>'
            f'<b>{board["color"]}</b> : {board["usage"]}</div>',
            unsafe_allow_html=True,
        )

st.markdown("### ⚠️ Les 14 Allergènes Majeurs")
st.markdown(" · ".join(f"**{allergen}**" for allergen in ALLERGENS_LIST))
st.caption("L'information sur les allergènes est obligatoire pour les denrées non pré-emballées.")

st.markdown("### 💧 Linge & Petit matériel")
c1, c2 = st.columns(2)
c1.info("**Torchons** : à changer au minimum 2 fois par jour (Matin/Soir). "
        "Ne jamais utiliser de torchon sale ou humide pour le service.")
c2.info("**Plonge** : les éponges et lavettes doivent être désinfectées quotidiennement "
        "et changées dès signe d'usure.")
