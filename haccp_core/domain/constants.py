# =============================================================================
# haccp_core/domain/constants.py
# Checklist template and reference data for La Oncé
# =============================================================================

from __future__ import annotations
from typing import Dict, List, Tuple

from .models import CheckItem, HaccpCategory, Ingredient, Recipe

RESTAURANT_NAME = "La Oncé"

# (id, label, category) - ids are stable across days
DEFAULT_CHECKLIST: List[Tuple[str, str, HaccpCategory]] = [
    # --- OUVERTURE ---
    ("op-tables", "Mise en place salle & coup d'éponge tables", HaccpCategory.OPS_OPENING),
    ("op-caisse-in", "Ouverture caisse & comptage fond de caisse", HaccpCategory.OPS_OPENING),
    ("op-coffee-on", "Mise en route machine à café & test débit", HaccpCategory.OPS_OPENING),
    ("op-prep", "Mise en place cuisine & vérification DLC", HaccpCategory.OPS_OPENING),

    # --- HACCP TEMPERATURES ---
    ("t-cuisine-am", "Frigo Cuisine - Matin (+2°C/+4°C)", HaccpCategory.TEMPERATURE),
    ("t-bar-am", "Frigo Bar - Matin (+2°C/+4°C)", HaccpCategory.TEMPERATURE),
    ("t-boissons-am", "Frigo Boissons - Matin (+2°C/+4°C)", HaccpCategory.TEMPERATURE),
    ("t-cuisine-pm", "Frigo Cuisine - Soir (+2°C/+4°C)", HaccpCategory.TEMPERATURE),
    ("t-bar-pm", "Frigo Bar - Soir (+2°C/+4°C)", HaccpCategory.TEMPERATURE),
    ("t-boissons-pm", "Frigo Boissons - Soir (+2°C/+4°C)", HaccpCategory.TEMPERATURE),

    # --- HYGIÈNE & TRAÇABILITÉ ---
    ("g-hygiene", "Lavage des mains & tenue propre (Tablier/Coiffe)", HaccpCategory.GENERAL),
    ("g-trace", "Enregistrement étiquettes produits du jour", HaccpCategory.GENERAL),
    ("g-boards", "Respect code couleur planches (Rouge/Vert/Bleu)", HaccpCategory.GENERAL),
    ("g-knives", "Désinfection des couteaux (Armoire UV ou Solution)", HaccpCategory.GENERAL),

    # --- ENTRETIEN SPÉCIFIQUE ---
    ("c-linen-am", "Changement des torchons de service (Matin)", HaccpCategory.CLEANING),
    ("c-plonge-cl", "Changement lavettes & éponges plonge", HaccpCategory.CLEANING),
    ("c-coffee-clean", "Nettoyage complet machine café & filtres", HaccpCategory.CLEANING),
    ("c-floor", "Désinfection des sols cuisine & salle", HaccpCategory.CLEANING),

    # --- FERMETURE ---
    ("c-linen-pm", "Changement des torchons de service (Soir)", HaccpCategory.OPS_CLOSING),
    ("cl-caisse-out", "Fermeture caisse & rapport Z", HaccpCategory.OPS_CLOSING),
    ("cl-extinguish", "Vérification extinction feux & lumières", HaccpCategory.OPS_CLOSING),
    ("cl-trash", "Sortie des poubelles & nettoyage containers", HaccpCategory.OPS_CLOSING),
]

# Morning + evening reading for each of the three fridges
TEMPERATURE_CHECKS_PER_DAY = 6

# Display order of the checklist sections
CATEGORY_LABELS: Dict[HaccpCategory, str] = {
    HaccpCategory.OPS_OPENING: "Ouverture Matin",
    HaccpCategory.TEMPERATURE: "Relevés Températures",
    HaccpCategory.GENERAL: "Hygiène & Normes",
    HaccpCategory.CLEANING: "Entretien & Linge",
    HaccpCategory.OPS_CLOSING: "Fermeture Soir",
}


def category_label(category: HaccpCategory) -> str:
    return CATEGORY_LABELS.get(category, category.value)


def template_items() -> List[CheckItem]:
    """Fresh, uncompleted items for a new daily log."""
    return [
        CheckItem(id=item_id, label=label, category=category)
        for item_id, label, category in DEFAULT_CHECKLIST
    ]


ALLERGENS_LIST = [
    "Gluten", "Crustacés", "Œufs", "Poissons", "Arachides", "Soja", "Lait",
    "Fruits à coque", "Céleri", "Moutarde", "Sésame", "Sulfite", "Lupin", "Mollusques",
]

COLOR_BOARDS = [
    {"color": "Rouge", "usage": "Viandes crues", "hex": "#ef4444"},
    {"color": "Bleu", "usage": "Poissons crus", "hex": "#3b82f6"},
    {"color": "Vert", "usage": "Fruits & Légumes", "hex": "#22c55e"},
    {"color": "Jaune", "usage": "Volailles crues", "hex": "#facc15"},
    {"color": "Blanc", "usage": "Produits laitiers & pains", "hex": "#ffffff"},
    {"color": "Marron", "usage": "Viandes cuites", "hex": "#92400e"},
]

RECIPES: List[Recipe] = [
    Recipe(
        id="1",
        name="Fond de veau maison",
        prep_time="6h",
        category="entree",
        shelf_life_days=3,
        ingredients=(
            Ingredient("Os de veau", 5, "kg"),
            Ingredient("Vin rouge", 1, "l"),
        ),
        steps=(
            "Blanchir les os de veau à l'eau bouillante.",
            "Rôtir les os au four à 200°C jusqu'à coloration.",
            "Ajouter la garniture aromatique et pincer le concentré.",
            "Déglacer au vin rouge et mouiller à hauteur.",
            "Cuire à frémissement pendant 5 heures en écumant régulièrement.",
        ),
        allergens=("Céleri", "Sulfite"),
    ),
    Recipe(
        id="2",
        name="Burger Signature",
        prep_time="15min",
        category="plat",
        shelf_life_days=1,
        ingredients=(
            Ingredient("Pain Brioché", 1, "pcs"),
            Ingredient("Steak 150g", 1, "pcs"),
        ),
        steps=(
            "Toaster les pains au beurre.",
            "Saisir le steak à la plancha selon la cuisson demandée.",
            "Déposer le cheddar sur le steak en fin de cuisson pour fondre.",
            "Monter le burger : base sauce, steak fromage, oignons, chapeau.",
        ),
        allergens=("Gluten", "Lait", "Œufs", "Moutarde", "Sésame"),
    ),
]


def find_recipes(term: str = "") -> List[Recipe]:
    """Recipes whose name contains `term` (case-insensitive)."""
    term = term.strip().lower()
    return [r for r in RECIPES if term in r.name.lower()]
