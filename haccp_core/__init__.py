# =============================================================================
# haccp_core/__init__.py
# HACCP register for La Oncé: checklists, traceability, stock and reports
# =============================================================================

__version__ = "1.0.0"
