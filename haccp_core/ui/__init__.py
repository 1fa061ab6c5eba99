from .page_setup import setup_page
from .components import header, stat_card, source_notice, add_grid, connectivity_badge

__all__ = ["setup_page", "header", "stat_card", "source_notice", "add_grid", "connectivity_badge"]
