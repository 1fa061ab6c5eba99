# =============================================================================
# haccp_core/reports/__init__.py
# Printable documents of the HACCP register
# =============================================================================

from .pdf_reports import (
    ReportFile,
    build_daily_log_report,
    build_history_report,
    build_traceability_report,
    build_stock_report,
    build_production_label,
)
from .layout import (
    daily_log_layout,
    history_rows,
    records_for_month,
    month_label,
    group_by_day,
)
from .images import load_embeddable_image

__all__ = [
    "ReportFile",
    "build_daily_log_report",
    "build_history_report",
    "build_traceability_report",
    "build_stock_report",
    "build_production_label",
    "daily_log_layout",
    "history_rows",
    "records_for_month",
    "month_label",
    "group_by_day",
    "load_embeddable_image",
]
