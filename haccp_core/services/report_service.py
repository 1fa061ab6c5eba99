# =============================================================================
# haccp_core/services/report_service.py
# Report Service - builds PDFs from collections the page already loaded
# =============================================================================

from __future__ import annotations
import threading
from datetime import datetime
from typing import Optional, Sequence

from haccp_core.config import Settings, get_settings
from haccp_core.domain import DailyLog, InventoryItem, Recipe, StockMovement, TraceabilityRecord
from haccp_core.reports import (
    build_daily_log_report,
    build_history_report,
    build_production_label,
    build_stock_report,
    build_traceability_report,
    month_label,
    records_for_month,
)

from .base_service import BaseService, ServiceResult


class ReportService(BaseService):
    """
    Every method returns a ServiceResult whose data is a ReportFile.

    Usage:
        result = get_report_service().daily_log(log)
        if result:
            st.download_button("PDF", result.data.content, file_name=result.data.filename)
        else:
            st.warning(result.error)
    """

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()
        self._settings = settings

    @property
    def restaurant_name(self) -> str:
        return (self._settings or get_settings()).restaurant_name

    def daily_log(self, log: DailyLog, generated_at: Optional[datetime] = None) -> ServiceResult:
        return self.safe_execute(
            f"Daily report {log.date}",
            build_daily_log_report,
            log,
            restaurant_name=self.restaurant_name,
            generated_at=generated_at,
        )

    def history(self, logs: Sequence[DailyLog], generated_at: Optional[datetime] = None) -> ServiceResult:
        return self.safe_execute(
            f"History report ({len(logs)} days)",
            build_history_report,
            logs,
            restaurant_name=self.restaurant_name,
            generated_at=generated_at,
        )

    def traceability_month(
        self,
        records: Sequence[TraceabilityRecord],
        month: str,
        generated_at: Optional[datetime] = None,
    ) -> ServiceResult:
        """Monthly register for `month` ('YYYY-MM')."""
        def _build():
            return build_traceability_report(
                records_for_month(records, month),
                f"Registre {month_label(month)}",
                restaurant_name=self.restaurant_name,
                generated_at=generated_at,
            )

        return self.safe_execute(f"Traceability report {month}", _build)

    def stock(
        self,
        inventory: Sequence[InventoryItem],
        movements: Sequence[StockMovement] = (),
        generated_at: Optional[datetime] = None,
    ) -> ServiceResult:
        return self.safe_execute(
            "Stock report",
            build_stock_report,
            inventory,
            movements,
            restaurant_name=self.restaurant_name,
            generated_at=generated_at,
        )

    def production_label(self, recipe: Recipe, produced_at: Optional[datetime] = None) -> ServiceResult:
        return self.safe_execute(
            f"Label {recipe.name}",
            build_production_label,
            recipe,
            produced_at=produced_at,
            restaurant_name=self.restaurant_name,
        )


# Singleton accessor
_report_service: Optional[ReportService] = None
_lock = threading.Lock()


def get_report_service() -> ReportService:
    """Get the global ReportService instance."""
    global _report_service
    if _report_service is None:
        with _lock:
            if _report_service is None:
                _report_service = ReportService()
    return _report_service
