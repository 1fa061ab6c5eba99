# =============================================================================
# haccp_core/services/__init__.py
# Business operations used by the pages
# =============================================================================

from .base_service import BaseService, ServiceResult
from .checklist_service import (
    ChecklistService,
    CategoryStatus,
    get_checklist_service,
    parse_temperature,
)
from .traceability_service import (
    TraceabilityService,
    PhotoUpload,
    ReceiptOutcome,
    get_traceability_service,
)
from .stock_service import (
    StockService,
    MovementRequest,
    MovementOutcome,
    ProductionOutcome,
    apply_movement,
    get_stock_service,
)
from .report_service import ReportService, get_report_service

__all__ = [
    "BaseService",
    "ServiceResult",
    "ChecklistService",
    "CategoryStatus",
    "get_checklist_service",
    "parse_temperature",
    "TraceabilityService",
    "PhotoUpload",
    "ReceiptOutcome",
    "get_traceability_service",
    "StockService",
    "MovementRequest",
    "MovementOutcome",
    "ProductionOutcome",
    "apply_movement",
    "get_stock_service",
    "ReportService",
    "get_report_service",
]
