# =============================================================================
# haccp_core/services/checklist_service.py
# Checklist Service - the daily control points of one date
# =============================================================================

from __future__ import annotations
import threading
from dataclasses import dataclass
from datetime import date as date_type, datetime
from typing import Callable, Dict, List, Optional, Union

from haccp_core.domain import DailyLog, HaccpCategory
from haccp_core.domain.constants import CATEGORY_LABELS, TEMPERATURE_CHECKS_PER_DAY
from haccp_core.errors import ValidationError
from haccp_core.offline import RepositoryResult, SynchronizingRepository, get_repository
from haccp_core.utils import CancellationToken

from .base_service import BaseService


@dataclass
class CategoryStatus:
    """Completion of one checklist section."""
    category: HaccpCategory
    label: str
    completed: int
    total: int

    @property
    def done(self) -> bool:
        return self.total > 0 and self.completed == self.total


def parse_temperature(value: Union[str, float, int, None]) -> float:
    """Accepts "3,5" as well as "3.5"."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value or "").strip().replace(",", ".")
    if not text:
        raise ValidationError("Saisissez une température.")
    try:
        return float(text)
    except ValueError:
        raise ValidationError(f"Température invalide : {value!r}", details={"value": value})


class ChecklistService(BaseService):
    """Reads and updates the daily log, one item at a time."""

    def __init__(
        self,
        repository: Optional[SynchronizingRepository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(clock)
        self._repository = repository

    @property
    def repository(self) -> SynchronizingRepository:
        if self._repository is None:
            self._repository = get_repository()
        return self._repository

    def today(self) -> str:
        return self.now().date().isoformat()

    def list_logs(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[DailyLog]:
        return self.repository.list_daily_logs(cancel)

    def get_log(self, date: Optional[Union[str, date_type]] = None,
                cancel: Optional[CancellationToken] = None) -> RepositoryResult[DailyLog]:
        """Log for `date` (default today), created when missing."""
        day = date.isoformat() if isinstance(date, date_type) else (date or self.today())
        return self.repository.ensure_daily_log(day, cancel)

    def set_completed(
        self,
        date: str,
        item_id: str,
        completed: bool,
        cancel: Optional[CancellationToken] = None,
    ) -> RepositoryResult[DailyLog]:
        """Tick or untick an item; ticking stamps the current time."""
        timestamp = self.timestamp() if completed else None
        self.logger.info(f"{date} {item_id}: {'done' if completed else 'reset'}")
        return self.repository.update_check_item(
            date, item_id, cancel, completed=completed, timestamp=timestamp
        )

    def record_temperature(
        self,
        date: str,
        item_id: str,
        value: Union[str, float],
        cancel: Optional[CancellationToken] = None,
    ) -> RepositoryResult[DailyLog]:
        """
        Store a reading and mark the item completed.

        Raises:
            ValidationError: when `value` is not a number
        """
        reading = parse_temperature(value)
        self.logger.info(f"{date} {item_id}: {reading:g} °C")
        return self.repository.update_check_item(
            date,
            item_id,
            cancel,
            value=reading,
            completed=True,
            timestamp=self.timestamp(),
        )

    def sign(self, log: DailyLog, signature: str,
             cancel: Optional[CancellationToken] = None) -> RepositoryResult[DailyLog]:
        """Attach the manager's name and lock the log."""
        signature = signature.strip()
        if not signature:
            raise ValidationError("La signature est obligatoire.")
        signed = log.copy()
        signed.signature = signature
        signed.is_locked = True
        result = self.repository.upsert_daily_log(signed, cancel)
        return RepositoryResult(result.source, [signed], result.error_kind, result.error)

    @staticmethod
    def category_status(log: DailyLog) -> List[CategoryStatus]:
        """Per-section completion in display order; empty sections are left out."""
        statuses = []
        for category, label in CATEGORY_LABELS.items():
            items = log.items_in(category)
            if items:
                statuses.append(
                    CategoryStatus(
                        category=category,
                        label=label,
                        completed=sum(1 for item in items if item.completed),
                        total=len(items),
                    )
                )
        return statuses

    @staticmethod
    def temperature_checks_done(log: DailyLog) -> bool:
        done = sum(1 for item in log.items_in(HaccpCategory.TEMPERATURE) if item.completed)
        return done >= TEMPERATURE_CHECKS_PER_DAY

    @staticmethod
    def summary(logs: List[DailyLog]) -> Dict[str, float]:
        """Figures for the dashboard."""
        if not logs:
            return {"days": 0, "conforming_days": 0, "average_progress": 0.0}
        return {
            "days": len(logs),
            "conforming_days": sum(1 for log in logs if log.is_conforming),
            "average_progress": round(sum(log.progress for log in logs) / len(logs), 1),
        }


# Singleton accessor
_checklist_service: Optional[ChecklistService] = None
_lock = threading.Lock()


def get_checklist_service() -> ChecklistService:
    """Get the global ChecklistService instance."""
    global _checklist_service
    if _checklist_service is None:
        with _lock:
            if _checklist_service is None:
                _checklist_service = ChecklistService()
    return _checklist_service
