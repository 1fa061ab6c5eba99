# =============================================================================
# haccp_core/services/traceability_service.py
# Traceability Service - goods receipts with label photos
# =============================================================================

from __future__ import annotations
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from haccp_core.domain import LOT_UNSPECIFIED, TraceabilityRecord, new_id
from haccp_core.errors import ValidationError
from haccp_core.offline import PhotoRef, RepositoryResult, SynchronizingRepository, get_repository
from haccp_core.reports.layout import group_by_day, records_for_month
from haccp_core.utils import CancellationToken

from .base_service import BaseService


@dataclass
class PhotoUpload:
    """A photo picked in the receipt form."""
    content: bytes
    filename: str
    content_type: str = "image/jpeg"


@dataclass
class ReceiptOutcome:
    record: TraceabilityRecord
    result: RepositoryResult[TraceabilityRecord]
    photo: Optional[PhotoRef] = None


class TraceabilityService(BaseService):
    """Records goods receipts; a photo that cannot be stored remotely is embedded."""

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

    def list_records(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[TraceabilityRecord]:
        return self.repository.list_traceability(cancel)

    def upload_photo(self, photo: PhotoUpload, cancel: Optional[CancellationToken] = None) -> PhotoRef:
        ref = self.repository.upload_photo(photo.content, photo.filename, photo.content_type, cancel)
        if not ref.stored_remotely:
            self.logger.info(f"Photo {photo.filename} kept inline ({len(photo.content)} bytes)")
        return ref

    def record_receipt(
        self,
        item_name: str,
        expiry_date: str,
        lot_number: str = "",
        photo: Optional[PhotoUpload] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ReceiptOutcome:
        """
        Store one goods receipt.

        Raises:
            ValidationError: product name or expiry date missing
        """
        item_name = (item_name or "").strip()
        expiry_date = (expiry_date or "").strip()
        if not item_name:
            raise ValidationError("Le nom du produit est obligatoire.", details={"field": "item_name"})
        if not expiry_date:
            raise ValidationError("La date limite (DLC) est obligatoire.", details={"field": "expiry_date"})

        photo_ref = self.upload_photo(photo, cancel) if photo is not None else None
        record = TraceabilityRecord(
            id=new_id(),
            date=self.timestamp(),
            item_name=item_name,
            expiry_date=expiry_date,
            lot_number=(lot_number or "").strip() or LOT_UNSPECIFIED,
            photo_url=photo_ref.url if photo_ref else None,
        )

        with self.log_operation(f"Recording receipt of {item_name}"):
            result = self.repository.add_traceability_record(record, cancel)
        return ReceiptOutcome(record=record, result=result, photo=photo_ref)

    def delete_record(self, record_id: str,
                      cancel: Optional[CancellationToken] = None) -> RepositoryResult[TraceabilityRecord]:
        self.logger.info(f"Deleting traceability record {record_id}")
        return self.repository.delete_traceability_record(record_id, cancel)

    @staticmethod
    def for_month(records: List[TraceabilityRecord], month: str) -> List[TraceabilityRecord]:
        return records_for_month(records, month)

    @staticmethod
    def by_day(records: List[TraceabilityRecord]) -> Dict[str, List[TraceabilityRecord]]:
        return group_by_day(records)

    def expired(self, records: List[TraceabilityRecord]) -> List[TraceabilityRecord]:
        today = self.now().date().isoformat()
        return [record for record in records if record.is_expired(today)]


# Singleton accessor
_traceability_service: Optional[TraceabilityService] = None
_lock = threading.Lock()


def get_traceability_service() -> TraceabilityService:
    """Get the global TraceabilityService instance."""
    global _traceability_service
    if _traceability_service is None:
        with _lock:
            if _traceability_service is None:
                _traceability_service = TraceabilityService()
    return _traceability_service
