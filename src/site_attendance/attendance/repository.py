from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..database.store import ChunkedCommitResult
from ..geofence.model import Coordinate
from .model import AttendanceRecord, NoticeConfirmation, RecordScan


class AttendanceRepository(Protocol):
    def create_checkin(
        self,
        *,
        principal_phone: str,
        display_name: str,
        department_label: str,
        check_in_at: datetime,
        location: Coordinate,
        principal_id: Optional[str] = None,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def get(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_all(self) -> Sequence[AttendanceRecord]:
        """Every readable record; unreadable documents are logged and skipped."""

        raise NotImplementedError

    def list_for_phone(self, principal_phone: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_principal(self, principal_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open_ids(self) -> Sequence[str]:
        raise NotImplementedError

    def list_open_with_location(self) -> RecordScan:
        raise NotImplementedError

    def update_checkout(
        self,
        *,
        record_id: str,
        check_out_at: datetime,
        auto_reason: Optional[str] = None,
    ) -> None:
        """Close the record and clear its location."""

        raise NotImplementedError

    def record_prompt(self, *, record: AttendanceRecord, label: str, prompted_at: datetime, message: str) -> None:
        """Store a checkout prompt and stamp the record, atomically."""

        raise NotImplementedError

    def add_status_log(self, *, label: str, logged_at: datetime, names: Sequence[str]) -> str:
        raise NotImplementedError

    def set_notice_confirmations(self, *, record_id: str, confirmations: Sequence[NoticeConfirmation]) -> None:
        raise NotImplementedError

    def annotate_many(
        self,
        record_ids: Sequence[str],
        *,
        label: str,
        annotated_at: datetime,
        max_workers: int,
        timeout: Optional[float] = None,
    ) -> ChunkedCommitResult:
        raise NotImplementedError

    def checkout_many(
        self,
        record_ids: Sequence[str],
        *,
        check_out_at: datetime,
        max_workers: int,
        timeout: Optional[float] = None,
    ) -> ChunkedCommitResult:
        raise NotImplementedError
