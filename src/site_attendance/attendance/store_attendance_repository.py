from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import to_iso
from ..core.constants import (
    COLLECTION_ATTENDANCE,
    COLLECTION_CHECKOUT_PROMPTS,
    COLLECTION_SITE_STATUS_LOGS,
)
from ..core.exceptions import ValidationError
from ..database.store import (
    DELETE_FIELD,
    ChunkedCommitResult,
    Document,
    DocumentStore,
    WriteOp,
    commit_chunked,
    new_document_id,
)
from ..geofence.model import Coordinate
from .model import AttendanceRecord, NoticeConfirmation, RecordScan, confirmations_to_documents
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _decode(docs: Iterable[Document]) -> RecordScan:
    scan = RecordScan()
    for doc in docs:
        try:
            scan.records.append(AttendanceRecord.from_document(doc.id, doc.data))
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            logger.warning("attendance record %s is unreadable: %s", doc.id, exc)
            scan.rejected.append((doc.id, f"{type(exc).__name__}: {exc}"))
    return scan


def _checkout_patch(check_out_at: datetime, auto_reason: Optional[str] = None) -> dict:
    patch = {"checkOutAt": to_iso(check_out_at), "lastLocation": DELETE_FIELD}
    if auto_reason is not None:
        patch.update(
            {
                "autoCheckout": True,
                "autoCheckoutReason": auto_reason,
                "autoCheckoutAt": to_iso(check_out_at),
            }
        )
    return patch


class StoreAttendanceRepository(AttendanceRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

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
        record = AttendanceRecord(
            record_id="",
            principal_phone=principal_phone,
            display_name=display_name,
            department_label=department_label,
            check_in_at=check_in_at,
            last_location=location,
            principal_id=principal_id,
        )
        record_id = self._store.add(COLLECTION_ATTENDANCE, record.to_document())
        return replace(record, record_id=record_id)

    def get(self, record_id: str) -> Optional[AttendanceRecord]:
        doc = self._store.get(COLLECTION_ATTENDANCE, record_id)
        return AttendanceRecord.from_document(doc.id, doc.data) if doc else None

    def list_all(self) -> Sequence[AttendanceRecord]:
        return _decode(self._store.list_all(COLLECTION_ATTENDANCE)).records

    def list_for_phone(self, principal_phone: str) -> Sequence[AttendanceRecord]:
        return _decode(self._store.query(COLLECTION_ATTENDANCE, principalPhone=principal_phone)).records

    def list_for_principal(self, principal_id: str) -> Sequence[AttendanceRecord]:
        return _decode(self._store.query(COLLECTION_ATTENDANCE, principalId=principal_id)).records

    def list_open_ids(self) -> Sequence[str]:
        # Ids only, so an unreadable open record still gets closed.
        return [d.id for d in self._store.query(COLLECTION_ATTENDANCE, checkOutAt=None)]

    def list_open_with_location(self) -> RecordScan:
        docs = self._store.query(COLLECTION_ATTENDANCE, checkOutAt=None)
        return _decode(d for d in docs if d.data.get("lastLocation") and d.data.get("principalPhone"))

    def update_checkout(
        self,
        *,
        record_id: str,
        check_out_at: datetime,
        auto_reason: Optional[str] = None,
    ) -> None:
        batch = self._store.batch()
        batch.update(COLLECTION_ATTENDANCE, record_id, _checkout_patch(check_out_at, auto_reason))
        batch.commit()

    def record_prompt(self, *, record: AttendanceRecord, label: str, prompted_at: datetime, message: str) -> None:
        batch = self._store.batch()
        batch.set(
            COLLECTION_CHECKOUT_PROMPTS,
            new_document_id(),
            {
                "recordId": record.record_id,
                "principalPhone": record.principal_phone,
                "displayName": record.display_name,
                "message": message,
                "status": "pending",
                "checkLabel": label,
                "createdAt": to_iso(prompted_at),
            },
        )
        batch.update(
            COLLECTION_ATTENDANCE,
            record.record_id,
            {"lastAutoCheckoutPromptAt": to_iso(prompted_at), "lastAutoCheckoutPromptLabel": label},
        )
        batch.commit()

    def add_status_log(self, *, label: str, logged_at: datetime, names: Sequence[str]) -> str:
        return self._store.add(
            COLLECTION_SITE_STATUS_LOGS,
            {
                "checkLabel": label,
                "createdAt": to_iso(logged_at),
                "status": "active",
                "activeCount": len(names),
                "activeNames": list(names),
                "message": f"{len(names)} worker(s) still checked in on site",
            },
        )

    def set_notice_confirmations(self, *, record_id: str, confirmations: Sequence[NoticeConfirmation]) -> None:
        batch = self._store.batch()
        batch.update(
            COLLECTION_ATTENDANCE,
            record_id,
            {"noticeConfirmations": confirmations_to_documents(confirmations)},
        )
        batch.commit()

    def annotate_many(
        self,
        record_ids: Sequence[str],
        *,
        label: str,
        annotated_at: datetime,
        max_workers: int,
        timeout: Optional[float] = None,
    ) -> ChunkedCommitResult:
        patch = {"highRiskWorkLabel": label, "highRiskWorkUpdatedAt": to_iso(annotated_at)}
        ops = [WriteOp("update", COLLECTION_ATTENDANCE, rid, patch) for rid in record_ids]
        return commit_chunked(self._store, ops, max_workers=max_workers, timeout=timeout)

    def checkout_many(
        self,
        record_ids: Sequence[str],
        *,
        check_out_at: datetime,
        max_workers: int,
        timeout: Optional[float] = None,
    ) -> ChunkedCommitResult:
        patch = _checkout_patch(check_out_at)
        ops = [WriteOp("update", COLLECTION_ATTENDANCE, rid, patch) for rid in record_ids]
        return commit_chunked(self._store, ops, max_workers=max_workers, timeout=timeout)
