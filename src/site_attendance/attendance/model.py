from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..common.datetime_utils import from_iso, to_iso
from ..geofence.model import Coordinate
from ..identity.model import IssuedSession


@dataclass(frozen=True)
class NoticeConfirmation:
    bulletin_id: str
    confirmed: bool = True


@dataclass(frozen=True)
class AttendanceRecord:
    """One check-in event. ``check_out_at is None`` means the worker is on site."""

    record_id: str
    principal_phone: str
    display_name: str
    department_label: str
    check_in_at: datetime
    check_out_at: Optional[datetime] = None
    last_location: Optional[Coordinate] = None
    high_risk_work_label: Optional[str] = None
    notice_confirmations: Tuple[NoticeConfirmation, ...] = field(default_factory=tuple)
    last_auto_checkout_prompt_at: Optional[datetime] = None
    auto_checkout: bool = False
    auto_checkout_reason: Optional[str] = None
    principal_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_at is None

    def has_confirmed(self, bulletin_id: str) -> bool:
        return any(c.bulletin_id == bulletin_id and c.confirmed for c in self.notice_confirmations)

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "AttendanceRecord":
        location = data.get("lastLocation")
        return cls(
            record_id=doc_id,
            principal_phone=data.get("principalPhone", ""),
            display_name=data.get("displayName") or "Unknown",
            department_label=data.get("departmentLabel") or "",
            check_in_at=from_iso(data["checkInAt"]),
            check_out_at=from_iso(data.get("checkOutAt")),
            last_location=Coordinate.from_dict(location) if location else None,
            high_risk_work_label=data.get("highRiskWorkLabel"),
            notice_confirmations=tuple(
                NoticeConfirmation(bulletin_id=c["bulletinId"], confirmed=bool(c.get("confirmed")))
                for c in data.get("noticeConfirmations") or []
            ),
            last_auto_checkout_prompt_at=from_iso(data.get("lastAutoCheckoutPromptAt")),
            auto_checkout=bool(data.get("autoCheckout", False)),
            auto_checkout_reason=data.get("autoCheckoutReason"),
            principal_id=data.get("principalId"),
        )

    def to_document(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "principalPhone": self.principal_phone,
            "displayName": self.display_name,
            "departmentLabel": self.department_label,
            "checkInAt": to_iso(self.check_in_at),
            "checkOutAt": to_iso(self.check_out_at),
            "noticeConfirmations": confirmations_to_documents(self.notice_confirmations),
        }
        if self.principal_id is not None:
            data["principalId"] = self.principal_id
        if self.last_location is not None:
            data["lastLocation"] = self.last_location.to_dict()
        if self.high_risk_work_label is not None:
            data["highRiskWorkLabel"] = self.high_risk_work_label
        if self.last_auto_checkout_prompt_at is not None:
            data["lastAutoCheckoutPromptAt"] = to_iso(self.last_auto_checkout_prompt_at)
        if self.auto_checkout:
            data["autoCheckout"] = True
            data["autoCheckoutReason"] = self.auto_checkout_reason
        return data


@dataclass(frozen=True)
class CheckIn:
    """A new record plus the anonymous session the worker's client keeps."""

    record: AttendanceRecord
    session: Optional[IssuedSession] = None


@dataclass(frozen=True)
class RecordScan:
    """Decoded records, plus ``(doc_id, error)`` for documents that could not be read."""

    records: List[AttendanceRecord] = field(default_factory=list)
    rejected: List[Tuple[str, str]] = field(default_factory=list)


def confirmations_to_documents(items) -> List[Dict[str, Any]]:
    return [{"bulletinId": c.bulletin_id, "confirmed": c.confirmed} for c in items]


@dataclass(frozen=True)
class SweepSummary:
    """What one ``sweep`` pass did, for operational logging."""

    label: str
    started_at: datetime
    inside: Tuple[str, ...] = ()
    prompted: Tuple[str, ...] = ()
    auto_checked_out: Tuple[str, ...] = ()
    failed: Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "startedAt": to_iso(self.started_at),
            "insideCount": len(self.inside),
            "inside": list(self.inside),
            "promptedCount": len(self.prompted),
            "autoCheckedOutCount": len(self.auto_checked_out),
            "failedCount": len(self.failed),
            "failed": [{"recordId": rid, "error": err} for rid, err in self.failed],
        }
