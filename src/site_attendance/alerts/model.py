from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from ..common.datetime_utils import from_iso, to_iso
from ..core.enums import AlertType


@dataclass(frozen=True)
class EmergencyAlert:
    """A fire report or happy-call request, kept until the daily reset."""

    alert_id: str
    alert_type: AlertType
    user_name: str
    department_label: str
    phone_number: str
    created_at: datetime

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "EmergencyAlert":
        return cls(
            alert_id=doc_id,
            alert_type=AlertType(data["type"]),
            user_name=data.get("userName", ""),
            department_label=data.get("department", ""),
            phone_number=data.get("phoneNumber", ""),
            created_at=from_iso(data.get("timestamp")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "type": self.alert_type.value,
            "userName": self.user_name,
            "department": self.department_label,
            "phoneNumber": self.phone_number,
            "timestamp": to_iso(self.created_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.alert_id, **self.to_document()}
