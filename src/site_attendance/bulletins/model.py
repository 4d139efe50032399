from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..common.datetime_utils import from_iso, to_iso
from ..core.enums import TargetType


@dataclass(frozen=True)
class Bulletin:
    bulletin_id: str
    title: str
    body: str
    target_type: TargetType
    created_at: datetime
    target_ids: Tuple[str, ...] = ()
    translations: Dict[str, str] = field(default_factory=dict)
    is_persistent: bool = False
    expires_at: Optional[datetime] = None

    def is_exempt_from_purge(self, now: datetime) -> bool:
        """Persistent bulletins survive the daily purge until they expire."""

        return self.is_persistent and self.expires_at is not None and self.expires_at > now

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Bulletin":
        return cls(
            bulletin_id=doc_id,
            title=data.get("title", ""),
            body=data.get("body", ""),
            target_type=TargetType(data.get("targetType", TargetType.ALL.value)),
            target_ids=tuple(data.get("targetIds") or ()),
            translations=dict(data.get("translations") or {}),
            is_persistent=bool(data.get("isPersistent", False)),
            expires_at=from_iso(data.get("expiresAt")),
            created_at=from_iso(data.get("createdAt")),
        )

    def to_document(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "body": self.body,
            "targetType": self.target_type.value,
            "targetIds": list(self.target_ids),
            "translations": dict(self.translations),
            "isPersistent": self.is_persistent,
            "createdAt": to_iso(self.created_at),
        }
        if self.expires_at is not None:
            data["expiresAt"] = to_iso(self.expires_at)
        return data

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.bulletin_id, **self.to_document()}


@dataclass(frozen=True)
class FanoutResult:
    matched: int
    updated: int
    failed: int

    def to_dict(self) -> Dict[str, int]:
        return {"matched": self.matched, "updated": self.updated, "failed": self.failed}
