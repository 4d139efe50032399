from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.enums import DepartmentType


@dataclass(frozen=True)
class Department:
    """A company, or a team under a company (``parent_id`` set iff team)."""

    dept_id: str
    name: str
    type: DepartmentType
    parent_id: Optional[str] = None

    @property
    def is_company(self) -> bool:
        return self.type == DepartmentType.COMPANY

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Department":
        return cls(
            dept_id=doc_id,
            name=data["name"],
            type=DepartmentType(data["type"]),
            parent_id=data.get("parentId"),
        )

    def to_document(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.parent_id:
            data["parentId"] = self.parent_id
        return data


def department_label(company_name: str, team_name: Optional[str] = None) -> str:
    """The denormalized "<company> - <team>" label stored on attendance records."""

    if not team_name:
        return company_name
    return f"{company_name} - {team_name}"
