from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.constants import BATCH_LIMIT
from ..core.enums import DepartmentType
from ..core.exceptions import ValidationError
from .model import Department, department_label
from .repository import DepartmentRepository

logger = logging.getLogger(__name__)


class DepartmentService:
    """Company/team hierarchy maintenance for the admin surface."""

    def __init__(self, departments: DepartmentRepository):
        self._departments = departments

    def list_all(self) -> Sequence[Department]:
        return self._departments.list_all()

    def _require_company(self, dept_id: Optional[str]) -> Department:
        if not dept_id:
            raise ValidationError("Team must belong to a company")
        parent = self._departments.get(dept_id)
        if parent is None or not parent.is_company:
            raise ValidationError("Parent company does not exist")
        return parent

    def _ensure_unique(self, *, name: str, type: DepartmentType, parent_id: Optional[str], exclude_id: Optional[str] = None) -> None:
        for d in self._departments.list_all():
            if d.dept_id == exclude_id or d.type != type:
                continue
            if type == DepartmentType.TEAM and d.parent_id != parent_id:
                continue
            if d.name.lower() == name.lower():
                kind = "Company" if type == DepartmentType.COMPANY else "Team"
                raise ValidationError(f'{kind} "{name}" already exists')

    def add_company(self, name: str) -> Department:
        name = require_non_empty(name, "Company name")
        self._ensure_unique(name=name, type=DepartmentType.COMPANY, parent_id=None)
        return self._departments.create(Department(dept_id="", name=name, type=DepartmentType.COMPANY))

    def add_team(self, name: str, parent_id: str) -> Department:
        name = require_non_empty(name, "Team name")
        parent = self._require_company(parent_id)
        self._ensure_unique(name=name, type=DepartmentType.TEAM, parent_id=parent.dept_id)
        return self._departments.create(
            Department(dept_id="", name=name, type=DepartmentType.TEAM, parent_id=parent.dept_id)
        )

    def rename(self, dept_id: str, name: str, *, parent_id: Optional[str] = None) -> Department:
        """Rename (and for teams, optionally move) a department.

        Attendance labels are not rewritten; records checked in under the old
        name stop matching bulletin targets for the new one.
        """

        dept = self._departments.get(dept_id)
        if dept is None:
            raise ValidationError("Department does not exist")
        name = require_non_empty(name, "Name")

        new_parent = dept.parent_id
        if dept.type == DepartmentType.TEAM:
            new_parent = self._require_company(parent_id or dept.parent_id).dept_id

        self._ensure_unique(name=name, type=dept.type, parent_id=new_parent, exclude_id=dept.dept_id)
        updated = replace(dept, name=name, parent_id=new_parent)
        self._departments.update(updated)
        return updated

    def delete(self, dept_id: str) -> Sequence[str]:
        """Delete a department; a company takes all of its teams with it in one batch."""

        dept = self._departments.get(dept_id)
        if dept is None:
            raise ValidationError("Department does not exist")

        ids = [dept.dept_id]
        if dept.is_company:
            ids.extend(
                d.dept_id
                for d in self._departments.list_all()
                if d.type == DepartmentType.TEAM and d.parent_id == dept.dept_id
            )
        if len(ids) > BATCH_LIMIT:
            raise ValidationError(f"Cannot delete more than {BATCH_LIMIT} departments at once")

        self._departments.delete_atomic(ids)
        logger.info("deleted department %s (%s) with %d child team(s)", dept.name, dept.dept_id, len(ids) - 1)
        return ids

    def label_for(self, company_id: str, team_id: Optional[str] = None) -> str:
        """Build the attendance label for a worker signing in under company/team."""

        company = self._require_company(company_id)
        if not team_id:
            return department_label(company.name)

        team = self._departments.get(team_id)
        if team is None or team.type != DepartmentType.TEAM or team.parent_id != company.dept_id:
            raise ValidationError("Team does not belong to the selected company")
        return department_label(company.name, team.name)
