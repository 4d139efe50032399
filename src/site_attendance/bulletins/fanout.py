"""Resolve which attendance records a bulletin applies to, and annotate them.

Records carry a denormalized ``"<company> - <team>"`` label rather than a
department id, so targets are matched by label. Renaming a department
therefore detaches records checked in under the old name.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from ..common.datetime_utils import utcnow
from ..core.constants import DEFAULT_MAX_WORKERS
from ..core.enums import DepartmentType, TargetType
from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..departments.model import Department, department_label
from ..departments.repository import DepartmentRepository
from .model import FanoutResult

logger = logging.getLogger(__name__)

LabelMatcher = Callable[[str], bool]


def company_matcher(company: Department) -> LabelMatcher:
    prefix = f"{company.name} -"
    return lambda label: label.startswith(prefix) or label == company.name


def team_matcher(company: Department, team: Department) -> LabelMatcher:
    expected = department_label(company.name, team.name)
    return lambda label: label == expected


class BulletinFanoutResolver:
    def __init__(
        self,
        attendance: AttendanceRepository,
        departments: DepartmentRepository,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        step_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._attendance = attendance
        self._departments = departments
        self._max_workers = int(max_workers)
        self._step_timeout = step_timeout
        self._clock = clock

    def _matchers(self, target_type: TargetType, target_ids: Sequence[str]) -> List[LabelMatcher]:
        by_id: Dict[str, Department] = {d.dept_id: d for d in self._departments.list_all()}
        matchers: List[LabelMatcher] = []

        for target_id in target_ids:
            dept = by_id.get(target_id)
            if dept is None:
                logger.warning("bulletin target %s does not exist; skipped", target_id)
                continue

            # The department's own type decides how it matches.
            if dept.type == DepartmentType.COMPANY:
                matchers.append(company_matcher(dept))
                continue

            company = by_id.get(dept.parent_id or "")
            if company is None or not company.is_company:
                logger.warning("team %s has no parent company; skipped", dept.dept_id)
                continue
            matchers.append(team_matcher(company, dept))

        if target_type != TargetType.ALL and not matchers:
            logger.info("bulletin targets %s resolved to no departments", list(target_ids))
        return matchers

    def resolve(self, target_type: TargetType | str, target_ids: Sequence[str]) -> List[AttendanceRecord]:
        """Records the target addresses, each at most once, in store order."""

        target_type = TargetType(target_type)
        records = self._attendance.list_all()
        if target_type == TargetType.ALL:
            return list({r.record_id: r for r in records}.values())

        matchers = self._matchers(target_type, target_ids)
        selected: Dict[str, AttendanceRecord] = {}
        for record in records:
            if record.record_id in selected:
                continue
            if any(match(record.department_label) for match in matchers):
                selected[record.record_id] = record
        return list(selected.values())

    def apply(
        self,
        *,
        title: str,
        target_type: TargetType | str,
        target_ids: Sequence[str],
        now: datetime | None = None,
    ) -> FanoutResult:
        records = self.resolve(target_type, target_ids)
        if not records:
            return FanoutResult(matched=0, updated=0, failed=0)

        result = self._attendance.annotate_many(
            [r.record_id for r in records],
            label=title,
            annotated_at=now or self._clock(),
            max_workers=self._max_workers,
            timeout=self._step_timeout,
        )
        if not result.ok:
            logger.warning("fan-out of %r: %d of %d updates failed", title, result.failed_ops, len(records))
        logger.info("fan-out of %r annotated %d record(s)", title, result.committed_ops)
        return FanoutResult(matched=len(records), updated=result.committed_ops, failed=result.failed_ops)
