from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..attendance.model import SweepSummary
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..common.datetime_utils import utcnow
from ..core.constants import DEFAULT_MAX_WORKERS
from ..core.enums import StepStatus, SweepLabel
from ..core.exceptions import ResetFailed, Unauthenticated
from ..users.service import SessionUser
from .daily_reset import DailyResetJob, ResetReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevokeResult:
    revoked_count: int
    failed_count: int
    checked_out_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "revokedCount": self.revoked_count,
            "failedCount": self.failed_count,
            "checkedOutCount": self.checked_out_count,
        }


class JobTriggers:
    """Entry points into the jobs: scheduler ticks and admin-invoked manual runs.

    Both kinds call the same job objects, so overlapping runs are safe
    (the second simply finds less to do).
    """

    def __init__(
        self,
        reset_job: DailyResetJob,
        attendance_service: AttendanceService,
        attendance: AttendanceRepository,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        step_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._reset_job = reset_job
        self._attendance_service = attendance_service
        self._attendance = attendance
        self._max_workers = int(max_workers)
        self._step_timeout = step_timeout
        self._clock = clock

    @staticmethod
    def _require_caller(caller: Optional[SessionUser]) -> SessionUser:
        if caller is None:
            raise Unauthenticated("Login required")
        return caller

    # Scheduled entry points: no caller, never raise into the scheduler.

    def on_daily_reset_tick(self) -> Optional[ResetReport]:
        try:
            return self._reset_job.run()
        except Exception:
            logger.exception("scheduled daily reset crashed")
            return None

    def on_sweep_tick(self, label: str | SweepLabel) -> Optional[SweepSummary]:
        try:
            return self._attendance_service.sweep(label)
        except Exception:
            logger.exception("scheduled sweep %s crashed", label)
            return None

    # Manual entry points.

    def trigger_daily_reset(self, caller: Optional[SessionUser]) -> ResetReport:
        caller = self._require_caller(caller)
        logger.info("manual daily reset requested by %s", caller.full_name)

        try:
            report = self._reset_job.run()
        except Exception as exc:
            logger.exception("manual daily reset crashed")
            raise ResetFailed("Daily reset failed") from exc

        if report.status == StepStatus.FAILED:
            for step in report.steps:
                logger.error("manual reset step %s: %s", step.step.value, step.error)
            raise ResetFailed("Daily reset failed")
        return report

    def trigger_revoke_all_sessions(self, caller: Optional[SessionUser]) -> RevokeResult:
        """Force every worker out: revoke all sessions and close open attendance records."""

        caller = self._require_caller(caller)
        logger.info("manual session revocation requested by %s", caller.full_name)

        try:
            tally = self._reset_job.revoke_all_sessions()
        except Exception as exc:
            logger.exception("session revocation failed")
            raise ResetFailed("Session revocation failed") from exc

        checked_out = 0
        try:
            open_ids = list(self._attendance.list_open_ids())
            result = self._attendance.checkout_many(
                open_ids,
                check_out_at=self._clock(),
                max_workers=self._max_workers,
                timeout=self._step_timeout,
            )
            checked_out = result.committed_ops
            if not result.ok:
                logger.warning("closing open records: %d of %d failed", result.failed_ops, len(open_ids))
        except Exception:
            # Sessions are already revoked; report what was done.
            logger.exception("closing open attendance records failed")

        return RevokeResult(revoked_count=tally.revoked, failed_count=tally.failed, checked_out_count=checked_out)

    def trigger_sweep(self, caller: Optional[SessionUser], label: str | SweepLabel) -> SweepSummary:
        self._require_caller(caller)
        return self._attendance_service.sweep(label)
