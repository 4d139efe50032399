from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from ..common.concurrency import fan_out
from ..common.datetime_utils import utcnow
from ..common.validators import require_non_empty
from ..core.constants import (
    AUTO_CHECKOUT_REASON,
    CHECKOUT_PROMPT_MESSAGE,
    DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES,
    DEFAULT_MAX_WORKERS,
)
from ..core.enums import SweepLabel
from ..core.exceptions import OutsideGeofence, Unauthenticated, ValidationError
from ..geofence.evaluator import evaluate
from ..geofence.model import Coordinate
from ..geofence.repository import SiteConfigRepository
from ..identity.provider import IdentityProvider
from .model import AttendanceRecord, CheckIn, NoticeConfirmation, SweepSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_PROMPT = "prompt"
_AUTO_CHECKOUT = "auto_checkout"


class AttendanceService:
    """Check-in/check-out lifecycle and the scheduled "still on site?" sweep."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        site_config: SiteConfigRepository,
        identity: Optional[IdentityProvider] = None,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        auto_checkout_after_minutes: int = DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES,
        step_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._attendance = attendance
        self._site_config = site_config
        self._identity = identity
        self._max_workers = int(max_workers)
        self._auto_checkout_after = timedelta(minutes=int(auto_checkout_after_minutes))
        self._step_timeout = step_timeout
        self._clock = clock

    def _require_on_site(self, location: Coordinate) -> None:
        site = self._site_config.get()
        result = evaluate(location, site)
        if not result.inside:
            raise OutsideGeofence(result.distance_meters, site.allowed_radius_meters)

    def latest_open_for(self, principal_phone: str) -> Optional[AttendanceRecord]:
        open_records = [r for r in self._attendance.list_for_phone(principal_phone) if r.is_open]
        if not open_records:
            return None
        return max(open_records, key=lambda r: r.check_in_at)

    def check_in(
        self,
        *,
        principal_phone: str,
        display_name: str,
        department_label: str,
        location: Coordinate,
        now: datetime | None = None,
    ) -> CheckIn:
        principal_phone = require_non_empty(principal_phone, "Phone number")
        display_name = require_non_empty(display_name, "Name")
        department_label = require_non_empty(department_label, "Department")
        self._require_on_site(location)

        # The session is issued only once the worker is known to be on site.
        session = self._identity.sign_in_anonymously() if self._identity is not None else None

        # Earlier open records for the same phone are left alone; lookups pick the latest.
        record = self._attendance.create_checkin(
            principal_phone=principal_phone,
            display_name=display_name,
            department_label=department_label,
            check_in_at=now or self._clock(),
            location=location,
            principal_id=session.principal_id if session else None,
        )
        logger.info("check-in %s (%s) record=%s", display_name, department_label, record.record_id)
        return CheckIn(record=record, session=session)

    def record_for_session(self, principal_id: str, refresh_token: str) -> Optional[AttendanceRecord]:
        """The latest record checked in under this session.

        Raises ``Unauthenticated`` when the session is unknown or was revoked.
        """

        if self._identity is None or not principal_id or not refresh_token:
            raise Unauthenticated("Check-in session required")
        if not self._identity.is_session_valid(principal_id, refresh_token):
            raise Unauthenticated("Session expired; please check in again")

        records = self._attendance.list_for_principal(principal_id)
        return max(records, key=lambda r: r.check_in_at) if records else None

    def check_out(self, principal_phone: str, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        """Close the latest open record; returns None when there was nothing to close."""

        record = self.latest_open_for(principal_phone)
        if record is None:
            logger.info("check-out for %s: no open record", principal_phone)
            return None

        self._attendance.update_checkout(record_id=record.record_id, check_out_at=now or self._clock())
        return self._attendance.get(record.record_id)

    def confirm_notice(
        self,
        *,
        principal_phone: str,
        bulletin_id: str,
        location: Coordinate,
    ) -> AttendanceRecord:
        bulletin_id = require_non_empty(bulletin_id, "Bulletin")
        self._require_on_site(location)

        record = self.latest_open_for(principal_phone)
        if record is None:
            raise ValidationError("No active check-in for this phone number")
        if record.has_confirmed(bulletin_id):
            return record

        confirmations = list(record.notice_confirmations) + [NoticeConfirmation(bulletin_id=bulletin_id)]
        self._attendance.set_notice_confirmations(record_id=record.record_id, confirmations=confirmations)
        return self._attendance.get(record.record_id) or record

    def sweep(self, label: str | SweepLabel, *, now: datetime | None = None) -> SweepSummary:
        try:
            label = SweepLabel(label).value
        except ValueError:
            raise ValidationError(f"Unknown sweep label: {label!r}")

        now = now or self._clock()
        site = self._site_config.get()
        scan = self._attendance.list_open_with_location()

        inside: List[str] = []
        actions: List[Tuple[str, AttendanceRecord]] = []
        for record in scan.records:
            result = evaluate(record.last_location, site)
            if result.inside:
                inside.append(record.display_name)
                continue

            prompted_at = record.last_auto_checkout_prompt_at
            if prompted_at is not None and now - prompted_at >= self._auto_checkout_after:
                actions.append((_AUTO_CHECKOUT, record))
            else:
                actions.append((_PROMPT, record))

        def _apply(action: Tuple[str, AttendanceRecord]) -> str:
            kind, record = action
            if kind == _AUTO_CHECKOUT:
                self._attendance.update_checkout(
                    record_id=record.record_id,
                    check_out_at=now,
                    auto_reason=AUTO_CHECKOUT_REASON,
                )
            else:
                self._attendance.record_prompt(
                    record=record,
                    label=label,
                    prompted_at=now,
                    message=CHECKOUT_PROMPT_MESSAGE,
                )
            return kind

        outcome = fan_out(_apply, actions, max_workers=self._max_workers, timeout=self._step_timeout)

        # Unreadable records are reported, not fatal.
        failed: List[Tuple[str, str]] = list(scan.rejected)
        for (kind, record), exc in outcome.failed:
            logger.error(
                "sweep %s: %s failed for record %s (%s)",
                label,
                kind,
                record.record_id,
                record.display_name,
                exc_info=exc,
            )
            failed.append((record.record_id, f"{type(exc).__name__}: {exc}"))

        if inside:
            try:
                self._attendance.add_status_log(label=label, logged_at=now, names=inside)
            except Exception as exc:
                logger.error("sweep %s: status log write failed", label, exc_info=exc)
                failed.append(("status-log", f"{type(exc).__name__}: {exc}"))

        summary = SweepSummary(
            label=label,
            started_at=now,
            inside=tuple(inside),
            prompted=tuple(r.display_name for (kind, r), _ in outcome.succeeded if kind == _PROMPT),
            auto_checked_out=tuple(r.display_name for (kind, r), _ in outcome.succeeded if kind == _AUTO_CHECKOUT),
            failed=tuple(failed),
        )
        logger.info(
            "sweep %s done: inside=%d prompted=%d auto_checkout=%d failed=%d",
            label,
            len(summary.inside),
            len(summary.prompted),
            len(summary.auto_checked_out),
            len(summary.failed),
        )
        return summary
