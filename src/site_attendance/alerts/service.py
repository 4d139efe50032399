from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Sequence

from ..common.datetime_utils import utcnow
from ..core.constants import UNKNOWN_SENDER
from ..core.enums import AlertType
from ..core.exceptions import ValidationError
from .model import EmergencyAlert
from .repository import AlertRepository

logger = logging.getLogger(__name__)


class AlertService:
    """Use case: record a worker's fire report or happy-call request for the admin console."""

    def __init__(self, alerts: AlertRepository, *, clock: Callable[[], datetime] = utcnow):
        self._alerts = alerts
        self._clock = clock

    def raise_alert(
        self,
        alert_type: AlertType | str,
        phone: str,
        name: str,
        department_label: str,
        *,
        now: datetime | None = None,
    ) -> EmergencyAlert:
        try:
            alert_type = AlertType(alert_type)
        except ValueError:
            raise ValidationError(f"Unknown alert type: {alert_type!r}")

        alert = self._alerts.create(
            EmergencyAlert(
                alert_id="",
                alert_type=alert_type,
                user_name=(name or "").strip() or UNKNOWN_SENDER,
                department_label=(department_label or "").strip() or UNKNOWN_SENDER,
                phone_number=(phone or "").strip(),
                created_at=now or self._clock(),
            )
        )
        # Fire reports page whoever is watching the log.
        level = logging.WARNING if alert_type == AlertType.FIRE else logging.INFO
        logger.log(level, "%s alert %s from %s (%s)", alert_type.value, alert.alert_id, alert.user_name, alert.department_label)
        return alert

    def list_recent(self, *, limit: int = 50) -> Sequence[EmergencyAlert]:
        items = sorted(self._alerts.list_all(), key=lambda a: a.created_at, reverse=True)
        return items[: int(limit)]
