from __future__ import annotations

from datetime import timedelta

import pytest

from site_attendance.core.constants import COLLECTION_EMERGENCY_ALERTS
from site_attendance.core.enums import AlertType
from site_attendance.core.exceptions import ValidationError


def test_fire_alert_is_stored_with_sender_details(container, store, fixed_now):
    alert = container.alert_service.raise_alert("fire", "010-1111-2222", "Kim", "Acme - Steel")

    assert alert.alert_type == AlertType.FIRE
    raw = store.raw(COLLECTION_EMERGENCY_ALERTS, alert.alert_id)
    assert raw == {
        "type": "fire",
        "userName": "Kim",
        "department": "Acme - Steel",
        "phoneNumber": "010-1111-2222",
        "timestamp": fixed_now.isoformat(),
    }


def test_missing_name_and_department_fall_back_to_unknown(container):
    alert = container.alert_service.raise_alert(AlertType.HAPPY_CALL, "", "  ", "")

    assert alert.user_name == "Unknown"
    assert alert.department_label == "Unknown"
    assert alert.phone_number == ""


def test_unknown_alert_type_is_rejected(container, store):
    with pytest.raises(ValidationError):
        container.alert_service.raise_alert("flood", "010", "Kim", "Acme")
    assert store.count(COLLECTION_EMERGENCY_ALERTS) == 0


def test_recent_alerts_are_newest_first_and_skip_unreadable(container, store, fixed_now):
    container.alert_service.raise_alert("happy_call", "010-1", "Lee", "Beta", now=fixed_now - timedelta(minutes=5))
    container.alert_service.raise_alert("fire", "010-2", "Kim", "Acme", now=fixed_now)
    store.seed(COLLECTION_EMERGENCY_ALERTS, {"message": "no type"})

    items = container.alert_service.list_recent()

    assert [a.user_name for a in items] == ["Kim", "Lee"]


def test_alerts_are_purged_by_the_daily_reset(container, store):
    container.alert_service.raise_alert("fire", "010", "Kim", "Acme")

    container.reset_job.run()

    assert store.count(COLLECTION_EMERGENCY_ALERTS) == 0
