from __future__ import annotations

import pytest

from site_attendance.common.datetime_utils import to_iso
from site_attendance.core.constants import COLLECTION_ATTENDANCE, COLLECTION_BULLETINS, COLLECTION_CHECKOUT_PROMPTS, COLLECTION_EMERGENCY_ALERTS, COLLECTION_SITE_STATUS_LOGS
from site_attendance.core.enums import Role, StepStatus
from site_attendance.core.exceptions import ResetFailed, StoreUnavailable, Unauthenticated
from site_attendance.users.service import SessionUser

ADMIN = SessionUser(admin_id=1, full_name="Site Admin", role=Role.ADMIN)


def _seed_record(store, name, now, *, open_=True, location=None):
    data = {
        "principalPhone": f"010-{name}",
        "displayName": name,
        "checkInAt": to_iso(now),
        "checkOutAt": None if open_ else to_iso(now),
    }
    if location is not None:
        data["lastLocation"] = location.to_dict()
    return store.seed(COLLECTION_ATTENDANCE, data)


def test_manual_reset_requires_a_caller(container, store, fixed_now):
    _seed_record(store, "a", fixed_now)

    with pytest.raises(Unauthenticated):
        container.job_triggers.trigger_daily_reset(None)
    assert store.count(COLLECTION_ATTENDANCE) == 1


def test_manual_reset_returns_report(container, store, fixed_now):
    _seed_record(store, "a", fixed_now)

    report = container.job_triggers.trigger_daily_reset(ADMIN)

    assert report.status == StepStatus.OK
    assert store.count(COLLECTION_ATTENDANCE) == 0


def test_manual_reset_raises_when_nothing_could_be_done(container, store, identity, fixed_now, monkeypatch):
    for collection in (
        COLLECTION_ATTENDANCE,
        COLLECTION_BULLETINS,
        COLLECTION_EMERGENCY_ALERTS,
        COLLECTION_SITE_STATUS_LOGS,
        COLLECTION_CHECKOUT_PROMPTS,
    ):
        store.seed(collection, {"checkInAt": to_iso(fixed_now)})
    store.fail_on = lambda op: True

    def unavailable(*args, **kwargs):
        raise StoreUnavailable("identity backend down")

    monkeypatch.setattr(identity, "list_principals", unavailable)

    with pytest.raises(ResetFailed):
        container.job_triggers.trigger_daily_reset(ADMIN)


def test_manual_reset_wraps_a_crash(container, monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(container.reset_job, "run", boom)

    with pytest.raises(ResetFailed):
        container.job_triggers.trigger_daily_reset(ADMIN)


def test_partial_reset_is_returned_not_raised(container, identity):
    identity.fail_ids = {"p000"}

    report = container.job_triggers.trigger_daily_reset(ADMIN)

    assert report.status == StepStatus.PARTIAL


def test_revoke_all_sessions_also_closes_open_records(container, store, identity, on_site, fixed_now):
    a = _seed_record(store, "a", fixed_now, location=on_site)
    b = _seed_record(store, "b", fixed_now)
    closed = _seed_record(store, "c", fixed_now, open_=False)

    result = container.job_triggers.trigger_revoke_all_sessions(ADMIN)

    assert result.to_dict() == {"revokedCount": 7, "failedCount": 0, "checkedOutCount": 2}
    assert store.raw(COLLECTION_ATTENDANCE, a)["checkOutAt"] == to_iso(fixed_now)
    assert "lastLocation" not in store.raw(COLLECTION_ATTENDANCE, a)
    assert store.raw(COLLECTION_ATTENDANCE, b)["checkOutAt"] == to_iso(fixed_now)
    assert store.raw(COLLECTION_ATTENDANCE, closed)["checkOutAt"] == to_iso(fixed_now)
    assert identity.tokens == {}


def test_revoke_all_sessions_requires_a_caller(container):
    with pytest.raises(Unauthenticated):
        container.job_triggers.trigger_revoke_all_sessions(None)


def test_scheduled_ticks_never_raise(container, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(container.reset_job, "run", boom)
    monkeypatch.setattr(container.attendance_service, "sweep", boom)

    assert container.job_triggers.on_daily_reset_tick() is None
    assert container.job_triggers.on_sweep_tick("T1") is None


def test_scheduled_sweep_tick_returns_summary(container, store, off_site, fixed_now):
    _seed_record(store, "away", fixed_now, location=off_site)

    summary = container.job_triggers.on_sweep_tick("T2")

    assert summary.prompted == ("away",)


def test_manual_sweep_requires_a_caller(container):
    with pytest.raises(Unauthenticated):
        container.job_triggers.trigger_sweep(None, "T1")
