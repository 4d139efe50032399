from __future__ import annotations

from datetime import timedelta

import pytest

from site_attendance.common.datetime_utils import to_iso
from site_attendance.core.constants import COLLECTION_ATTENDANCE, COLLECTION_BULLETINS
from site_attendance.core.enums import TargetType
from site_attendance.core.exceptions import ValidationError


def test_publish_to_all_stores_bulletin_and_annotates_records(container, store, fixed_now):
    rid = store.seed(
        COLLECTION_ATTENDANCE,
        {"principalPhone": "010-1", "displayName": "Kim", "departmentLabel": "Acme - Steel", "checkInAt": to_iso(fixed_now), "checkOutAt": None},
    )

    published = container.bulletin_service.publish(title="  Hot work  ", body="Fire watch required", target_ids=["ignored"])

    bulletin = published.bulletin
    assert bulletin.bulletin_id
    assert bulletin.title == "Hot work"
    assert bulletin.target_type == TargetType.ALL
    assert bulletin.target_ids == ()
    assert bulletin.expires_at is None
    assert store.raw(COLLECTION_BULLETINS, bulletin.bulletin_id)["createdAt"] == to_iso(fixed_now)
    assert published.fanout.updated == 1
    assert store.raw(COLLECTION_ATTENDANCE, rid)["highRiskWorkLabel"] == "Hot work"


def test_title_is_required(container):
    with pytest.raises(ValidationError):
        container.bulletin_service.publish(title="   ")


def test_targeted_bulletin_needs_targets(container):
    with pytest.raises(ValidationError):
        container.bulletin_service.publish(title="x", target_type="company", target_ids=[])


def test_unknown_target_type_is_rejected(container):
    with pytest.raises(ValidationError):
        container.bulletin_service.publish(title="x", target_type="floor", target_ids=["a"])


def test_persistent_bulletin_needs_future_expiry(container, fixed_now):
    with pytest.raises(ValidationError):
        container.bulletin_service.publish(title="x", is_persistent=True)
    with pytest.raises(ValidationError):
        container.bulletin_service.publish(title="x", is_persistent=True, expires_at=fixed_now)

    published = container.bulletin_service.publish(
        title="x", is_persistent=True, expires_at=fixed_now + timedelta(days=1)
    )
    assert published.bulletin.is_exempt_from_purge(fixed_now)


def test_non_persistent_bulletin_drops_expiry(container, fixed_now):
    published = container.bulletin_service.publish(title="x", expires_at=fixed_now + timedelta(days=1))
    assert published.bulletin.expires_at is None
    assert not published.bulletin.is_exempt_from_purge(fixed_now)


def test_duplicate_target_ids_are_collapsed(container):
    acme = container.department_service.add_company("Acme")

    published = container.bulletin_service.publish(
        title="x", target_type="company", target_ids=[acme.dept_id, acme.dept_id, ""]
    )

    assert published.bulletin.target_ids == (acme.dept_id,)


def test_list_recent_is_newest_first(container, fixed_now):
    svc = container.bulletin_service
    svc.publish(title="old", now=fixed_now - timedelta(hours=2))
    svc.publish(title="new", now=fixed_now)

    assert [b.title for b in svc.list_recent(limit=1)] == ["new"]
