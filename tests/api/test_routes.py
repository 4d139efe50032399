from __future__ import annotations

from site_attendance.common.datetime_utils import to_iso
from site_attendance.core.constants import COLLECTION_ATTENDANCE, COLLECTION_EMERGENCY_ALERTS


def _check_in(client, location, **extra):
    body = {"phone": "010-1111-2222", "name": "Kim", "departmentLabel": "Acme - Steel", "location": location.to_dict()}
    body.update(extra)
    return client.post("/api/attendance/check-in", json=body)


def test_check_in_and_out_over_http(client, store, identity, on_site):
    resp = _check_in(client, on_site)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert identity.is_session_valid(body["principalId"], body["refreshToken"])

    resp = client.post("/api/attendance/check-out", json={})
    assert resp.status_code == 200
    assert resp.get_json()["recordId"] == body["recordId"]
    assert store.raw(COLLECTION_ATTENDANCE, body["recordId"])["checkOutAt"] is not None


def test_check_in_outside_fence_returns_403(client, off_site):
    resp = _check_in(client, off_site)

    assert resp.status_code == 403
    assert resp.get_json()["distanceMeters"] > 500


def test_check_in_with_bad_location_returns_400(client):
    resp = client.post(
        "/api/attendance/check-in",
        json={"phone": "010", "name": "Kim", "departmentLabel": "Acme", "location": {"lat": 123, "lng": 0}},
    )
    assert resp.status_code == 400


def test_check_in_resolves_label_from_department_ids(client, container, store, on_site):
    acme = container.department_service.add_company("Acme")
    steel = container.department_service.add_team("Steel", acme.dept_id)

    resp = _check_in(client, on_site, departmentLabel=None, companyId=acme.dept_id, teamId=steel.dept_id)

    assert resp.status_code == 200
    record_id = resp.get_json()["recordId"]
    assert store.raw(COLLECTION_ATTENDANCE, record_id)["departmentLabel"] == "Acme - Steel"


def test_confirm_notice_over_http(client, on_site):
    _check_in(client, on_site)

    resp = client.post("/api/attendance/notices/b-1/confirm", json={"location": on_site.to_dict()})

    assert resp.status_code == 200


def test_check_out_without_a_session_returns_401(app, client, store, on_site):
    victim = _check_in(client, on_site, phone="010-victim").get_json()
    stranger = app.test_client()

    resp = stranger.post("/api/attendance/check-out", json={"phone": "010-victim"})

    assert resp.status_code == 401
    assert store.raw(COLLECTION_ATTENDANCE, victim["recordId"])["checkOutAt"] is None


def test_forged_credentials_are_rejected(app, client, store, on_site):
    victim = _check_in(client, on_site, phone="010-victim").get_json()
    stranger = app.test_client()

    resp = stranger.post(
        "/api/attendance/check-out",
        json={"principalId": victim["principalId"], "refreshToken": "guessed"},
    )

    assert resp.status_code == 401
    assert store.raw(COLLECTION_ATTENDANCE, victim["recordId"])["checkOutAt"] is None


def test_issued_credentials_work_without_the_cookie(app, client, store, on_site):
    body = _check_in(client, on_site).get_json()
    mobile = app.test_client()

    resp = mobile.post(
        "/api/attendance/check-out",
        json={"principalId": body["principalId"], "refreshToken": body["refreshToken"]},
    )

    assert resp.status_code == 200
    assert resp.get_json()["recordId"] == body["recordId"]
    assert store.raw(COLLECTION_ATTENDANCE, body["recordId"])["checkOutAt"] is not None


def test_revoked_session_cannot_check_out_or_confirm(client, container, on_site):
    _check_in(client, on_site)
    container.reset_job.revoke_all_sessions()

    assert client.post("/api/attendance/check-out", json={}).status_code == 401
    resp = client.post("/api/attendance/notices/b-1/confirm", json={"location": on_site.to_dict()})
    assert resp.status_code == 401


def test_check_out_acts_on_the_session_record_not_the_phone_in_the_body(app, client, store, on_site):
    victim = _check_in(client, on_site, phone="010-victim").get_json()
    other = app.test_client()
    mine = _check_in(other, on_site, phone="010-mine").get_json()

    resp = other.post("/api/attendance/check-out", json={"phone": "010-victim"})

    assert resp.get_json()["recordId"] == mine["recordId"]
    assert store.raw(COLLECTION_ATTENDANCE, victim["recordId"])["checkOutAt"] is None


def test_admin_routes_require_login(client):
    assert client.post("/api/admin/reset").status_code == 401
    assert client.post("/api/admin/revoke-sessions").status_code == 401
    assert client.post("/api/admin/sweep/T1").status_code == 401
    assert client.get("/api/admin/bulletins").status_code == 401
    assert client.get("/api/admin/alerts").status_code == 401
    assert client.post("/api/admin/departments", json={"name": "Acme"}).status_code == 401


def test_wrong_password_is_rejected(client):
    resp = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})
    assert resp.status_code == 401


def test_manual_reset_reports_ok(admin_client, store, fixed_now):
    store.seed(COLLECTION_ATTENDANCE, {"principalPhone": "010", "checkInAt": to_iso(fixed_now), "checkOutAt": None})

    resp = admin_client.post("/api/admin/reset")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert len(body["steps"]) == 5
    assert store.count(COLLECTION_ATTENDANCE) == 0


def test_manual_reset_reports_partial_with_207(admin_client, identity):
    identity.fail_ids = {"p003"}

    resp = admin_client.post("/api/admin/reset")

    assert resp.status_code == 207
    assert resp.get_json()["status"] == "partial"


def test_revoke_sessions_route(admin_client):
    resp = admin_client.post("/api/admin/revoke-sessions")

    assert resp.status_code == 200
    assert resp.get_json()["revokedCount"] == 7


def test_sweep_route_validates_label(admin_client):
    assert admin_client.post("/api/admin/sweep/T2").status_code == 200
    assert admin_client.post("/api/admin/sweep/T7").status_code == 400


def test_publish_bulletin_route(admin_client, fixed_now):
    resp = admin_client.post(
        "/api/admin/bulletins",
        json={"title": "Crane", "targetType": "all", "isPersistent": True, "expiresAt": "2026-03-05T00:00:00+00:00"},
    )

    assert resp.status_code == 201
    assert resp.get_json()["bulletin"]["isPersistent"] is True

    listed = admin_client.get("/api/admin/bulletins").get_json()
    assert [b["title"] for b in listed["items"]] == ["Crane"]


def test_publish_bulletin_rejects_bad_expiry(admin_client):
    resp = admin_client.post(
        "/api/admin/bulletins",
        json={"title": "Crane", "isPersistent": True, "expiresAt": "someday"},
    )
    assert resp.status_code == 400


def test_department_crud_routes(admin_client, client):
    created = admin_client.post("/api/admin/departments", json={"name": "Acme"}).get_json()["department"]
    team = admin_client.post(
        "/api/admin/departments", json={"name": "Steel", "type": "team", "parentId": created["id"]}
    ).get_json()["department"]

    assert admin_client.patch(f"/api/admin/departments/{team['id']}", json={"name": "Paint"}).status_code == 200
    assert admin_client.post("/api/admin/departments", json={"name": "acme"}).status_code == 400

    resp = admin_client.delete(f"/api/admin/departments/{created['id']}")
    assert set(resp.get_json()["deletedIds"]) == {created["id"], team["id"]}
    assert client.get("/api/departments").get_json()["items"] == []


def test_worker_raises_alert_with_details_from_the_check_in(client, store, on_site):
    _check_in(client, on_site)

    resp = client.post("/api/attendance/alerts", json={"type": "fire", "phone": "010-other", "name": "Someone"})

    assert resp.status_code == 201
    alert = resp.get_json()["alert"]
    assert alert["userName"] == "Kim"
    assert alert["phoneNumber"] == "010-1111-2222"
    assert alert["department"] == "Acme - Steel"
    assert store.count(COLLECTION_EMERGENCY_ALERTS) == 1


def test_alert_requires_a_session_and_a_known_type(app, client, store, on_site):
    assert app.test_client().post("/api/attendance/alerts", json={"type": "fire"}).status_code == 401

    _check_in(client, on_site)
    assert client.post("/api/attendance/alerts", json={"type": "flood"}).status_code == 400
    assert store.count(COLLECTION_EMERGENCY_ALERTS) == 0


def test_admin_lists_alerts(admin_client, container):
    container.alert_service.raise_alert("happy_call", "010", "Kim", "Acme")

    items = admin_client.get("/api/admin/alerts").get_json()["items"]

    assert [a["type"] for a in items] == ["happy_call"]
