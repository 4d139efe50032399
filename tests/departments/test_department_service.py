from __future__ import annotations

import pytest

from site_attendance.core.constants import COLLECTION_DEPARTMENTS
from site_attendance.core.exceptions import StoreUnavailable, ValidationError


def test_company_names_are_unique_case_insensitively(container):
    container.department_service.add_company("Acme")

    with pytest.raises(ValidationError):
        container.department_service.add_company("ACME")


def test_team_names_are_unique_per_company(container):
    svc = container.department_service
    acme = svc.add_company("Acme")
    beta = svc.add_company("Beta")
    svc.add_team("Steel", acme.dept_id)

    svc.add_team("Steel", beta.dept_id)
    with pytest.raises(ValidationError):
        svc.add_team("steel", acme.dept_id)


def test_team_needs_existing_company(container):
    svc = container.department_service
    acme = svc.add_company("Acme")
    steel = svc.add_team("Steel", acme.dept_id)

    with pytest.raises(ValidationError):
        svc.add_team("Paint", "missing")
    with pytest.raises(ValidationError):
        svc.add_team("Paint", steel.dept_id)


def test_deleting_company_removes_its_teams(container, store):
    svc = container.department_service
    acme = svc.add_company("Acme")
    beta = svc.add_company("Beta")
    steel = svc.add_team("Steel", acme.dept_id)
    paint = svc.add_team("Paint", acme.dept_id)
    beta_steel = svc.add_team("Steel", beta.dept_id)

    deleted = svc.delete(acme.dept_id)

    assert set(deleted) == {acme.dept_id, steel.dept_id, paint.dept_id}
    assert {d.dept_id for d in svc.list_all()} == {beta.dept_id, beta_steel.dept_id}


def test_failed_cascade_delete_removes_nothing(container, store):
    svc = container.department_service
    acme = svc.add_company("Acme")
    steel = svc.add_team("Steel", acme.dept_id)
    store.fail_on = lambda op: op.kind == "delete" and op.doc_id == steel.dept_id

    with pytest.raises(StoreUnavailable):
        svc.delete(acme.dept_id)

    assert store.count(COLLECTION_DEPARTMENTS) == 2


def test_rename_checks_duplicates_but_allows_own_name(container):
    svc = container.department_service
    acme = svc.add_company("Acme")
    svc.add_company("Beta")

    assert svc.rename(acme.dept_id, "acme").name == "acme"
    with pytest.raises(ValidationError):
        svc.rename(acme.dept_id, "beta")


def test_label_for_builds_company_team_label(container):
    svc = container.department_service
    acme = svc.add_company("Acme")
    beta = svc.add_company("Beta")
    steel = svc.add_team("Steel", acme.dept_id)

    assert svc.label_for(acme.dept_id) == "Acme"
    assert svc.label_for(acme.dept_id, steel.dept_id) == "Acme - Steel"
    with pytest.raises(ValidationError):
        svc.label_for(beta.dept_id, steel.dept_id)
