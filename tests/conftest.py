from __future__ import annotations

import bisect
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from site_attendance.container import build_container
from site_attendance.core.enums import Role
from site_attendance.core.exceptions import DocumentNotFound, StoreUnavailable
from site_attendance.database.store import (
    Document,
    WriteBatch,
    WriteOp,
    apply_patch,
    matches,
    new_document_id,
)
from site_attendance.geofence.model import Coordinate, SiteConfig
from site_attendance.identity.model import IssuedSession, Principal, PrincipalPage
from site_attendance.main import create_app
from site_attendance.users.model import Admin

SITE_CENTER = Coordinate(lat=37.536111, lng=126.833333)
ON_SITE = Coordinate(lat=37.5364, lng=126.8336)  # ~40 m from center
OFF_SITE = Coordinate(lat=37.60, lng=126.95)  # ~12 km from center


class InMemoryWriteBatch(WriteBatch):
    def __init__(self, store: "InMemoryDocumentStore"):
        super().__init__()
        self._store = store

    def _commit(self, ops: Sequence[WriteOp]) -> None:
        self._store.apply(ops)


class InMemoryDocumentStore:
    """Dict-backed DocumentStore; every batch applies all of its ops or none.

    ``fail_on`` is checked for each op of a batch (and for ``add``); when it
    returns True the whole batch is rejected with ``StoreUnavailable``.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self.committed_batch_sizes: List[int] = []
        self.fail_on: Optional[Callable[[WriteOp], bool]] = None
        self._lock = threading.Lock()

    def seed(self, collection: str, data: dict, doc_id: Optional[str] = None) -> str:
        doc_id = doc_id or new_document_id()
        self.collections.setdefault(collection, {})[doc_id] = dict(data)
        return doc_id

    def count(self, collection: str) -> int:
        return len(self.collections.get(collection, {}))

    def raw(self, collection: str, doc_id: str) -> Optional[dict]:
        return self.collections.get(collection, {}).get(doc_id)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            data = self.collections.get(collection, {}).get(doc_id)
            return Document(doc_id, dict(data)) if data is not None else None

    def list_all(self, collection: str) -> Sequence[Document]:
        with self._lock:
            return [Document(k, dict(v)) for k, v in self.collections.get(collection, {}).items()]

    def query(self, collection: str, **equals) -> Sequence[Document]:
        return [d for d in self.list_all(collection) if matches(d.data, equals)]

    def add(self, collection: str, data: dict) -> str:
        doc_id = new_document_id()
        self.apply([WriteOp("set", collection, doc_id, dict(data))])
        return doc_id

    def batch(self) -> WriteBatch:
        return InMemoryWriteBatch(self)

    def apply(self, ops: Sequence[WriteOp]) -> None:
        with self._lock:
            if self.fail_on is not None and any(self.fail_on(op) for op in ops):
                raise StoreUnavailable("injected failure")

            staged = {name: dict(docs) for name, docs in self.collections.items()}
            for op in ops:
                docs = staged.setdefault(op.collection, {})
                if op.kind == "set":
                    docs[op.doc_id] = dict(op.data or {})
                elif op.kind == "update":
                    if op.doc_id not in docs:
                        raise DocumentNotFound(f"{op.collection}/{op.doc_id}")
                    docs[op.doc_id] = apply_patch(docs[op.doc_id], op.data or {})
                else:
                    docs.pop(op.doc_id, None)

            self.collections = staged
            self.committed_batch_sizes.append(len(ops))


class InMemoryIdentityProvider:
    def __init__(self, principal_ids: Sequence[str] = ()):
        self.principal_ids: List[str] = sorted(principal_ids)
        self.tokens: Dict[str, str] = {pid: f"token-{pid}" for pid in self.principal_ids}
        self.revoked: List[str] = []
        self.fail_ids: set = set()
        self.list_calls = 0
        self._lock = threading.Lock()

    def list_principals(self, page_size: int, page_token: Optional[str] = None) -> PrincipalPage:
        self.list_calls += 1
        remaining = [pid for pid in self.principal_ids if pid > (page_token or "")]
        page = remaining[:page_size]
        next_token = page[-1] if len(remaining) > page_size else None
        return PrincipalPage(principals=[Principal(principal_id=pid) for pid in page], next_page_token=next_token)

    def revoke_sessions(self, principal_id: str) -> None:
        if principal_id in self.fail_ids:
            raise StoreUnavailable(f"cannot revoke {principal_id}")
        with self._lock:
            self.revoked.append(principal_id)
            self.tokens.pop(principal_id, None)

    def sign_in_anonymously(self) -> IssuedSession:
        principal_id = f"anon-{len(self.principal_ids) + 1:04d}"
        with self._lock:
            bisect.insort(self.principal_ids, principal_id)
            self.tokens[principal_id] = f"token-{principal_id}"
        return IssuedSession(principal_id=principal_id, refresh_token=self.tokens[principal_id])

    def is_session_valid(self, principal_id: str, refresh_token: str) -> bool:
        return self.tokens.get(principal_id) == refresh_token


class InMemoryAdmins:
    def __init__(self, admins: Sequence[Admin] = ()):
        self._by_username = {a.username: a for a in admins}

    def get_by_username(self, username: str) -> Optional[Admin]:
        return self._by_username.get(username)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def site() -> SiteConfig:
    return SiteConfig(center=SITE_CENTER, allowed_radius_meters=500)


@pytest.fixture
def on_site() -> Coordinate:
    return ON_SITE


@pytest.fixture
def off_site() -> Coordinate:
    return OFF_SITE


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def identity() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider([f"p{i:03d}" for i in range(7)])


@pytest.fixture
def admins() -> InMemoryAdmins:
    return InMemoryAdmins(
        [
            Admin(
                admin_id=1,
                full_name="Site Admin",
                username="admin",
                password_hash=generate_password_hash("secret123"),
                role=Role.ADMIN,
            )
        ]
    )


@pytest.fixture
def container(store, identity, admins, site, fixed_now):
    return build_container(
        store=store,
        identity=identity,
        admins=admins,
        site_default=site,
        max_workers=4,
        step_timeout=10,
        page_size=3,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def app(container):
    app = create_app(container=container, settings_module="site_attendance.config.testing")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/admin/login", json={"username": "admin", "password": "secret123"})
    assert resp.status_code == 200
    return client
