from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..core.constants import COLLECTION_DEPARTMENTS
from ..database.store import DocumentStore
from .model import Department
from .repository import DepartmentRepository


class StoreDepartmentRepository(DepartmentRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def list_all(self) -> Sequence[Department]:
        docs = self._store.list_all(COLLECTION_DEPARTMENTS)
        return sorted(
            (Department.from_document(d.id, d.data) for d in docs),
            key=lambda d: d.name.lower(),
        )

    def get(self, dept_id: str) -> Optional[Department]:
        doc = self._store.get(COLLECTION_DEPARTMENTS, dept_id)
        return Department.from_document(doc.id, doc.data) if doc else None

    def create(self, department: Department) -> Department:
        dept_id = self._store.add(COLLECTION_DEPARTMENTS, department.to_document())
        return replace(department, dept_id=dept_id)

    def update(self, department: Department) -> None:
        batch = self._store.batch()
        batch.set(COLLECTION_DEPARTMENTS, department.dept_id, department.to_document())
        batch.commit()

    def delete_atomic(self, dept_ids: Sequence[str]) -> None:
        batch = self._store.batch()
        for dept_id in dept_ids:
            batch.delete(COLLECTION_DEPARTMENTS, dept_id)
        batch.commit()
