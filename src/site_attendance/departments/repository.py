from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Department


class DepartmentRepository(Protocol):
    def list_all(self) -> Sequence[Department]:
        raise NotImplementedError

    def get(self, dept_id: str) -> Optional[Department]:
        raise NotImplementedError

    def create(self, department: Department) -> Department:
        raise NotImplementedError

    def update(self, department: Department) -> None:
        raise NotImplementedError

    def delete_atomic(self, dept_ids: Sequence[str]) -> None:
        """Delete all of ``dept_ids`` in one batch, or none of them."""

        raise NotImplementedError
