from __future__ import annotations

from typing import Protocol, Sequence

from .model import Bulletin


class BulletinRepository(Protocol):
    def create(self, bulletin: Bulletin) -> Bulletin:
        raise NotImplementedError

    def list_all(self) -> Sequence[Bulletin]:
        raise NotImplementedError
