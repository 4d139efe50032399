from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from ..core.constants import COLLECTION_BULLETINS
from ..database.store import DocumentStore
from .model import Bulletin
from .repository import BulletinRepository


class StoreBulletinRepository(BulletinRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, bulletin: Bulletin) -> Bulletin:
        bulletin_id = self._store.add(COLLECTION_BULLETINS, bulletin.to_document())
        return replace(bulletin, bulletin_id=bulletin_id)

    def list_all(self) -> Sequence[Bulletin]:
        return [Bulletin.from_document(d.id, d.data) for d in self._store.list_all(COLLECTION_BULLETINS)]
