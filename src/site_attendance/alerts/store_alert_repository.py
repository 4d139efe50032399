from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence

from ..core.constants import COLLECTION_EMERGENCY_ALERTS
from ..database.store import DocumentStore
from .model import EmergencyAlert
from .repository import AlertRepository

logger = logging.getLogger(__name__)


class StoreAlertRepository(AlertRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, alert: EmergencyAlert) -> EmergencyAlert:
        alert_id = self._store.add(COLLECTION_EMERGENCY_ALERTS, alert.to_document())
        return replace(alert, alert_id=alert_id)

    def list_all(self) -> Sequence[EmergencyAlert]:
        alerts: List[EmergencyAlert] = []
        for doc in self._store.list_all(COLLECTION_EMERGENCY_ALERTS):
            try:
                alerts.append(EmergencyAlert.from_document(doc.id, doc.data))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("emergency alert %s is unreadable: %s", doc.id, exc)
        return alerts
