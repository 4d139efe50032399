from __future__ import annotations

from typing import Protocol, Sequence

from .model import EmergencyAlert


class AlertRepository(Protocol):
    def create(self, alert: EmergencyAlert) -> EmergencyAlert:
        raise NotImplementedError

    def list_all(self) -> Sequence[EmergencyAlert]:
        raise NotImplementedError
