from __future__ import annotations

import logging
from typing import Protocol

from ..core.constants import COLLECTION_SITE_CONFIG, SITE_CONFIG_DOC_ID
from ..database.store import DocumentStore
from .model import Coordinate, SiteConfig

logger = logging.getLogger(__name__)


class SiteConfigRepository(Protocol):
    def get(self) -> SiteConfig:
        raise NotImplementedError


class StoreSiteConfigRepository(SiteConfigRepository):
    """Reads the ``siteConfig/site`` singleton; writes belong to the admin surface."""

    def __init__(self, store: DocumentStore, *, fallback: SiteConfig):
        self._store = store
        self._fallback = fallback

    def get(self) -> SiteConfig:
        doc = self._store.get(COLLECTION_SITE_CONFIG, SITE_CONFIG_DOC_ID)
        if doc is None:
            logger.warning(
                "no %s/%s document; using configured default site (radius %.0f m)",
                COLLECTION_SITE_CONFIG,
                SITE_CONFIG_DOC_ID,
                self._fallback.allowed_radius_meters,
            )
            return self._fallback
        return SiteConfig(
            center=Coordinate.from_dict(doc.data.get("center")),
            allowed_radius_meters=float(doc.data["allowedRadiusMeters"]),
        )
