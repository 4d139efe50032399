from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..common.datetime_utils import utcnow
from ..common.validators import require_non_empty
from ..core.enums import TargetType
from ..core.exceptions import ValidationError
from .fanout import BulletinFanoutResolver
from .model import Bulletin, FanoutResult
from .repository import BulletinRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishedBulletin:
    bulletin: Bulletin
    fanout: FanoutResult


class BulletinService:
    """Use case: publish a safety bulletin and push its title to the targeted workers."""

    def __init__(
        self,
        bulletins: BulletinRepository,
        fanout: BulletinFanoutResolver,
        *,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._bulletins = bulletins
        self._fanout = fanout
        self._clock = clock

    def publish(
        self,
        *,
        title: str,
        body: str = "",
        target_type: TargetType | str = TargetType.ALL,
        target_ids: Sequence[str] = (),
        is_persistent: bool = False,
        expires_at: Optional[datetime] = None,
        translations: Optional[Dict[str, str]] = None,
        now: datetime | None = None,
    ) -> PublishedBulletin:
        now = now or self._clock()
        title = require_non_empty(title, "Title")
        try:
            target_type = TargetType(target_type)
        except ValueError:
            raise ValidationError(f"Unknown target type: {target_type!r}")

        ids: Tuple[str, ...] = tuple(dict.fromkeys(i for i in target_ids if i))
        if target_type == TargetType.ALL:
            ids = ()
        elif not ids:
            raise ValidationError("Select at least one target")

        if is_persistent:
            if expires_at is None:
                raise ValidationError("Persistent bulletins need an expiry date")
            if expires_at <= now:
                raise ValidationError("Expiry date must be in the future")
        else:
            expires_at = None

        bulletin = self._bulletins.create(
            Bulletin(
                bulletin_id="",
                title=title,
                body=(body or "").strip(),
                target_type=target_type,
                target_ids=ids,
                translations=dict(translations or {}),
                is_persistent=bool(is_persistent),
                expires_at=expires_at,
                created_at=now,
            )
        )
        logger.info("published bulletin %s %r to %s %s", bulletin.bulletin_id, title, target_type.value, list(ids))

        fanout = self._fanout.apply(title=title, target_type=target_type, target_ids=ids, now=now)
        return PublishedBulletin(bulletin=bulletin, fanout=fanout)

    def list_recent(self, *, limit: int = 50) -> Sequence[Bulletin]:
        items = sorted(self._bulletins.list_all(), key=lambda b: b.created_at, reverse=True)
        return items[: int(limit)]
