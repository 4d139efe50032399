from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence


@dataclass(frozen=True)
class Principal:
    principal_id: str
    is_anonymous: bool = True
    created_at: Optional[datetime] = None
    tokens_valid_after: Optional[datetime] = None


@dataclass(frozen=True)
class PrincipalPage:
    principals: Sequence[Principal]
    next_page_token: Optional[str] = None


@dataclass(frozen=True)
class IssuedSession:
    """What an anonymous sign-in hands back to the mobile client."""

    principal_id: str
    refresh_token: str
