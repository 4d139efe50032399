from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Admin:
    """Account allowed into the admin surface.

    Note: Plain data object (no DB access code).
    """

    admin_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role = Role.ADMIN
    is_active: bool = True
