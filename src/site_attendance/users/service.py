from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash

from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .repository import AdminRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login; also the caller identity of manual triggers."""

    admin_id: int
    full_name: str
    role: Role


class AuthService:
    """Use case: authenticate an admin (login)."""

    def __init__(self, admins: AdminRepository):
        self._admins = admins

    def authenticate(self, username: str, password: str) -> SessionUser:
        admin = self._admins.get_by_username((username or "").strip())
        if not admin or not admin.is_active:
            raise AuthenticationError("Wrong username or password")

        try:
            ok = check_password_hash(admin.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Wrong username or password")

        return SessionUser(admin_id=admin.admin_id, full_name=admin.full_name, role=admin.role)
