from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import Role
from .service import SessionUser


def current_admin() -> Optional[SessionUser]:
    if "admin_id" not in session:
        return None
    return SessionUser(
        admin_id=int(session["admin_id"]),
        full_name=session.get("name", ""),
        role=Role(session.get("role", Role.ADMIN.value)),
    )


def store_admin(user: SessionUser) -> None:
    session["admin_id"] = user.admin_id
    session["name"] = user.full_name
    session["role"] = user.role.value


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_admin() is None:
            return jsonify({"success": False, "message": "Login required"}), 401
        return view(*args, **kwargs)

    return wrapper
