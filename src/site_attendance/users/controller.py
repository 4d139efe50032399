from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.exceptions import AuthenticationError
from .session import current_admin, store_admin

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/login", methods=["POST"], endpoint="admin_login")
    def admin_login():
        data = request.get_json(silent=True) or {}
        try:
            user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))
        except AuthenticationError as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except Exception:
            logger.exception("admin login failed")
            return jsonify({"success": False, "message": "Login failed"}), 500

        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)
        store_admin(user)
        return jsonify({"success": True, "name": user.full_name, "role": user.role.value})

    @app.route("/api/admin/logout", methods=["POST"], endpoint="admin_logout")
    def admin_logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/admin/me", methods=["GET"], endpoint="admin_me")
    def admin_me():
        user = current_admin()
        if user is None:
            return jsonify({"success": False, "message": "Login required"}), 401
        return jsonify({"success": True, "name": user.full_name, "role": user.role.value})
