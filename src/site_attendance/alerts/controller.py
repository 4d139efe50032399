from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.exceptions import Unauthenticated, ValidationError
from ..users.session import admin_required

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/alerts", methods=["POST"], endpoint="attendance_raise_alert")
    def raise_alert():
        data = request.get_json(silent=True) or {}
        try:
            own = container.attendance_service.record_for_session(
                data.get("principalId") or session.get("principal_id") or "",
                data.get("refreshToken") or session.get("refresh_token") or "",
            )
            if own is None:
                raise ValidationError("No active check-in for this session")
            alert = container.alert_service.raise_alert(
                data.get("type", ""),
                own.principal_phone,
                own.display_name,
                own.department_label,
            )
        except Unauthenticated as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("raising alert failed")
            return jsonify({"success": False, "message": "Alert failed"}), 500
        return jsonify({"success": True, "alert": alert.to_dict()}), 201

    @app.route("/api/admin/alerts", methods=["GET"], endpoint="admin_alerts")
    @admin_required
    def admin_alerts():
        limit = request.args.get("limit", "50")
        items = container.alert_service.list_recent(limit=int(limit) if limit.isdigit() else 50)
        return jsonify({"success": True, "items": [a.to_dict() for a in items]})
