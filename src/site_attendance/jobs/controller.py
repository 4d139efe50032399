from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..container import Container
from ..core.enums import StepStatus
from ..core.exceptions import ResetFailed, Unauthenticated, ValidationError
from ..users.session import current_admin

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/reset", methods=["POST"], endpoint="admin_reset")
    def admin_reset():
        try:
            report = container.job_triggers.trigger_daily_reset(current_admin())
        except Unauthenticated as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except ResetFailed:
            return jsonify({"success": False, "message": "Reset failed"}), 500

        body = {"success": report.ok, **report.to_dict()}
        return jsonify(body), (200 if report.status == StepStatus.OK else 207)

    @app.route("/api/admin/revoke-sessions", methods=["POST"], endpoint="admin_revoke_sessions")
    def admin_revoke_sessions():
        try:
            result = container.job_triggers.trigger_revoke_all_sessions(current_admin())
        except Unauthenticated as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except ResetFailed:
            return jsonify({"success": False, "message": "Session revocation failed"}), 500
        return jsonify({"success": result.failed_count == 0, **result.to_dict()})

    @app.route("/api/admin/sweep/<label>", methods=["POST"], endpoint="admin_sweep")
    def admin_sweep(label: str):
        try:
            summary = container.job_triggers.trigger_sweep(current_admin(), label)
        except Unauthenticated as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("manual sweep %s failed", label)
            return jsonify({"success": False, "message": "Sweep failed"}), 500
        return jsonify({"success": not summary.failed, **summary.to_dict()})
