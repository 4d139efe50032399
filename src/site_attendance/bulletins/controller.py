from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import from_iso
from ..container import Container
from ..core.exceptions import ValidationError
from ..users.session import admin_required

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/bulletins", methods=["GET"], endpoint="admin_bulletins")
    @admin_required
    def admin_bulletins():
        limit = request.args.get("limit", "50")
        items = container.bulletin_service.list_recent(limit=int(limit) if limit.isdigit() else 50)
        return jsonify({"success": True, "items": [b.to_dict() for b in items]})

    @app.route("/api/admin/bulletins", methods=["POST"], endpoint="admin_bulletins_publish")
    @admin_required
    def admin_bulletins_publish():
        data = request.get_json(silent=True) or {}
        try:
            try:
                expires_at = from_iso(data.get("expiresAt"))
            except (TypeError, ValueError):
                raise ValidationError("Invalid expiry date")

            published = container.bulletin_service.publish(
                title=data.get("title", ""),
                body=data.get("body", ""),
                target_type=data.get("targetType", "all"),
                target_ids=data.get("targetIds") or [],
                is_persistent=bool(data.get("isPersistent", False)),
                expires_at=expires_at,
                translations=data.get("translations") or {},
            )
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("publishing bulletin failed")
            return jsonify({"success": False, "message": "Publishing failed"}), 500

        return jsonify(
            {
                "success": True,
                "bulletin": published.bulletin.to_dict(),
                "fanout": published.fanout.to_dict(),
            }
        ), 201
