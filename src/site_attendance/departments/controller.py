from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..container import Container
from ..core.exceptions import ValidationError
from ..users.session import admin_required

logger = logging.getLogger(__name__)


def _to_dict(d) -> dict:
    return {"id": d.dept_id, "name": d.name, "type": d.type.value, "parentId": d.parent_id}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/departments", methods=["GET"], endpoint="departments_list")
    def departments_list():
        # Public: the mobile sign-in form needs the company/team lists.
        return jsonify({"success": True, "items": [_to_dict(d) for d in container.department_service.list_all()]})

    @app.route("/api/admin/departments", methods=["POST"], endpoint="admin_departments_add")
    @admin_required
    def admin_departments_add():
        data = request.get_json(silent=True) or {}
        try:
            if data.get("type") == "team":
                dept = container.department_service.add_team(data.get("name", ""), data.get("parentId", ""))
            else:
                dept = container.department_service.add_company(data.get("name", ""))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        return jsonify({"success": True, "department": _to_dict(dept)}), 201

    @app.route("/api/admin/departments/<dept_id>", methods=["PATCH"], endpoint="admin_departments_rename")
    @admin_required
    def admin_departments_rename(dept_id: str):
        data = request.get_json(silent=True) or {}
        try:
            dept = container.department_service.rename(dept_id, data.get("name", ""), parent_id=data.get("parentId"))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        return jsonify({"success": True, "department": _to_dict(dept)})

    @app.route("/api/admin/departments/<dept_id>", methods=["DELETE"], endpoint="admin_departments_delete")
    @admin_required
    def admin_departments_delete(dept_id: str):
        try:
            deleted = container.department_service.delete(dept_id)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("deleting department %s failed", dept_id)
            return jsonify({"success": False, "message": "Delete failed; nothing was removed"}), 500
        return jsonify({"success": True, "deletedIds": list(deleted)})
