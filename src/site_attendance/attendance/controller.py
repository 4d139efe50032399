from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.exceptions import OutsideGeofence, Unauthenticated, ValidationError
from ..geofence.model import Coordinate
from .model import AttendanceRecord

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _outside(e: OutsideGeofence):
        return jsonify(
            {
                "success": False,
                "message": str(e),
                "distanceMeters": round(e.distance_meters, 1),
                "allowedRadiusMeters": e.radius_meters,
            }
        ), 403

    def _session_record(data: dict) -> Optional[AttendanceRecord]:
        # Mobile clients send the issued credentials; browsers rely on the cookie session.
        principal_id = data.get("principalId") or session.get("principal_id") or ""
        refresh_token = data.get("refreshToken") or session.get("refresh_token") or ""
        return container.attendance_service.record_for_session(principal_id, refresh_token)

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    def check_in():
        data = request.get_json(silent=True) or {}
        try:
            location = Coordinate.from_dict(data.get("location"))
            label = data.get("departmentLabel")
            if not label:
                label = container.department_service.label_for(data.get("companyId", ""), data.get("teamId"))

            checked_in = container.attendance_service.check_in(
                principal_phone=data.get("phone", ""),
                display_name=data.get("name", ""),
                department_label=label,
                location=location,
            )
        except OutsideGeofence as e:
            return _outside(e)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("check-in failed")
            return jsonify({"success": False, "message": "Check-in failed"}), 500

        issued = checked_in.session
        session["principal_id"] = issued.principal_id
        session["refresh_token"] = issued.refresh_token
        return jsonify(
            {
                "success": True,
                "recordId": checked_in.record.record_id,
                "principalId": issued.principal_id,
                "refreshToken": issued.refresh_token,
            }
        )

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    def check_out():
        data = request.get_json(silent=True) or {}
        try:
            own = _session_record(data)
            record = container.attendance_service.check_out(own.principal_phone) if own else None
        except Unauthenticated as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except Exception:
            logger.exception("check-out failed")
            return jsonify({"success": False, "message": "Check-out failed"}), 500

        session.clear()
        return jsonify({"success": True, "recordId": record.record_id if record else None})

    @app.route(
        "/api/attendance/notices/<bulletin_id>/confirm",
        methods=["POST"],
        endpoint="attendance_confirm_notice",
    )
    def confirm_notice(bulletin_id: str):
        data = request.get_json(silent=True) or {}
        try:
            own = _session_record(data)
            if own is None:
                raise ValidationError("No active check-in for this session")
            record = container.attendance_service.confirm_notice(
                principal_phone=own.principal_phone,
                bulletin_id=bulletin_id,
                location=Coordinate.from_dict(data.get("location")),
            )
        except Unauthenticated as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except OutsideGeofence as e:
            return _outside(e)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("notice confirmation failed")
            return jsonify({"success": False, "message": "Confirmation failed"}), 500
        return jsonify({"success": True, "recordId": record.record_id})
