from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles of accounts allowed into the admin surface."""

    ADMIN = "admin"
    MANAGER = "manager"


class DepartmentType(str, Enum):
    COMPANY = "company"
    TEAM = "team"


class TargetType(str, Enum):
    """Who a bulletin is addressed to."""

    ALL = "all"
    COMPANY = "company"
    TEAM = "team"


class SweepLabel(str, Enum):
    """The three fixed daily sweep instants."""

    T1 = "T1"
    T2 = "T2"
    T3 = "T3"


class StepStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


class ResetStep(str, Enum):
    """Steps of the daily reset, in execution order."""

    REVOKE_SESSIONS = "revoke_sessions"
    PURGE_ATTENDANCE = "purge_attendance"
    PURGE_BULLETINS = "purge_bulletins"
    PURGE_EMERGENCY_ALERTS = "purge_emergency_alerts"
    PURGE_SWEEP_LOGS = "purge_sweep_logs"


class AlertType(str, Enum):
    """Kinds of call a worker can raise from the site."""

    FIRE = "fire"
    HAPPY_CALL = "happy_call"
