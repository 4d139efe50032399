from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .alerts.repository import AlertRepository
from .alerts.service import AlertService
from .alerts.store_alert_repository import StoreAlertRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.store_attendance_repository import StoreAttendanceRepository
from .bulletins.fanout import BulletinFanoutResolver
from .bulletins.repository import BulletinRepository
from .bulletins.service import BulletinService
from .bulletins.store_bulletin_repository import StoreBulletinRepository
from .common.datetime_utils import utcnow
from .core.constants import (
    DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PRINCIPAL_PAGE_SIZE,
)
from .database.connection import DatabaseConnection, DBConfig
from .database.mysql_document_store import MySQLDocumentStore
from .database.store import DocumentStore
from .departments.repository import DepartmentRepository
from .departments.service import DepartmentService
from .departments.store_department_repository import StoreDepartmentRepository
from .geofence.model import SiteConfig
from .geofence.repository import SiteConfigRepository, StoreSiteConfigRepository
from .identity.mysql_identity_provider import MySQLIdentityProvider
from .identity.provider import IdentityProvider
from .jobs.daily_reset import DailyResetJob
from .jobs.triggers import JobTriggers
from .users.mysql_admin_repository import MySQLAdminRepository
from .users.repository import AdminRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    store: DocumentStore
    identity: IdentityProvider

    admins_repo: AdminRepository
    site_config_repo: SiteConfigRepository
    attendance_repo: AttendanceRepository
    departments_repo: DepartmentRepository
    bulletins_repo: BulletinRepository
    alerts_repo: AlertRepository

    auth_service: AuthService
    attendance_service: AttendanceService
    department_service: DepartmentService
    fanout_resolver: BulletinFanoutResolver
    bulletin_service: BulletinService
    alert_service: AlertService
    reset_job: DailyResetJob
    job_triggers: JobTriggers


def build_container(
    *,
    store: DocumentStore,
    identity: IdentityProvider,
    admins: AdminRepository,
    site_default: SiteConfig,
    max_workers: int = DEFAULT_MAX_WORKERS,
    step_timeout: Optional[float] = None,
    page_size: int = DEFAULT_PRINCIPAL_PAGE_SIZE,
    auto_checkout_after_minutes: int = DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES,
    clock: Callable[[], datetime] = utcnow,
) -> Container:
    """Wire every adapter and service once; nothing below reaches for globals."""

    site_config_repo = StoreSiteConfigRepository(store, fallback=site_default)
    attendance_repo = StoreAttendanceRepository(store)
    departments_repo = StoreDepartmentRepository(store)
    bulletins_repo = StoreBulletinRepository(store)
    alerts_repo = StoreAlertRepository(store)

    auth_service = AuthService(admins)
    attendance_service = AttendanceService(
        attendance_repo,
        site_config_repo,
        identity,
        max_workers=max_workers,
        auto_checkout_after_minutes=auto_checkout_after_minutes,
        step_timeout=step_timeout,
        clock=clock,
    )
    department_service = DepartmentService(departments_repo)
    fanout_resolver = BulletinFanoutResolver(
        attendance_repo,
        departments_repo,
        max_workers=max_workers,
        step_timeout=step_timeout,
        clock=clock,
    )
    bulletin_service = BulletinService(bulletins_repo, fanout_resolver, clock=clock)
    alert_service = AlertService(alerts_repo, clock=clock)
    reset_job = DailyResetJob(
        store,
        identity,
        page_size=page_size,
        max_workers=max_workers,
        step_timeout=step_timeout,
        clock=clock,
    )
    job_triggers = JobTriggers(
        reset_job,
        attendance_service,
        attendance_repo,
        max_workers=max_workers,
        step_timeout=step_timeout,
        clock=clock,
    )

    return Container(
        store=store,
        identity=identity,
        admins_repo=admins,
        site_config_repo=site_config_repo,
        attendance_repo=attendance_repo,
        departments_repo=departments_repo,
        bulletins_repo=bulletins_repo,
        alerts_repo=alerts_repo,
        auth_service=auth_service,
        attendance_service=attendance_service,
        department_service=department_service,
        fanout_resolver=fanout_resolver,
        bulletin_service=bulletin_service,
        alert_service=alert_service,
        reset_job=reset_job,
        job_triggers=job_triggers,
    )


def build_mysql_container(*, db_config: dict, site_default: SiteConfig, **options) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    return build_container(
        store=MySQLDocumentStore(conn),
        identity=MySQLIdentityProvider(conn),
        admins=MySQLAdminRepository(conn),
        site_default=site_default,
        **options,
    )
