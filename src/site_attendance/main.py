from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .alerts.controller import register as register_alerts
from .attendance.controller import register as register_attendance
from .bulletins.controller import register as register_bulletins
from .config import get_settings_module
from .container import Container, build_mysql_container
from .database.bootstrap import apply_schema, list_tables
from .departments.controller import register as register_departments
from .geofence.model import Coordinate, SiteConfig
from .jobs.controller import register as register_jobs
from .jobs.scheduler import start_scheduler
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def _site_default(settings) -> SiteConfig:
    site = getattr(settings, "SITE_DEFAULT")
    return SiteConfig(
        center=Coordinate(lat=float(site["lat"]), lng=float(site["lng"])),
        allowed_radius_meters=float(site["radius_meters"]),
    )


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=logging.DEBUG if app.config["DEBUG"] else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("settings=%s", settings_module)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_mysql_container(
            db_config=db_config,
            site_default=_site_default(settings),
            max_workers=int(getattr(settings, "MAX_WORKERS")),
            step_timeout=float(getattr(settings, "STEP_TIMEOUT_SECONDS")),
            page_size=int(getattr(settings, "PRINCIPAL_PAGE_SIZE")),
            auto_checkout_after_minutes=int(getattr(settings, "AUTO_CHECKOUT_AFTER_MINUTES")),
        )

    app.extensions["site_attendance"] = container

    register_users(app, container)
    register_attendance(app, container)
    register_departments(app, container)
    register_bulletins(app, container)
    register_alerts(app, container)
    register_jobs(app, container)

    if bool(getattr(settings, "ENABLE_SCHEDULER", False)):
        app.extensions["scheduler"] = start_scheduler(
            container.job_triggers,
            daily_reset_at=getattr(settings, "DAILY_RESET_AT"),
            sweep_times=getattr(settings, "SWEEP_TIMES"),
            timezone=getattr(settings, "TIMEZONE"),
        )

    return app
