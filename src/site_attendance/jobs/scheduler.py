from __future__ import annotations

import logging
from typing import Mapping

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..common.datetime_utils import parse_hhmm
from ..core.enums import SweepLabel
from .triggers import JobTriggers

logger = logging.getLogger(__name__)

DAILY_RESET_JOB_ID = "daily_reset"


def sweep_job_id(label: SweepLabel) -> str:
    return f"attendance_sweep_{label.value}"


def register_jobs(
    scheduler: BackgroundScheduler,
    triggers: JobTriggers,
    *,
    daily_reset_at: str,
    sweep_times: Mapping[str, str],
    timezone: str,
) -> None:
    """Add the daily reset and one sweep per label at fixed local times.

    Jobs have stable ids and replace any existing job with the same id, so
    registering twice leaves exactly one job per trigger.
    """

    reset_time = parse_hhmm(daily_reset_at)
    scheduler.add_job(
        triggers.on_daily_reset_tick,
        CronTrigger(hour=reset_time.hour, minute=reset_time.minute, timezone=timezone),
        id=DAILY_RESET_JOB_ID,
        name="daily reset",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=600,
    )

    for raw_label, at in sweep_times.items():
        label = SweepLabel(raw_label)
        sweep_time = parse_hhmm(at)
        scheduler.add_job(
            triggers.on_sweep_tick,
            CronTrigger(hour=sweep_time.hour, minute=sweep_time.minute, timezone=timezone),
            args=[label.value],
            id=sweep_job_id(label),
            name=f"attendance sweep {label.value}",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=300,
        )

    logger.info(
        "scheduled daily reset at %s and sweeps at %s (%s)",
        daily_reset_at,
        ", ".join(f"{k}={v}" for k, v in sweep_times.items()),
        timezone,
    )


def start_scheduler(triggers: JobTriggers, *, daily_reset_at: str, sweep_times: Mapping[str, str], timezone: str) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=timezone)
    register_jobs(
        scheduler,
        triggers,
        daily_reset_at=daily_reset_at,
        sweep_times=sweep_times,
        timezone=timezone,
    )
    scheduler.start()
    return scheduler
