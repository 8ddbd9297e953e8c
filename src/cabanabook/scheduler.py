"""APScheduler setup for periodic tasks."""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from cabanabook.config import settings

logger = logging.getLogger(__name__)


def create_scheduler() -> BackgroundScheduler:
    """Create and configure the background scheduler."""
    from cabanabook.modules.calendar_sync import CalendarSyncer
    from cabanabook.modules.notifications import ReservationMailer

    scheduler = BackgroundScheduler()
    sched_config = settings.get("scheduler", {})

    cal_syncer = CalendarSyncer()
    mailer = ReservationMailer()

    mailer.setup_event_handlers()

    # External calendar import (every 15 min by default)
    scheduler.add_job(
        cal_syncer.sync_all,
        "interval",
        minutes=sched_config.get("calendar_sync_interval", 15),
        id="calendar_sync",
        name="Calendar Sync",
    )

    # Queued mail delivery (every 5 min by default)
    scheduler.add_job(
        mailer.send_pending_mail,
        "interval",
        minutes=sched_config.get("mail_send_interval", 5),
        id="mail_send",
        name="Mail Send",
    )

    logger.info("Scheduler configured with %d jobs", len(scheduler.get_jobs()))
    return scheduler
