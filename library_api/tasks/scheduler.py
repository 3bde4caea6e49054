# library_api/tasks/scheduler.py
from __future__ import annotations

import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def start_scheduler(app):
    """
    Background scheduler for queued notification mails and the periodic reminder job.
    - Jobs run inside an app context (DB access needs it).
    - Skipped in the debug reloader's watcher process so jobs do not run twice.
    - Shut down at interpreter exit.
    """
    if not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("[scheduler] Disabled by config.")
        return None

    # Werkzeug reloader: only the process with WERKZEUG_RUN_MAIN=true serves requests
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] Debug reloader secondary process: scheduler skipped.")
        return None

    # imported here to avoid a circular import through the services
    from library_api.tasks.reminders import run_reminder_job

    scheduler = BackgroundScheduler(timezone="UTC")

    def _job_wrapper():
        try:
            run_reminder_job(app)
        except Exception as ex:
            app.logger.exception(f"[scheduler] reminder job error: {ex}")

    minutes = int(app.config.get("REMINDER_INTERVAL_MINUTES", 10))
    scheduler.add_job(
        func=_job_wrapper,
        trigger=IntervalTrigger(minutes=minutes),
        id="reminder_job",
        replace_existing=True,
        max_instances=1,        # no overlapping runs
        coalesce=True,          # collapse missed runs into one
        misfire_grace_time=120
    )

    scheduler.start()
    app.logger.info(f"[scheduler] Reminder job started (every {minutes} minutes).")

    app.extensions["apscheduler"] = scheduler

    def _shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)

    atexit.register(_shutdown)
    return scheduler
