"""Periodic job checks on a fixed interval."""
from __future__ import annotations

import time

import schedule

from upwork_monitor.log import get_logger
from upwork_monitor.monitor import JobMonitor

log = get_logger(__name__)


def schedule_checks(
    monitor: JobMonitor,
    interval_minutes: float,
    scheduler: schedule.Scheduler | None = None,
) -> schedule.Job:
    """Register the periodic check; overlapping runs are rejected by the gate."""
    scheduler = scheduler or schedule.default_scheduler
    seconds = max(1, int(round(interval_minutes * 60)))
    return scheduler.every(seconds).seconds.do(monitor.run_job_check)


def run_forever(
    monitor: JobMonitor,
    interval_minutes: float,
    *,
    poll_seconds: float = 5.0,
    run_immediately: bool = True,
) -> None:
    scheduler = schedule.Scheduler()
    schedule_checks(monitor, interval_minutes, scheduler)
    log.info("Monitor started, checking every %.1f minute(s). Press Ctrl+C to stop.", interval_minutes)
    if run_immediately:
        monitor.run_job_check()
    try:
        while True:
            scheduler.run_pending()
            time.sleep(poll_seconds)
    except KeyboardInterrupt:
        log.info("Monitor stopped")
    finally:
        scheduler.clear()
