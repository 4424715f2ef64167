"""Diff a filtered batch against seen/deleted ids and notify on new jobs."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from upwork_monitor.config import MonitorConfig
from upwork_monitor.formatting import format_budget
from upwork_monitor.log import get_logger
from upwork_monitor.models import ProcessedJob
from upwork_monitor.notify import Notifier
from upwork_monitor.state import StateManager

log = get_logger(__name__)

NOTIFICATION_TITLE = "New Upwork Job!"
NOTIFICATION_PRIORITY = 2
_MAX_NOTIFY_WORKERS = 8


@dataclass
class ReconcileResult:
    new_count: int
    notifiable_count: int
    updated_collapsed_ids: set[str]
    notified_ids: list[str] = field(default_factory=list)
    failed_notifications: dict[str, str] = field(default_factory=dict)


def notification_message(job: ProcessedJob) -> str:
    budget = format_budget(job.budget)
    if budget and budget != "N/A":
        return f"{job.title}\nBudget: {budget}"
    return job.title


class ReconciliationEngine:
    def __init__(self, config: MonitorConfig, state: StateManager, notifier: Notifier) -> None:
        self.config = config
        self.state = state
        self.notifier = notifier

    def _notify(self, job: ProcessedJob) -> str:
        url = self.config.job_url(job.ciphertext or job.id)
        self.notifier.create(
            url, NOTIFICATION_TITLE, notification_message(job), NOTIFICATION_PRIORITY
        )
        return url

    def notify_all(self, jobs: list[ProcessedJob]) -> tuple[list[str], dict[str, str]]:
        """Notify each job independently; one failure never blocks the rest."""
        sent: list[str] = []
        failed: dict[str, str] = {}
        if not jobs:
            return sent, failed
        workers = min(len(jobs), _MAX_NOTIFY_WORKERS)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(self._notify, job): job for job in jobs}
            for future in as_completed(futures):
                job = futures[future]
                try:
                    future.result()
                    sent.append(job.id)
                except Exception as exc:
                    log.error("Notification for job %s failed: %s", job.id, exc)
                    failed[job.id] = str(exc)[:200]
        return sent, failed

    def reconcile(
        self,
        processed_jobs: list[ProcessedJob],
        seen_ids: set[str],
        deleted_ids: set[str],
        collapsed_ids: set[str],
    ) -> ReconcileResult:
        candidates = [
            j for j in processed_jobs
            if j.id and j.id not in seen_ids and j.id not in deleted_ids
        ]
        notifiable = [j for j in candidates if not j.is_flagged and j.applied is False]

        updated_collapsed = set(collapsed_ids)
        newly_seen: list[str] = []
        for job in processed_jobs:
            if not job.id or job.id in seen_ids or job.id in newly_seen:
                continue
            newly_seen.append(job.id)
            if job.is_flagged:
                updated_collapsed.add(job.id)

        self.state.add_seen_job_ids(newly_seen)
        # The caller's view of seen ids stays consistent with what was stored.
        seen_ids.update(newly_seen)

        sent, failed = self.notify_all(notifiable)

        self.state.set_collapsed_job_ids(updated_collapsed)
        log.info(
            "Reconciled %d job(s): %d new, %d notifiable, %d notification failure(s)",
            len(processed_jobs), len(candidates), len(notifiable), len(failed),
        )
        return ReconcileResult(
            new_count=len(candidates),
            notifiable_count=len(notifiable),
            updated_collapsed_ids=updated_collapsed,
            notified_ids=sent,
            failed_notifications=failed,
        )
