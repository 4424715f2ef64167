"""Job check cycle: fetch, filter, reconcile, persist, broadcast."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from upwork_monitor.api import UpworkClient, build_client
from upwork_monitor.config import JOB_DETAILS, JOB_SEARCH, TALENT_PROFILE, MonitorConfig
from upwork_monitor.cookies import CookieStore, build_cookie_store
from upwork_monitor.errors import ApiError, FailureKind, classify_failure
from upwork_monitor.filters import JobFilterPipeline
from upwork_monitor.gate import RunGate
from upwork_monitor.log import get_logger
from upwork_monitor.models import ProcessedJob
from upwork_monitor.notify import Notifier, RecoveryOpener, StateBroadcaster, build_notifier
from upwork_monitor.reconcile import ReconcileResult, ReconciliationEngine
from upwork_monitor.state import StateManager
from upwork_monitor.storage import JsonFileStore, KeyValueStore

log = get_logger(__name__)

STATUS_CHECKING = "Checking..."
STATUS_BUSY = "Busy, check in progress..."
STATUS_ERROR = "Error. Check logs."
STATUS_AUTH_FAILED = "Authentication failed. Please log in to Upwork."
STATUS_RATE_LIMITED = "Rate limited by Upwork. Will retry next cycle."


def checked_status(notifiable_count: int) -> str:
    return f"Checked. New (notifiable): {notifiable_count}"


@dataclass
class CheckOutcome:
    """What one admitted cycle did; ``None`` fields mean it stopped early."""

    query: str
    fetched: int = 0
    reconcile: ReconcileResult | None = None
    error: ApiError | None = None


class JobMonitor:
    def __init__(
        self,
        config: MonitorConfig,
        state: StateManager,
        client: UpworkClient,
        *,
        pipeline: JobFilterPipeline | None = None,
        engine: ReconciliationEngine | None = None,
        notifier: Notifier | None = None,
        recovery: RecoveryOpener | None = None,
        broadcaster: StateBroadcaster | None = None,
        gate: RunGate | None = None,
    ) -> None:
        self.config = config
        self.state = state
        self.client = client
        self.pipeline = pipeline or JobFilterPipeline.from_config(config)
        self.engine = engine or ReconciliationEngine(
            config, state, notifier or build_notifier(config.notifications)
        )
        self.recovery = recovery or RecoveryOpener(enabled=config.open_recovery_tabs)
        self.broadcaster = broadcaster or StateBroadcaster()
        self.gate = gate or RunGate()
        self.last_outcome: CheckOutcome | None = None

    # -- check cycle ----------------------------------------------------

    def run_job_check(self, trigger_query: str | None = None) -> bool:
        """Run one check cycle unless one is already in flight.

        Returns False when the call was rejected as busy. Unexpected errors
        inside the cycle are logged and reported through the status line.
        """
        return self.gate.run(lambda: self._run_cycle(trigger_query), on_busy=self._reject_busy)

    def _reject_busy(self) -> None:
        log.info("Job check already in progress, skipping this run")
        self.state.set_monitor_status(STATUS_BUSY)

    def _run_cycle(self, trigger_query: str | None) -> None:
        try:
            self.last_outcome = self._perform_check(trigger_query)
        except Exception:
            log.exception("Unexpected error during job check")
            self.state.set_monitor_status(STATUS_ERROR)
            self.broadcaster.publish()

    def _perform_check(self, trigger_query: str | None) -> CheckOutcome:
        self.state.set_monitor_status(STATUS_CHECKING)
        query = (
            trigger_query
            or self.state.get_current_user_query()
            or self.config.default_user_query
        )
        outcome = CheckOutcome(query=query)

        response = self.client.fetch_jobs(query)
        if isinstance(response, ApiError):
            log.error("Failed to fetch jobs after trying all tokens: %s", response.describe())
            outcome.error = response
            self.handle_api_failure(response, JOB_SEARCH)
            return outcome

        fetched = response.result
        outcome.fetched = len(fetched)
        filtered = self.pipeline.apply(fetched)
        log.info(
            "Processed %d jobs: %d excluded by title, %d low-priority by skill, "
            "%d low-priority by client country",
            len(fetched),
            filtered.title_excluded_count,
            filtered.skill_low_priority_count,
            filtered.client_country_low_priority_count,
        )

        deleted_ids = self.state.get_deleted_job_ids()
        result = self.engine.reconcile(
            filtered.processed_jobs,
            self.state.get_seen_job_ids(),
            deleted_ids,
            self.state.get_collapsed_job_ids(),
        )
        outcome.reconcile = result

        self._update_storage_after_check(result, filtered.processed_jobs, deleted_ids)
        self.broadcaster.publish()
        return outcome

    def _update_storage_after_check(
        self,
        result: ReconcileResult,
        jobs: list[ProcessedJob],
        deleted_ids: set[str],
    ) -> None:
        self.state.set_monitor_status(checked_status(result.notifiable_count))
        self.state.set_new_jobs_in_last_run(result.notifiable_count)
        self.state.set_last_check_timestamp(int(time.time() * 1000))
        self.state.set_recent_found_jobs(j for j in jobs if j.id not in deleted_ids)

    # -- failure policy -------------------------------------------------

    def handle_api_failure(self, error: ApiError, context: str, ciphertext: str | None = None) -> FailureKind:
        kind = classify_failure(error)
        if kind is FailureKind.AUTH:
            self.state.set_monitor_status(STATUS_AUTH_FAILED)
            url = self.config.recovery_url(context, ciphertext)
            log.warning("Authentication failure for %s (%s), opening %s", context, error.describe(), url)
            self.recovery.open(url)
        elif kind is FailureKind.RATE_LIMITED:
            self.state.set_monitor_status(STATUS_RATE_LIMITED)
        else:
            self.state.set_monitor_status(f"API Error: {error.type.value}. Check logs.")
        self.broadcaster.publish()
        return kind

    # -- on-demand lookups ----------------------------------------------

    def _lookup(self, context: str, ciphertext: str, response: Any, key: str) -> dict[str, Any]:
        if isinstance(response, ApiError):
            log.error("Failed to fetch %s for %s: %s", context, ciphertext, response.describe())
            if classify_failure(response) is FailureKind.AUTH:
                self.handle_api_failure(response, context, ciphertext)
            return response.to_payload()
        if response.result is None:
            log.info("%s for %s not found", context, ciphertext)
        return {key: response.result}

    def fetch_job_details(self, job_ciphertext: str) -> dict[str, Any]:
        response = self.client.fetch_job_details(job_ciphertext)
        return self._lookup(JOB_DETAILS, job_ciphertext, response, "jobDetails")

    def fetch_talent_profile(self, profile_ciphertext: str) -> dict[str, Any]:
        response = self.client.fetch_talent_profile(profile_ciphertext)
        return self._lookup(TALENT_PROFILE, profile_ciphertext, response, "profileDetails")

    # -- user actions ---------------------------------------------------

    def manual_check(self, user_query: str | None = None) -> bool:
        query = user_query or self.config.default_user_query
        self.state.set_current_user_query(query)
        return self.run_job_check(query)

    def delete_job(self, job_id: str) -> None:
        """Hide a job for good; it stays in seen ids so it never re-notifies."""
        self.state.add_deleted_job_id(job_id)
        recent = self.state.get_recent_found_jobs()
        self.state.set_recent_found_jobs(j for j in recent if j.id != job_id)
        self.broadcaster.publish()

    def restore_job(self, job_id: str) -> bool:
        restored = self.state.remove_deleted_job_id(job_id)
        if restored:
            self.broadcaster.publish()
        return restored

    def set_collapsed(self, job_id: str, collapsed: bool) -> None:
        ids = self.state.get_collapsed_job_ids()
        if collapsed:
            ids.add(job_id)
        else:
            ids.discard(job_id)
        self.state.set_collapsed_job_ids(ids)

    def clear_collapsed(self) -> None:
        self.state.set_collapsed_job_ids(())

    def status_snapshot(self) -> dict[str, Any]:
        return {
            "status": self.state.get_monitor_status(),
            "last_check_timestamp": self.state.get_last_check_timestamp(),
            "new_jobs_in_last_run": self.state.get_new_jobs_in_last_run(),
            "current_user_query": self.state.get_current_user_query(),
            "recent_jobs": len(self.state.get_recent_found_jobs()),
            "busy": self.gate.busy,
        }


def build_monitor(
    config: MonitorConfig,
    *,
    store: KeyValueStore | None = None,
    cookie_store: CookieStore | None = None,
    notifier: Notifier | None = None,
) -> JobMonitor:
    """Wire the production collaborators from configuration."""
    state = StateManager(
        store or JsonFileStore(config.state_path),
        max_seen_ids=config.max_seen_ids,
        max_deleted_ids=config.max_deleted_ids,
        max_recent_jobs=config.api_fetch_count,
    )
    cookie_store = cookie_store or build_cookie_store(
        config.cookie_source, browser=config.cookie_browser, cookies_file=config.cookies_file
    )
    client = build_client(config, cookie_store, state)
    return JobMonitor(config, state, client, notifier=notifier)
