"""Typed, size-capped views over the key-value store."""
from __future__ import annotations

from typing import Any, Iterable

from upwork_monitor.log import get_logger
from upwork_monitor.models import ProcessedJob
from upwork_monitor.storage import KeyValueStore

log = get_logger(__name__)

SEEN_JOB_IDS = "seenJobIds"
DELETED_JOB_IDS = "deletedJobIds"
MONITOR_STATUS = "monitorStatus"
LAST_CHECK_TIMESTAMP = "lastCheckTimestamp"
NEW_JOBS_IN_LAST_RUN = "newJobsInLastRun"
CURRENT_USER_QUERY = "currentUserQuery"
RECENT_FOUND_JOBS = "recentFoundJobs"
COLLAPSED_JOB_IDS = "collapsedJobIds"
API_ENDPOINT_TOKENS = "apiEndpointTokens"


def _id_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _ordered_ids(value: Any) -> dict[str, None]:
    """Insertion-ordered set, oldest first."""
    return dict.fromkeys(_id_list(value))


class StateManager:
    """Owns every persisted collection the monitor reads or mutates.

    ``seenJobIds`` and ``deletedJobIds`` keep insertion order and evict the
    oldest ids once their cap is reached.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        max_seen_ids: int = 500,
        max_deleted_ids: int = 200,
        max_recent_jobs: int = 12,
    ) -> None:
        self.store = store
        self.max_seen_ids = max_seen_ids
        self.max_deleted_ids = max_deleted_ids
        self.max_recent_jobs = max_recent_jobs

    # -- identifier sets ------------------------------------------------

    def get_seen_job_ids(self) -> set[str]:
        return set(_id_list(self.store.get(SEEN_JOB_IDS)))

    def add_seen_job_ids(self, job_ids: Iterable[str]) -> None:
        seen = _ordered_ids(self.store.get(SEEN_JOB_IDS))
        for job_id in job_ids:
            seen.setdefault(job_id, None)
        ids = list(seen)
        if len(ids) > self.max_seen_ids:
            log.debug("Evicting %d oldest seen job ids", len(ids) - self.max_seen_ids)
            ids = ids[-self.max_seen_ids:]
        self.store.set(SEEN_JOB_IDS, ids)

    def get_deleted_job_ids(self) -> set[str]:
        return set(_id_list(self.store.get(DELETED_JOB_IDS)))

    def set_deleted_job_ids(self, job_ids: Iterable[str]) -> None:
        ids = list(dict.fromkeys(job_ids))
        self.store.set(DELETED_JOB_IDS, ids[-self.max_deleted_ids:] if self.max_deleted_ids else [])

    def add_deleted_job_id(self, job_id: str) -> None:
        ids = _ordered_ids(self.store.get(DELETED_JOB_IDS))
        ids.pop(job_id, None)
        ids[job_id] = None
        self.set_deleted_job_ids(ids)

    def remove_deleted_job_id(self, job_id: str) -> bool:
        ids = _ordered_ids(self.store.get(DELETED_JOB_IDS))
        if job_id not in ids:
            return False
        del ids[job_id]
        self.store.set(DELETED_JOB_IDS, list(ids))
        return True

    def get_collapsed_job_ids(self) -> set[str]:
        return set(_id_list(self.store.get(COLLAPSED_JOB_IDS)))

    def set_collapsed_job_ids(self, job_ids: Iterable[str]) -> None:
        self.store.set(COLLAPSED_JOB_IDS, sorted(set(job_ids)))

    # -- recent jobs ----------------------------------------------------

    def get_recent_found_jobs(self) -> list[ProcessedJob]:
        value = self.store.get(RECENT_FOUND_JOBS)
        if not isinstance(value, list):
            return []
        jobs: list[ProcessedJob] = []
        for item in value:
            try:
                jobs.append(ProcessedJob.from_dict(item))
            except (KeyError, TypeError, AttributeError, ValueError) as exc:
                log.warning("Skipping malformed stored job: %s", exc)
        return jobs

    def set_recent_found_jobs(self, jobs: Iterable[ProcessedJob]) -> None:
        snapshot = [j.to_dict() for j in jobs][: self.max_recent_jobs]
        self.store.set(RECENT_FOUND_JOBS, snapshot)

    # -- scalars --------------------------------------------------------

    def get_monitor_status(self) -> str:
        return self.store.get(MONITOR_STATUS) or "Unknown"

    def set_monitor_status(self, status: str) -> None:
        log.info("Status: %s", status)
        self.store.set(MONITOR_STATUS, status)

    def get_last_check_timestamp(self) -> int | None:
        return self.store.get(LAST_CHECK_TIMESTAMP) or None

    def set_last_check_timestamp(self, timestamp_ms: int) -> None:
        self.store.set(LAST_CHECK_TIMESTAMP, timestamp_ms)

    def get_new_jobs_in_last_run(self) -> int:
        return self.store.get(NEW_JOBS_IN_LAST_RUN) or 0

    def set_new_jobs_in_last_run(self, count: int) -> None:
        self.store.set(NEW_JOBS_IN_LAST_RUN, count)

    def get_current_user_query(self) -> str | None:
        return self.store.get(CURRENT_USER_QUERY) or None

    def set_current_user_query(self, query: str) -> None:
        self.store.set(CURRENT_USER_QUERY, query)

    # -- sticky tokens --------------------------------------------------

    def get_api_endpoint_token(self, endpoint_id: str) -> str | None:
        tokens = self.store.get(API_ENDPOINT_TOKENS)
        if isinstance(tokens, dict):
            return tokens.get(endpoint_id) or None
        return None

    def set_api_endpoint_token(self, endpoint_id: str, token: str | None) -> None:
        tokens = self.store.get(API_ENDPOINT_TOKENS)
        if not isinstance(tokens, dict):
            tokens = {}
        if token is None:
            tokens.pop(endpoint_id, None)
        else:
            tokens[endpoint_id] = token
        self.store.set(API_ENDPOINT_TOKENS, tokens)

    def initialize(self, default_user_query: str) -> None:
        """Reset every key to its empty value."""
        self.store.set_many({
            MONITOR_STATUS: "Initializing...",
            LAST_CHECK_TIMESTAMP: None,
            NEW_JOBS_IN_LAST_RUN: 0,
            SEEN_JOB_IDS: [],
            DELETED_JOB_IDS: [],
            RECENT_FOUND_JOBS: [],
            COLLAPSED_JOB_IDS: [],
            CURRENT_USER_QUERY: default_user_query,
            API_ENDPOINT_TOKENS: {},
        })
