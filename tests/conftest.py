from __future__ import annotations

import os
import tempfile

os.environ.setdefault("UPWORK_LOG_DIR", tempfile.mkdtemp(prefix="upwork-monitor-logs-"))

import pytest

from upwork_monitor.config import MonitorConfig
from upwork_monitor.models import Budget, Client, Job, ProcessedJob, Skill
from upwork_monitor.notify import Notifier
from upwork_monitor.state import StateManager
from upwork_monitor.storage import MemoryStore


class RecordingNotifier(Notifier):
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str, str, int]] = []
        self.fail_for = fail_for or set()

    def create(self, notification_id, title, message, priority=0):
        if any(notification_id.endswith(job_id) for job_id in self.fail_for):
            raise RuntimeError("notification daemon unavailable")
        self.sent.append((notification_id, title, message, priority))


def make_job(job_id: str = "~01abc", **overrides) -> Job:
    data = dict(
        id=job_id,
        ciphertext=job_id,
        title="Improve Core Web Vitals for Shopify store",
        description="LCP is slow",
        posted_on="2026-10-16T10:00:00Z",
        applied=False,
        budget=Budget(type="HOURLY", min_amount=30, max_amount=60),
        client=Client(payment_verification_status="VERIFIED", country="United States", total_spent=5000, rating=4.9),
        skills=(Skill("Web Performance"), Skill("Shopify")),
    )
    data.update(overrides)
    return Job(**data)


def make_processed(job_id: str = "~01abc", **overrides) -> ProcessedJob:
    flags = {
        k: overrides.pop(k)
        for k in ("is_excluded_by_title_filter", "is_low_priority_by_skill", "is_low_priority_by_client_country")
        if k in overrides
    }
    job = make_job(job_id, **overrides)
    return ProcessedJob(**job.__dict__, **flags)


@pytest.fixture
def config(tmp_path) -> MonitorConfig:
    return MonitorConfig(
        default_user_query="pagespeed",
        title_exclusions=("virtual assistant", "logo designer"),
        skill_low_priority=("webflow", "wix"),
        client_country_low_priority=("india", "nigeria"),
        max_seen_ids=5,
        max_deleted_ids=3,
        api_fetch_count=4,
        state_path=tmp_path / "state.json",
        notifications="log",
        open_recovery_tabs=True,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def state(store, config) -> StateManager:
    return StateManager(
        store,
        max_seen_ids=config.max_seen_ids,
        max_deleted_ids=config.max_deleted_ids,
        max_recent_jobs=config.api_fetch_count,
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
