"""Requests a UI can send to the monitor, and their dispatch."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from upwork_monitor.log import get_logger
from upwork_monitor.monitor import JobMonitor

log = get_logger(__name__)


@dataclass(frozen=True)
class ManualCheck:
    user_query: str | None = None


@dataclass(frozen=True)
class GetJobDetails:
    job_ciphertext: str


@dataclass(frozen=True)
class GetTalentProfile:
    profile_ciphertext: str


@dataclass(frozen=True)
class DeleteJob:
    job_id: str


@dataclass(frozen=True)
class RestoreJob:
    job_id: str


@dataclass(frozen=True)
class ToggleCollapsed:
    job_id: str
    collapsed: bool


Request = Union[ManualCheck, GetJobDetails, GetTalentProfile, DeleteJob, RestoreJob, ToggleCollapsed]


def _require(value: str | None, field_name: str, action: str) -> str:
    if not value:
        raise ValueError(f"{field_name} is required for {action}")
    return value


def _handle(monitor: JobMonitor, request: Request) -> dict[str, Any]:
    if isinstance(request, ManualCheck):
        ran = monitor.manual_check(request.user_query)
        status = "Manual check initiated and processing." if ran else "Check already in progress."
        return {"status": status}
    if isinstance(request, GetJobDetails):
        return monitor.fetch_job_details(_require(request.job_ciphertext, "job_ciphertext", "GetJobDetails"))
    if isinstance(request, GetTalentProfile):
        return monitor.fetch_talent_profile(
            _require(request.profile_ciphertext, "profile_ciphertext", "GetTalentProfile")
        )
    if isinstance(request, DeleteJob):
        monitor.delete_job(_require(request.job_id, "job_id", "DeleteJob"))
        return {"status": "deleted"}
    if isinstance(request, RestoreJob):
        restored = monitor.restore_job(_require(request.job_id, "job_id", "RestoreJob"))
        return {"status": "restored" if restored else "not deleted"}
    if isinstance(request, ToggleCollapsed):
        monitor.set_collapsed(_require(request.job_id, "job_id", "ToggleCollapsed"), request.collapsed)
        return {"status": "collapsed" if request.collapsed else "expanded"}
    raise TypeError(f"Unsupported request type: {type(request).__name__}")


def dispatch(monitor: JobMonitor, request: Request) -> dict[str, Any]:
    """Run one request. Bad input comes back as an error payload.

    Unknown request types raise TypeError: that is a programming error,
    not something to report to the user.
    """
    action = type(request).__name__
    try:
        return _handle(monitor, request)
    except ValueError as exc:
        log.error("Error handling %s: %s", action, exc)
        return {"error": True, "message": f"Error during {action}: {exc}"}
