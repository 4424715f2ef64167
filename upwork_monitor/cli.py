"""Command-line entry point for the Upwork job monitor."""
from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from upwork_monitor.commands import DeleteJob, GetJobDetails, GetTalentProfile, ManualCheck, RestoreJob, dispatch
from upwork_monitor.config import load_config
from upwork_monitor.formatting import format_budget, format_client_info, format_skills, time_ago
from upwork_monitor.log import get_logger
from upwork_monitor.monitor import JobMonitor, build_monitor
from upwork_monitor.scheduler import run_forever

log = get_logger(__name__)


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _cmd_check(monitor: JobMonitor, args: argparse.Namespace) -> int:
    if args.query:
        result = dispatch(monitor, ManualCheck(args.query))
        log.info(result["status"])
    else:
        monitor.run_job_check()
    outcome = monitor.last_outcome
    if outcome is None:
        return 1
    if outcome.error is not None:
        log.error("Check failed: %s", outcome.error.describe())
        return 2
    log.info("Fetched %d job(s); status: %s", outcome.fetched, monitor.state.get_monitor_status())
    return 0


def _cmd_watch(monitor: JobMonitor, args: argparse.Namespace) -> int:
    run_forever(monitor, args.interval or monitor.config.fetch_interval_minutes)
    return 0


def _cmd_lookup(monitor: JobMonitor, args: argparse.Namespace) -> int:
    request = GetJobDetails(args.ciphertext) if args.command == "details" else GetTalentProfile(args.ciphertext)
    payload = dispatch(monitor, request)
    _print_json(payload)
    return 2 if payload.get("error") else 0


def _cmd_delete(monitor: JobMonitor, args: argparse.Namespace) -> int:
    request = DeleteJob(args.job_id) if args.command == "delete" else RestoreJob(args.job_id)
    payload = dispatch(monitor, request)
    log.info("%s: %s", args.job_id, payload.get("status") or payload.get("message"))
    return 2 if payload.get("error") else 0


def _cmd_status(monitor: JobMonitor, args: argparse.Namespace) -> int:
    snapshot = monitor.status_snapshot()
    ts = snapshot.get("last_check_timestamp")
    if ts:
        snapshot["last_check"] = time_ago(datetime.fromtimestamp(ts / 1000).astimezone())
    _print_json(snapshot)
    return 0


def _cmd_reset(monitor: JobMonitor, args: argparse.Namespace) -> int:
    monitor.state.initialize(monitor.config.default_user_query)
    log.info("State reset; default query is %r", monitor.config.default_user_query)
    return 0


def _cmd_jobs(monitor: JobMonitor, args: argparse.Namespace) -> int:
    jobs = monitor.state.get_recent_found_jobs()
    collapsed = monitor.state.get_collapsed_job_ids()
    if not jobs:
        print("No recent jobs. Run `upwork-monitor check` first.")
        return 0
    for job in jobs:
        if job.id in collapsed and not args.all:
            print(f"[+] {job.title}")
            continue
        flags = [
            name for name, on in (
                ("filtered", job.is_excluded_by_title_filter),
                ("low-priority skill", job.is_low_priority_by_skill),
                ("low-priority country", job.is_low_priority_by_client_country),
                ("applied", job.applied),
            ) if on
        ]
        print(f"[-] {job.title}" + (f"  ({', '.join(flags)})" if flags else ""))
        print(f"    {format_budget(job.budget)} | {time_ago(job.posted_on)} | {format_client_info(job.client)}")
        skills = format_skills(job.skills)
        if skills:
            print(f"    {skills}")
        print(f"    {monitor.config.job_url(job.ciphertext or job.id)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="upwork-monitor", description="Watch Upwork for new jobs.")
    parser.add_argument("--config", type=Path, help="Path to monitor.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("check", help="Run one job check now")
    p.add_argument("--query", help="Search query to use and remember")
    p.set_defaults(func=_cmd_check)

    p = sub.add_parser("watch", help="Check on a fixed interval until interrupted")
    p.add_argument("--interval", type=float, help="Minutes between checks")
    p.set_defaults(func=_cmd_watch)

    for name in ("details", "profile"):
        p = sub.add_parser(name, help=f"Fetch job {name}" if name == "details" else "Fetch a freelancer profile")
        p.add_argument("ciphertext")
        p.set_defaults(func=_cmd_lookup)

    for name in ("delete", "restore"):
        p = sub.add_parser(name, help=f"{name.capitalize()} a job in the recent list")
        p.add_argument("job_id")
        p.set_defaults(func=_cmd_delete)

    p = sub.add_parser("status", help="Show the last check status")
    p.set_defaults(func=_cmd_status)

    p = sub.add_parser("reset", help="Forget seen, deleted and recent jobs and cached tokens")
    p.set_defaults(func=_cmd_reset)

    p = sub.add_parser("jobs", help="List jobs from the last check")
    p.add_argument("--all", action="store_true", help="Expand collapsed jobs")
    p.set_defaults(func=_cmd_jobs)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    monitor = build_monitor(config)
    return args.func(monitor, args)


if __name__ == "__main__":
    sys.exit(main())
