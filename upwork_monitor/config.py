"""Load monitor configuration from config/monitor.yaml and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from upwork_monitor.log import get_logger

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
CONFIG_PATH: Path = CONFIG_DIR / "monitor.yaml"
DATA_DIR: Path = PROJECT_ROOT / "data"

# Logical endpoint ids used as sticky-token keys and recovery contexts.
JOB_SEARCH = "jobSearch"
JOB_DETAILS = "jobDetails"
TALENT_PROFILE = "talentProfile"


@dataclass(frozen=True)
class TokenRules:
    """Cookie-name heuristics used to rank candidate bearer tokens."""

    value_prefix: str = "oauth2v2_"
    session_name_length: int = 10
    session_name_suffix: str = "sb"
    decoy_names: tuple[str, ...] = ("forterToken",)
    excluded_names: tuple[str, ...] = ("visitor_gql_token", "visitor_innova_gql_token")
    excluded_name_fragments: tuple[str, ...] = ("master_access_token", "_vt")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TokenRules":
        data = data or {}
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            kwargs[f.name] = tuple(value) if isinstance(value, list) else value
        return cls(**kwargs)


@dataclass(frozen=True)
class MonitorConfig:
    upwork_domain: str = "https://www.upwork.com"
    graphql_endpoint: str = "https://www.upwork.com/api/graphql/v1"
    cookie_domain: str = "upwork.com"
    default_user_query: str = ""
    contractor_tiers: tuple[str, ...] = ("IntermediateLevel", "ExpertLevel")
    sort_criteria: str = "recency"
    api_fetch_count: int = 12
    fetch_interval_minutes: float = 4
    max_seen_ids: int = 500
    max_deleted_ids: int = 200
    request_timeout: float = 30.0
    title_exclusions: tuple[str, ...] = ()
    skill_low_priority: tuple[str, ...] = ()
    client_country_low_priority: tuple[str, ...] = ()
    token_rules: TokenRules = field(default_factory=TokenRules)
    cookie_source: str = "browser"
    cookie_browser: str = "firefox"
    cookies_file: Path = DATA_DIR / "cookies.txt"
    state_path: Path = DATA_DIR / "state.json"
    notifications: str = "desktop"
    open_recovery_tabs: bool = True

    def recovery_url(self, context: str, ciphertext: str | None = None) -> str:
        """Page that lets the user re-establish a session for ``context``."""
        if context == JOB_SEARCH:
            return f"{self.upwork_domain}/nx/find-work/"
        if context == JOB_DETAILS and ciphertext:
            return f"{self.upwork_domain}/jobs/{ciphertext}"
        if context == TALENT_PROFILE and ciphertext:
            return f"{self.upwork_domain}/freelancers/{ciphertext}"
        return self.upwork_domain

    def job_url(self, ciphertext_or_id: str) -> str:
        return f"{self.upwork_domain}/jobs/{ciphertext_or_id}"


_LOWERCASED = ("title_exclusions", "skill_low_priority", "client_country_low_priority")
_PATHS = ("cookies_file", "state_path")


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _resolve_path(value: str | Path) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else PROJECT_ROOT / p


def config_from_dict(data: dict[str, Any]) -> MonitorConfig:
    """Build a MonitorConfig from parsed YAML, ignoring unknown keys."""
    known = {f.name for f in fields(MonitorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        log.warning("Ignoring unknown config keys: %s", ", ".join(unknown))

    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known or value is None:
            continue
        if key == "token_rules":
            kwargs[key] = TokenRules.from_dict(value)
        elif key in _LOWERCASED:
            # Dedupe after lower-casing; the YAML lists are hand-maintained.
            kwargs[key] = tuple(dict.fromkeys(str(s).lower() for s in value))
        elif key == "contractor_tiers":
            kwargs[key] = tuple(value)
        elif key in _PATHS:
            kwargs[key] = _resolve_path(value)
        else:
            kwargs[key] = value
    return MonitorConfig(**kwargs)


def load_config(path: Path | None = None) -> MonitorConfig:
    """Read the YAML config, then apply environment overrides."""
    path = path or Path(get_env("UPWORK_MONITOR_CONFIG") or CONFIG_PATH)
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        log.warning("Config file %s not found, using defaults", path)

    if get_env("UPWORK_COOKIES_FILE"):
        data["cookies_file"] = get_env("UPWORK_COOKIES_FILE")
        data["cookie_source"] = "file"
    if get_env("UPWORK_COOKIE_BROWSER"):
        data["cookie_browser"] = get_env("UPWORK_COOKIE_BROWSER")
    if get_env("UPWORK_STATE_PATH"):
        data["state_path"] = get_env("UPWORK_STATE_PATH")

    return config_from_dict(data)
