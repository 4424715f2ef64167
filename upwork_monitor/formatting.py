"""Human-readable rendering of job fields for notifications and the CLI."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable
from urllib.parse import quote

from upwork_monitor.models import Budget, Client, Skill

SEARCH_URL = "https://www.upwork.com/nx/search/jobs/"
_TIER_CODES = {"EntryLevel": "1", "IntermediateLevel": "2", "ExpertLevel": "3"}


def _amount(value) -> float | None:
    """Positive amount or None; zero means the API left the field empty."""
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


def _money(n: float, currency_code: str) -> str:
    text = f"{int(n):,}" if n.is_integer() else f"{n:,.2f}"
    if not currency_code or currency_code.upper() == "USD":
        return f"${text}"
    return f"{currency_code.upper()} {text}"


def format_budget(budget: Budget | None) -> str:
    """``$20 - $40/hr``, ``$25/hr``, ``$500 - $800``, ``$500`` or ``N/A``."""
    if budget is None:
        return "N/A"
    low = _amount(budget.min_amount)
    high = _amount(budget.max_amount)
    cur = budget.currency_code

    if budget.is_hourly:
        if low and high and low != high:
            return f"{_money(low, cur)} - {_money(high, cur)}/hr"
        if low or high:
            return f"{_money(low or high, cur)}/hr"
        return "N/A"

    if low and high and low != high:
        return f"{_money(low, cur)} - {_money(high, cur)}"
    if low or high:
        return _money(low or high, cur)
    return "N/A"


def time_ago(value: str | datetime | None, now: datetime | None = None) -> str:
    if not value:
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return "Invalid Date"
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    seconds = round((now - value).total_seconds())
    minutes = round(seconds / 60)
    hours = round(minutes / 60)
    days = round(hours / 24)
    if seconds < 5:
        return "just now"
    if seconds < 60:
        return f"{seconds} sec ago"
    if minutes < 60:
        return f"{minutes} min ago"
    if hours < 24:
        return f"{hours} hr ago"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


def format_client_info(client: Client | None) -> str:
    if client is None:
        return "Client info N/A"
    parts = [f"Client: {client.country or 'N/A'}"]
    if client.rating is not None:
        parts.append(f"Rating: {float(client.rating):.2f}")
    if client.total_spent and float(client.total_spent) > 0:
        parts.append(f"Spent: {float(client.total_spent):.0f}")
    info = " | ".join(parts)
    if client.payment_verification_status != "VERIFIED":
        info += " (payment unverified)"
    return info


def format_skills(skills: Iterable[Skill], limit: int = 3) -> str:
    names = [s.name for s in skills if s.name]
    if not names:
        return ""
    if len(names) > limit:
        return f"Skills: {', '.join(names[:limit])}..."
    return f"Skills: {', '.join(names)}"


def build_search_url(user_query: str, contractor_tiers: Iterable[str] = (), sort_by: str = "") -> str:
    """Upwork website search page matching what the API is polling."""
    url = f"{SEARCH_URL}?q={quote(user_query, safe='')}"
    tiers = ",".join(_TIER_CODES[t] for t in contractor_tiers if t in _TIER_CODES)
    if tiers:
        url += f"&contractor_tier={tiers}"
    if sort_by:
        url += f"&sort={sort_by}"
    return url
