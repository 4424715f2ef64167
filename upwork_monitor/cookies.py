"""Cookie stores that expose an existing Upwork browser session."""
from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from http.cookiejar import CookieJar, LoadError, MozillaCookieJar
from pathlib import Path
from typing import NamedTuple

from upwork_monitor.log import get_logger
from upwork_monitor.retry import retry_on

log = get_logger(__name__)


class TokenCandidate(NamedTuple):
    name: str
    value: str


def _matches_domain(cookie_domain: str, domain: str) -> bool:
    host = cookie_domain.lstrip(".").lower()
    domain = domain.lstrip(".").lower()
    return host == domain or host.endswith("." + domain)


def _from_jar(jar: CookieJar, domain: str) -> list[TokenCandidate]:
    return [
        TokenCandidate(c.name, c.value or "")
        for c in jar
        if _matches_domain(c.domain, domain)
    ]


class CookieStore(ABC):
    @abstractmethod
    def list_cookies(self, domain: str) -> list[TokenCandidate]:
        """Cookies for ``domain``; an empty list when there are none."""


class BrowserCookieStore(CookieStore):
    """Reads cookies straight from a local browser profile."""

    def __init__(self, browser: str = "firefox") -> None:
        self.browser = browser

    @retry_on(sqlite3.OperationalError, attempts=3, base_delay=0.5)
    def _load_jar(self, browser_cookie3, domain: str) -> CookieJar:
        loader = getattr(browser_cookie3, self.browser, None)
        if loader is None:
            raise ValueError(f"Unsupported browser for cookie import: {self.browser!r}")
        return loader(domain_name=domain)

    def list_cookies(self, domain: str) -> list[TokenCandidate]:
        import browser_cookie3

        try:
            jar = self._load_jar(browser_cookie3, domain)
        except browser_cookie3.BrowserCookieError as exc:
            log.info("No %s cookie database found: %s", self.browser, exc)
            return []
        return _from_jar(jar, domain)


class CookieFileStore(CookieStore):
    """Netscape ``cookies.txt`` export, as written by most cookie-export add-ons."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def list_cookies(self, domain: str) -> list[TokenCandidate]:
        if not self.path.exists():
            return []
        jar = MozillaCookieJar(str(self.path))
        try:
            jar.load(ignore_discard=True, ignore_expires=True)
        except LoadError as exc:
            raise ValueError(f"{self.path} is not a Netscape cookies file: {exc}") from exc
        return _from_jar(jar, domain)


class StaticCookieStore(CookieStore):
    """Fixed cookie list; handy for tests and for tokens pasted via the CLI."""

    def __init__(self, cookies: list[TokenCandidate] | None = None, domain: str = "upwork.com") -> None:
        self._cookies = list(cookies or [])
        self._domain = domain

    def list_cookies(self, domain: str) -> list[TokenCandidate]:
        if not _matches_domain(domain, self._domain):
            return []
        return list(self._cookies)


def build_cookie_store(source: str, *, browser: str = "firefox", cookies_file: Path | None = None) -> CookieStore:
    if source == "file":
        if cookies_file is None:
            raise ValueError("cookie_source 'file' needs cookies_file")
        return CookieFileStore(cookies_file)
    if source == "browser":
        return BrowserCookieStore(browser)
    raise ValueError(f"Unknown cookie_source {source!r} (expected 'browser' or 'file')")
