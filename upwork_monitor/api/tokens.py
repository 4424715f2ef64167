"""Discover and rank bearer tokens from the Upwork cookie jar."""
from __future__ import annotations

from upwork_monitor.config import TokenRules
from upwork_monitor.cookies import CookieStore, TokenCandidate
from upwork_monitor.log import get_logger, token_snippet

log = get_logger(__name__)


class TokenSource:
    """Turns cookies into an ordered list of candidate bearer tokens.

    The ordering is a guess: cookies whose name looks like the active
    session token come first, every other ``oauth2v2_`` cookie that is not a
    known visitor or master token follows. Callers must still treat each
    candidate as possibly invalid.
    """

    def __init__(self, cookie_store: CookieStore, rules: TokenRules | None = None) -> None:
        self.cookie_store = cookie_store
        self.rules = rules or TokenRules()

    def is_session_cookie(self, cookie: TokenCandidate) -> bool:
        r = self.rules
        return (
            len(cookie.name) == r.session_name_length
            and cookie.name.endswith(r.session_name_suffix)
            and cookie.name not in r.decoy_names
        )

    def is_excluded(self, cookie: TokenCandidate) -> bool:
        r = self.rules
        if cookie.name in r.excluded_names:
            return True
        return any(fragment in cookie.name for fragment in r.excluded_name_fragments)

    def list_candidates(self, domain: str) -> list[str]:
        try:
            cookies = self.cookie_store.list_cookies(domain)
        except Exception as exc:
            log.warning("Could not read cookies for %s: %s", domain, exc)
            return []

        if not cookies:
            log.warning("No cookies found for %s", domain)
            return []

        tokens = [c for c in cookies if c.value and c.value.startswith(self.rules.value_prefix)]
        if not tokens:
            log.warning("No cookies with %r prefix found for %s", self.rules.value_prefix, domain)
            return []

        session = [c.value for c in tokens if self.is_session_cookie(c)]
        others = [
            c.value for c in tokens
            if not self.is_session_cookie(c) and not self.is_excluded(c)
        ]
        candidates = list(dict.fromkeys(session + others))
        log.debug(
            "Found %d candidate token(s): %s",
            len(candidates), ", ".join(token_snippet(t) for t in candidates),
        )
        return candidates
