from upwork_monitor.api.tokens import TokenSource
from upwork_monitor.config import TokenRules
from upwork_monitor.cookies import CookieStore, StaticCookieStore, TokenCandidate


class BrokenCookieStore(CookieStore):
    def list_cookies(self, domain):
        raise PermissionError("cookie database locked")


def _source(*cookies):
    return TokenSource(StaticCookieStore([TokenCandidate(n, v) for n, v in cookies]))


def test_session_tokens_come_first():
    source = _source(
        ("oauth2_global_js_token", "oauth2v2_other"),
        ("a1b2c3d4sb", "oauth2v2_session"),
        ("user_oauth2_slave_access_token", "oauth2v2_slave"),
    )
    assert source.list_candidates("upwork.com") == [
        "oauth2v2_session", "oauth2v2_other", "oauth2v2_slave",
    ]


def test_denylisted_and_non_prefixed_cookies_are_dropped():
    source = _source(
        ("visitor_gql_token", "oauth2v2_visitor"),
        ("visitor_innova_gql_token", "oauth2v2_innova"),
        ("master_access_token", "oauth2v2_master"),
        ("xyz_vt", "oauth2v2_vt"),
        ("session_id", "abc123"),
        ("good_token", "oauth2v2_good"),
    )
    assert source.list_candidates("upwork.com") == ["oauth2v2_good"]


def test_decoy_name_is_not_prioritized():
    # 'forterToken' is 11 chars, so give the rules a matching length
    rules = TokenRules(session_name_length=11, session_name_suffix="en")
    source = TokenSource(
        StaticCookieStore([
            TokenCandidate("other_token", "oauth2v2_first"),
            TokenCandidate("forterToken", "oauth2v2_decoy"),
        ]),
        rules,
    )
    candidates = source.list_candidates("upwork.com")
    assert candidates.index("oauth2v2_first") < candidates.index("oauth2v2_decoy")


def test_candidates_are_unique_prefixed_and_ordered():
    source = _source(
        ("zzzzzzzzsb", "oauth2v2_dup"),
        ("another_one", "oauth2v2_dup"),
        ("abcdefghsb", "oauth2v2_s2"),
        ("another_two", "oauth2v2_x"),
        ("plain", "nope"),
    )
    candidates = source.list_candidates("upwork.com")
    assert len(candidates) == len(set(candidates))
    assert all(c.startswith("oauth2v2_") for c in candidates)
    assert candidates[:2] == ["oauth2v2_dup", "oauth2v2_s2"]
    assert candidates[2:] == ["oauth2v2_x"]


def test_empty_store_returns_empty_list():
    assert _source().list_candidates("upwork.com") == []


def test_unreadable_store_returns_empty_list(caplog):
    source = TokenSource(BrokenCookieStore())
    assert source.list_candidates("upwork.com") == []
    assert "Could not read cookies" in caplog.text
