import json
from unittest.mock import MagicMock

import requests

from upwork_monitor.api import build_client, job_from_search_result
from upwork_monitor.cookies import StaticCookieStore, TokenCandidate
from upwork_monitor.errors import ApiError, ErrorType, RotationSuccess
from upwork_monitor.models import Budget

RAW_HOURLY = {
    "id": "1234",
    "title": "Fix LCP on WordPress",
    "description": "Need faster pages",
    "applied": False,
    "ontologySkills": [{"prettyName": "WordPress"}, {"prefLabel": "Core Web Vitals"}],
    "jobTile": {"job": {
        "id": "1234", "ciphertext": "~01hourly", "publishTime": "2026-10-16T09:00:00Z",
        "createTime": "2026-10-16T08:00:00Z", "jobType": "HOURLY",
        "hourlyBudgetMin": 30, "hourlyBudgetMax": None,
    }},
    "upworkHistoryData": {"client": {
        "paymentVerificationStatus": "VERIFIED", "country": "Germany",
        "totalSpent": {"amount": 2500}, "totalFeedback": 4.8,
    }},
}

RAW_FIXED = {
    "id": "987",
    "title": "Shopify speed audit",
    "applied": True,
    "jobTile": {"job": {
        "id": "987", "ciphertext": None, "createTime": "2026-10-15T08:00:00Z", "jobType": "FIXED",
        "fixedPriceAmount": {"amount": "400", "isoCurrencyCode": "EUR"},
    }},
}


def test_hourly_result_mapping():
    job = job_from_search_result(RAW_HOURLY)
    assert job.id == "~01hourly"
    assert job.posted_on == "2026-10-16T09:00:00Z"
    assert job.budget == Budget(type="HOURLY", currency_code="USD", min_amount=30, max_amount=0)
    assert job.client.country == "Germany"
    assert job.client.total_spent == 2500
    assert job.client.rating == 4.8
    assert [s.name for s in job.skills] == ["WordPress", "Core Web Vitals"]


def test_fixed_result_falls_back_to_numeric_id():
    job = job_from_search_result(RAW_FIXED)
    assert job.id == "987"
    assert job.ciphertext == ""
    assert job.applied is True
    assert job.posted_on == "2026-10-15T08:00:00Z"
    assert job.budget.min_amount == job.budget.max_amount == 400
    assert job.budget.currency_code == "EUR"
    assert job.client.country == "N/A"
    assert job.skills == ()


def _response(status, body):
    r = MagicMock()
    r.status_code = status
    r.text = body if isinstance(body, str) else json.dumps(body)
    return r


def test_fetch_jobs_rotates_through_real_transport(config, state):
    search_body = {"data": {"search": {"universalSearchNuxt": {"userJobSearchV1": {
        "results": [RAW_HOURLY, RAW_FIXED, {"title": "no ids at all"}],
    }}}}}
    cookies = StaticCookieStore([
        TokenCandidate("a1b2c3d4sb", "oauth2v2_expired"),
        TokenCandidate("oauth2_global_js_token", "oauth2v2_good"),
    ])
    client = build_client(config, cookies, state)
    session = MagicMock(spec=requests.Session)
    session.post.side_effect = [_response(401, "expired"), _response(200, search_body)]
    client.transport.session = session

    outcome = client.fetch_jobs("lcp")

    assert isinstance(outcome, RotationSuccess)
    assert outcome.token == "oauth2v2_good"
    assert [j.id for j in outcome.result] == ["~01hourly", "987"]
    assert state.get_api_endpoint_token("jobSearch") == "oauth2v2_good"
    _, kwargs = session.post.call_args
    variables = json.loads(kwargs["data"])["variables"]["requestVariables"]
    assert variables["userQuery"] == "lcp"
    assert variables["paging"] == {"offset": 0, "count": config.api_fetch_count}


def test_fetch_job_details_not_found_is_none(config, state):
    client = build_client(config, StaticCookieStore([TokenCandidate("x", "oauth2v2_t")]), state)
    session = MagicMock(spec=requests.Session)
    session.post.return_value = _response(200, {"data": {"jobAuthDetails": None}})
    client.transport.session = session

    assert client.fetch_job_details("~01") == RotationSuccess(None, "oauth2v2_t")
    _, kwargs = session.post.call_args
    assert kwargs["params"] == {"alias": "gql-query-get-auth-job-details"}


def test_fetch_talent_profile_error_passthrough(config, state):
    client = build_client(config, StaticCookieStore([TokenCandidate("x", "oauth2v2_t")]), state)
    session = MagicMock(spec=requests.Session)
    session.post.return_value = _response(200, {"errors": [{"message": "no access"}]})
    client.transport.session = session

    outcome = client.fetch_talent_profile("~profile")
    assert isinstance(outcome, ApiError)
    assert outcome.type is ErrorType.GRAPHQL
