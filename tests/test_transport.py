import json
from unittest.mock import MagicMock

import pytest
import requests

from upwork_monitor.api.transport import GraphQLTransport
from upwork_monitor.errors import ApiError, ErrorType

ENDPOINT = "https://www.upwork.com/api/graphql/v1"


def _transport(status=200, text="", exc=None):
    session = MagicMock(spec=requests.Session)
    if exc is not None:
        session.post.side_effect = exc
    else:
        response = MagicMock()
        response.status_code = status
        response.text = text
        session.post.return_value = response
    return GraphQLTransport(ENDPOINT, timeout=5, session=session), session


def test_success_returns_body_and_sends_bearer_token():
    transport, session = _transport(text=json.dumps({"data": {"ok": True}}))
    result = transport.execute("oauth2v2_tok", "userJobSearch", "query { x }", {"a": 1})

    assert result == {"data": {"ok": True}}
    _, kwargs = session.post.call_args
    assert kwargs["params"] == {"alias": "userJobSearch"}
    assert kwargs["headers"]["Authorization"] == "Bearer oauth2v2_tok"
    assert json.loads(kwargs["data"]) == {"query": "query { x }", "variables": {"a": 1}}
    assert kwargs["timeout"] == 5


def test_network_failure():
    transport, _ = _transport(exc=requests.ConnectionError("no route to host"))
    result = transport.execute("t", "a", "q", {})
    assert isinstance(result, ApiError)
    assert result.type is ErrorType.NETWORK
    assert "no route" in result.details["message"]


@pytest.mark.parametrize("status", [401, 403, 429, 500])
def test_http_error_truncates_body(status):
    transport, _ = _transport(status=status, text="x" * 1000)
    result = transport.execute("t", "a", "q", {})
    assert result.type is ErrorType.HTTP
    assert result.status == status
    assert len(result.details["body"]) == 300


def test_graphql_errors_on_200():
    body = {"errors": [{"message": "Requested oAuth2 client does not have permission"}], "data": None}
    transport, _ = _transport(text=json.dumps(body))
    result = transport.execute("t", "a", "q", {})
    assert result.type is ErrorType.GRAPHQL
    assert result.details["errors"] == body["errors"]


def test_empty_errors_array_is_success():
    transport, _ = _transport(text=json.dumps({"errors": [], "data": {"x": 1}}))
    assert transport.execute("t", "a", "q", {}) == {"errors": [], "data": {"x": 1}}


@pytest.mark.parametrize("text", ["<html>login</html>", "[1, 2]", ""])
def test_unparseable_body(text):
    transport, _ = _transport(text=text)
    result = transport.execute("t", "a", "q", {})
    assert result.type is ErrorType.PARSING
