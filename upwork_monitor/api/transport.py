"""Single authenticated GraphQL request with failure classification."""
from __future__ import annotations

import json
from typing import Any

import requests

from upwork_monitor.errors import ApiError, ErrorType
from upwork_monitor.log import get_logger

log = get_logger(__name__)

HTTP_BODY_LIMIT = 300
PARSE_BODY_LIMIT = 500


class GraphQLTransport:
    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def execute(
        self,
        token: str,
        endpoint_alias: str,
        query: str,
        variables: dict[str, Any],
    ) -> dict[str, Any] | ApiError:
        """POST one query. Returns the decoded body or an ApiError, never raises."""
        try:
            r = self.session.post(
                self.endpoint,
                params={"alias": endpoint_alias},
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                    "Accept": "*/*",
                },
                data=json.dumps({"query": query, "variables": variables}),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            return ApiError(ErrorType.NETWORK, {"message": str(exc)})

        body = r.text or ""
        if not 200 <= r.status_code < 300:
            return ApiError(
                ErrorType.HTTP,
                {"status": r.status_code, "body": body[:HTTP_BODY_LIMIT]},
            )

        try:
            data = json.loads(body)
        except ValueError as exc:
            log.warning("Response text that failed parsing: %s", body[:PARSE_BODY_LIMIT])
            return ApiError(ErrorType.PARSING, {"message": str(exc), "body": body[:PARSE_BODY_LIMIT]})

        if not isinstance(data, dict):
            return ApiError(
                ErrorType.PARSING,
                {"message": "Expected a JSON object", "body": body[:PARSE_BODY_LIMIT]},
            )
        if data.get("errors"):
            return ApiError(ErrorType.GRAPHQL, {"errors": data["errors"]})
        return data
