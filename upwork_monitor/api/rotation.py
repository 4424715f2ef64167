"""Sticky-token-first, then full candidate rotation, for API calls."""
from __future__ import annotations

from typing import Any, Callable

from upwork_monitor.api.tokens import TokenSource
from upwork_monitor.errors import ApiError, ErrorType, RotationOutcome, RotationSuccess
from upwork_monitor.log import get_logger, token_snippet
from upwork_monitor.state import StateManager

log = get_logger(__name__)

Operation = Callable[..., Any]


class TokenRotationExecutor:
    """Runs an operation with the sticky token for its endpoint, falling back
    to every candidate token in priority order.

    ``operation(token, *args)`` must return either a result or an ApiError.
    The token that succeeds is remembered per endpoint id so the next call
    skips candidate enumeration.
    """

    def __init__(self, token_source: TokenSource, state: StateManager, domain: str) -> None:
        self.token_source = token_source
        self.state = state
        self.domain = domain

    def call_with_rotation(self, endpoint_id: str, operation: Operation, *args: Any) -> RotationOutcome:
        name = getattr(operation, "__name__", repr(operation))

        last_error: ApiError | None = None
        sticky = self.state.get_api_endpoint_token(endpoint_id)
        if sticky:
            result = operation(sticky, *args)
            if not isinstance(result, ApiError):
                return RotationSuccess(result, sticky)
            log.info(
                "Sticky token for %s failed (%s), rotating", endpoint_id, result.describe()
            )
            self.state.set_api_endpoint_token(endpoint_id, None)
            last_error = result

        # a failed sticky token is not retried in the same call
        candidates = [t for t in self.token_source.list_candidates(self.domain) if t != sticky]
        if not candidates:
            return last_error or ApiError(ErrorType.AUTH, {"message": "No candidate API tokens found."})

        for token in candidates:
            result = operation(token, *args)
            if not isinstance(result, ApiError):
                self.state.set_api_endpoint_token(endpoint_id, token)
                log.debug("Token %s works for %s", token_snippet(token), endpoint_id)
                return RotationSuccess(result, token)
            last_error = result
            _log_attempt_failure(result, token, name)

        log.error("All %d candidate tokens failed for %s (%s)", len(candidates), name, endpoint_id)
        return last_error or ApiError(ErrorType.AUTH, {"message": "All candidate tokens failed."})


def _log_attempt_failure(error: ApiError, token: str, operation_name: str) -> None:
    snippet = token_snippet(token)
    details = error.details
    if error.type is ErrorType.GRAPHQL:
        log.warning("GraphQL error with %s for %s - %s", snippet, operation_name, details.get("errors"))
    elif error.type is ErrorType.HTTP:
        log.warning("HTTP error %s with %s for %s", details.get("status"), snippet, operation_name)
    elif error.type is ErrorType.NETWORK:
        log.warning("Network error with %s for %s: %s", snippet, operation_name, details.get("message"))
    elif error.type is ErrorType.PARSING:
        log.warning("JSON parsing error with %s for %s: %s", snippet, operation_name, details.get("message"))
    else:
        log.warning("%s error with %s for %s", error.type.value, snippet, operation_name)
