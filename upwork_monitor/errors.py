"""API error values. These are returned, never raised."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorType(str, Enum):
    NETWORK = "network"
    HTTP = "http"
    PARSING = "parsing"
    GRAPHQL = "graphql"
    AUTH = "auth"


class FailureKind(str, Enum):
    """How the monitor reacts to an ApiError."""

    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


AUTH_HTTP_STATUSES = frozenset({401, 403})
RATE_LIMIT_STATUS = 429


@dataclass(frozen=True)
class ApiError:
    type: ErrorType
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> int | None:
        return self.details.get("status") if self.type is ErrorType.HTTP else None

    def describe(self) -> str:
        if self.type is ErrorType.HTTP:
            return f"HTTP {self.status}"
        if self.type is ErrorType.GRAPHQL:
            return f"GraphQL errors {self.details.get('errors')}"
        return f"{self.type.value}: {self.details.get('message', 'no details')}"

    def to_payload(self) -> dict[str, Any]:
        """Shape handed to UI collaborators."""
        return {"error": True, "type": self.type.value, "details": dict(self.details)}


@dataclass(frozen=True)
class RotationSuccess(Generic[T]):
    result: T
    token: str


RotationOutcome = Union[RotationSuccess[T], ApiError]


def classify_failure(error: ApiError) -> FailureKind:
    """Decide whether an error means re-authenticate, back off, or just log.

    A GraphQL-level error on a 200 response is treated as a permission
    problem with the token.
    """
    if error.type in (ErrorType.AUTH, ErrorType.GRAPHQL):
        return FailureKind.AUTH
    if error.type is ErrorType.HTTP:
        if error.status in AUTH_HTTP_STATUSES:
            return FailureKind.AUTH
        if error.status == RATE_LIMIT_STATUS:
            return FailureKind.RATE_LIMITED
    return FailureKind.OTHER
