"""Data models for Upwork jobs."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class Budget:
    type: str = ""
    currency_code: str = "USD"
    min_amount: float = 0
    max_amount: float = 0

    @property
    def is_hourly(self) -> bool:
        return "hourly" in (self.type or "").lower()


@dataclass(frozen=True)
class Client:
    payment_verification_status: str = "N/A"
    country: str = "N/A"
    total_spent: float = 0
    rating: float | None = None


@dataclass(frozen=True)
class Skill:
    name: str


@dataclass(frozen=True)
class Job:
    id: str
    ciphertext: str
    title: str
    description: str = ""
    posted_on: str | None = None
    applied: bool = False
    budget: Budget = field(default_factory=Budget)
    client: Client = field(default_factory=Client)
    skills: tuple[Skill, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["skills"] = [dict(s) for s in data["skills"]]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        return cls(**_job_kwargs(data))


@dataclass(frozen=True)
class ProcessedJob(Job):
    is_excluded_by_title_filter: bool = False
    is_low_priority_by_skill: bool = False
    is_low_priority_by_client_country: bool = False

    @property
    def is_flagged(self) -> bool:
        return (
            self.is_excluded_by_title_filter
            or self.is_low_priority_by_skill
            or self.is_low_priority_by_client_country
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProcessedJob":
        kwargs = _job_kwargs(data)
        for flag in (
            "is_excluded_by_title_filter",
            "is_low_priority_by_skill",
            "is_low_priority_by_client_country",
        ):
            kwargs[flag] = bool(data.get(flag, False))
        return cls(**kwargs)


def _job_kwargs(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(data["id"]),
        "ciphertext": data.get("ciphertext") or "",
        "title": data.get("title") or "",
        "description": data.get("description") or "",
        "posted_on": data.get("posted_on"),
        "applied": bool(data.get("applied", False)),
        "budget": Budget(**(data.get("budget") or {})),
        "client": Client(**(data.get("client") or {})),
        "skills": tuple(Skill(name=s.get("name", "")) for s in data.get("skills") or [] if isinstance(s, dict)),
    }
