"""Annotate fetched jobs with title, skill and client-country flags."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Iterable

from upwork_monitor.config import MonitorConfig
from upwork_monitor.models import Job, ProcessedJob


@dataclass
class FilterResult:
    processed_jobs: list[ProcessedJob] = field(default_factory=list)
    title_excluded_count: int = 0
    skill_low_priority_count: int = 0
    client_country_low_priority_count: int = 0


def _lowered(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(v.lower() for v in values if v)


class JobFilterPipeline:
    """Flags jobs but never drops them; visibility is the caller's call."""

    def __init__(
        self,
        title_exclusions: Iterable[str] = (),
        skill_low_priority: Iterable[str] = (),
        client_country_low_priority: Iterable[str] = (),
    ) -> None:
        self.title_exclusions = _lowered(title_exclusions)
        self.skill_low_priority = frozenset(_lowered(skill_low_priority))
        self.client_country_low_priority = frozenset(_lowered(client_country_low_priority))

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "JobFilterPipeline":
        return cls(
            config.title_exclusions,
            config.skill_low_priority,
            config.client_country_low_priority,
        )

    def is_title_excluded(self, job: Job) -> bool:
        title = (job.title or "").lower()
        return any(phrase in title for phrase in self.title_exclusions)

    def is_low_priority_by_skill(self, job: Job) -> bool:
        return any(
            skill.name and skill.name.lower() in self.skill_low_priority
            for skill in job.skills
        )

    def is_low_priority_by_country(self, job: Job) -> bool:
        country = (job.client.country or "").lower()
        return bool(country) and country in self.client_country_low_priority

    def annotate(self, job: Job) -> ProcessedJob:
        base = {f.name: getattr(job, f.name) for f in fields(Job)}
        return ProcessedJob(
            **base,
            is_excluded_by_title_filter=self.is_title_excluded(job),
            is_low_priority_by_skill=self.is_low_priority_by_skill(job),
            is_low_priority_by_client_country=self.is_low_priority_by_country(job),
        )

    def apply(self, jobs: Iterable[Job]) -> FilterResult:
        result = FilterResult()
        for job in jobs:
            processed = self.annotate(job)
            result.processed_jobs.append(processed)
            result.title_excluded_count += processed.is_excluded_by_title_filter
            result.skill_low_priority_count += processed.is_low_priority_by_skill
            result.client_country_low_priority_count += processed.is_low_priority_by_client_country
        return result
