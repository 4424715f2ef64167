from conftest import make_job

from upwork_monitor.filters import JobFilterPipeline
from upwork_monitor.models import Client, ProcessedJob, Skill


def _pipeline(config):
    return JobFilterPipeline.from_config(config)


def test_title_exclusion_is_case_insensitive_substring(config):
    job = make_job(title="Need a VIRTUAL Assistant for inbox")
    (processed,) = _pipeline(config).apply([job]).processed_jobs
    assert processed.is_excluded_by_title_filter
    assert not processed.is_low_priority_by_skill
    assert not processed.is_low_priority_by_client_country


def test_skill_and_country_rules_match_whole_values(config):
    jobs = [
        make_job("a", skills=(Skill("WebFlow"),)),
        make_job("b", skills=(Skill("Webflow CMS"),)),
        make_job("c", client=Client(country="INDIA")),
        make_job("d", client=Client(country="British Indian Ocean Territory")),
    ]
    result = _pipeline(config).apply(jobs)
    flags = {j.id: (j.is_low_priority_by_skill, j.is_low_priority_by_client_country) for j in result.processed_jobs}
    assert flags == {
        "a": (True, False),
        "b": (False, False),
        "c": (False, True),
        "d": (False, False),
    }


def test_rules_are_independent_and_jobs_never_dropped(config):
    job = make_job(
        title="Logo Designer wanted",
        skills=(Skill("Wix"),),
        client=Client(country="Nigeria"),
    )
    clean = make_job("clean")
    result = _pipeline(config).apply([job, clean])

    assert [j.id for j in result.processed_jobs] == [job.id, "clean"]
    flagged = result.processed_jobs[0]
    assert flagged.is_excluded_by_title_filter
    assert flagged.is_low_priority_by_skill
    assert flagged.is_low_priority_by_client_country
    assert not result.processed_jobs[1].is_flagged
    assert (result.title_excluded_count, result.skill_low_priority_count,
            result.client_country_low_priority_count) == (1, 1, 1)


def test_apply_is_idempotent(config):
    pipeline = _pipeline(config)
    jobs = [make_job("a", title="Virtual assistant"), make_job("b"), make_job("c", skills=(Skill("wix"),))]
    once = pipeline.apply(jobs).processed_jobs
    twice = pipeline.apply(once).processed_jobs
    assert twice == once
    assert all(isinstance(j, ProcessedJob) for j in twice)


def test_empty_rule_lists_flag_nothing():
    result = JobFilterPipeline().apply([make_job(title="Virtual Assistant")])
    assert not result.processed_jobs[0].is_flagged
    assert result.title_excluded_count == 0
