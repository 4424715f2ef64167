from conftest import RecordingNotifier, make_processed

from upwork_monitor.reconcile import NOTIFICATION_TITLE, ReconciliationEngine


def test_new_notifiable_excluded_and_seen_jobs(config, state, notifier):
    state.add_seen_job_ids(["C"])
    engine = ReconciliationEngine(config, state, notifier)
    jobs = [
        make_processed("A"),
        make_processed("B", is_excluded_by_title_filter=True),
        make_processed("C"),
    ]

    result = engine.reconcile(jobs, state.get_seen_job_ids(), set(), set())

    assert (result.new_count, result.notifiable_count) == (2, 1)
    assert {"A", "B", "C"} <= state.get_seen_job_ids()
    assert result.updated_collapsed_ids == {"B"}
    assert state.get_collapsed_job_ids() == {"B"}
    assert len(notifier.sent) == 1
    url, title, message, priority = notifier.sent[0]
    assert url == "https://www.upwork.com/jobs/A"
    assert title == NOTIFICATION_TITLE
    assert message.startswith(jobs[0].title)
    assert "Budget: $30 - $60/hr" in message
    assert priority == 2


def test_deleted_and_applied_jobs_are_not_notified(config, state, notifier):
    engine = ReconciliationEngine(config, state, notifier)
    jobs = [make_processed("D"), make_processed("E", applied=True)]

    result = engine.reconcile(jobs, set(), {"D"}, set())

    assert result.new_count == 1
    assert result.notifiable_count == 0
    assert notifier.sent == []
    # deleted ids still count as seen once fetched
    assert state.get_seen_job_ids() == {"D", "E"}


def test_low_priority_seen_job_not_collapsed_again(config, state, notifier):
    engine = ReconciliationEngine(config, state, notifier)
    job = make_processed("L", is_low_priority_by_skill=True)
    result = engine.reconcile([job], {"L"}, set(), set())
    assert result.updated_collapsed_ids == set()


def test_notification_failure_does_not_block_others(config, state):
    notifier = RecordingNotifier(fail_for={"X"})
    engine = ReconciliationEngine(config, state, notifier)
    jobs = [make_processed("X"), make_processed("Y"), make_processed("Z")]

    result = engine.reconcile(jobs, set(), set(), set())

    assert result.notifiable_count == 3
    assert sorted(result.notified_ids) == ["Y", "Z"]
    assert set(result.failed_notifications) == {"X"}
    assert state.get_seen_job_ids() == {"X", "Y", "Z"}


def test_seen_ids_round_trip_and_eviction(config, state, notifier):
    engine = ReconciliationEngine(config, state, notifier)
    engine.reconcile([make_processed("first")], state.get_seen_job_ids(), set(), set())

    again = engine.reconcile([make_processed("first")], state.get_seen_job_ids(), set(), set())
    assert again.new_count == 0

    newer = [make_processed(f"n{i}") for i in range(config.max_seen_ids)]
    engine.reconcile(newer, state.get_seen_job_ids(), set(), set())
    assert "first" not in state.get_seen_job_ids()

    notifier.sent.clear()
    back = engine.reconcile([make_processed("first")], state.get_seen_job_ids(), set(), set())
    assert back.new_count == 1
    assert len(notifier.sent) == 1
