import sqlite3

import pytest

from upwork_monitor.retry import backoff_delay, retry_on


def test_locked_database_retried_then_reraised():
    calls = []

    @retry_on(sqlite3.OperationalError, attempts=3, base_delay=0, jitter=False)
    def read_cookies():
        calls.append(1)
        raise sqlite3.OperationalError("database is locked")

    with pytest.raises(sqlite3.OperationalError, match="locked"):
        read_cookies()
    assert len(calls) == 3


def test_succeeds_after_transient_lock():
    calls = []

    @retry_on(sqlite3.OperationalError, attempts=3, base_delay=0, jitter=False)
    def read_cookies():
        calls.append(1)
        if len(calls) < 2:
            raise sqlite3.OperationalError("database is locked")
        return ["cookie"]

    assert read_cookies() == ["cookie"]
    assert len(calls) == 2


def test_other_exceptions_propagate_on_first_attempt():
    calls = []

    @retry_on(sqlite3.OperationalError, attempts=3, base_delay=0)
    def read_cookies():
        calls.append(1)
        raise PermissionError("keyring locked")

    with pytest.raises(PermissionError):
        read_cookies()
    assert len(calls) == 1


def test_backoff_delay_is_capped():
    assert backoff_delay(1, base_delay=0.5, max_delay=5.0, jitter=False) == 0.5
    assert backoff_delay(3, base_delay=0.5, max_delay=5.0, jitter=False) == 2.0
    assert backoff_delay(10, base_delay=0.5, max_delay=5.0, jitter=False) == 5.0
