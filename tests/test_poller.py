import pytest

from mediagen.errors import (
    MissingArtifactError,
    TaskFailedError,
    TaskTimeoutError,
    TransportError,
    UploadError,
)
from mediagen.models import Task, TaskStatus
from mediagen.services.poller import PollPolicy, poll_task, wait_until_ready


def scripted(*steps):
    """Query function replaying tasks (or raising exceptions) in order."""
    calls = []
    steps = list(steps)

    def query():
        calls.append(len(calls))
        step = steps.pop(0) if len(steps) > 1 else steps[0]
        if isinstance(step, Exception):
            raise step
        return step

    query.calls = calls
    return query


def running(vendor="running"):
    return Task("t1", TaskStatus.RUNNING, vendor_status=vendor)


def test_done_on_first_query_never_sleeps(clock):
    query = scripted(Task.done("t1", "https://cdn/v.mp4"))
    task = poll_task(query, PollPolicy(interval=5, timeout=60), sleep=clock.sleep, clock=clock)
    assert task.result == "https://cdn/v.mp4"
    assert len(query.calls) == 1
    assert clock.sleeps == []


def test_polls_until_done(clock):
    query = scripted(running("queued"), running(), Task.done("t1", "https://cdn/v.mp4"))
    task = poll_task(query, PollPolicy(interval=5, timeout=60), sleep=clock.sleep, clock=clock)
    assert task.status is TaskStatus.DONE
    assert clock.sleeps == [5, 5]


def test_zero_timeout_still_queries_once(clock):
    query = scripted(Task.done("t1", "https://cdn/v.mp4"))
    poll_task(query, PollPolicy(interval=5, timeout=0), sleep=clock.sleep, clock=clock)
    assert len(query.calls) == 1


def test_timeout_reports_last_status_and_does_not_sleep_past_deadline(clock):
    query = scripted(running("running"))
    with pytest.raises(TaskTimeoutError) as excinfo:
        poll_task(query, PollPolicy(interval=5, timeout=10), sleep=clock.sleep, clock=clock)

    assert excinfo.value.last_status == "running"
    assert "timeout after 10s" in str(excinfo.value)
    assert "running" in str(excinfo.value)
    # t=0, 5, 10 are within the deadline; t=15 is not and raises without sleeping
    assert len(query.calls) == 4
    assert clock.sleeps == [5, 5, 5]


def test_done_without_artifact_is_an_error(clock):
    query = scripted(Task.done("t1", ""))
    with pytest.raises(MissingArtifactError):
        poll_task(query, PollPolicy(), sleep=clock.sleep, clock=clock)


def test_failed_task_carries_vendor_reason(clock):
    query = scripted(running(), Task.failed("t1", "content policy violation"))
    with pytest.raises(TaskFailedError, match="content policy violation"):
        poll_task(query, PollPolicy(), label="ark task", sleep=clock.sleep, clock=clock)


def test_failed_task_without_reason(clock):
    query = scripted(Task.failed("t1", None))
    with pytest.raises(TaskFailedError, match="unknown error"):
        poll_task(query, PollPolicy(), sleep=clock.sleep, clock=clock)


def test_fail_fast_propagates_query_errors(clock):
    query = scripted(running(), TransportError("connection reset"))
    with pytest.raises(TransportError):
        poll_task(query, PollPolicy(retry_on_error=False), sleep=clock.sleep, clock=clock)
    assert len(query.calls) == 2


def test_retry_policy_survives_query_errors(clock, caplog):
    query = scripted(
        TransportError("connection reset"),
        TransportError("connection reset"),
        Task.done("t1", "https://cdn/v.mp4"),
    )
    policy = PollPolicy(interval=5, timeout=600, retry_on_error=True)
    task = poll_task(query, policy, sleep=clock.sleep, clock=clock)

    assert task.result == "https://cdn/v.mp4"
    assert len(query.calls) == 3
    assert "query failed" in caplog.text


def test_retry_policy_still_bounded_by_deadline(clock):
    query = scripted(TransportError("down"))
    policy = PollPolicy(interval=5, timeout=10, retry_on_error=True)
    with pytest.raises(TaskTimeoutError) as excinfo:
        poll_task(query, policy, sleep=clock.sleep, clock=clock)
    assert excinfo.value.last_status is None


def test_attempt_cap(clock):
    query = scripted(running("processing"))
    policy = PollPolicy(interval=5, timeout=10_000, max_attempts=3)
    with pytest.raises(TaskTimeoutError, match="after 3 attempts"):
        poll_task(query, policy, sleep=clock.sleep, clock=clock)
    assert len(query.calls) == 3
    assert len(clock.sleeps) == 2


def test_wait_until_ready_returns_once_confirmed(clock):
    answers = [False, False, True]
    wait_until_ready(lambda: answers.pop(0), interval=2, max_attempts=10, sleep=clock.sleep)
    assert clock.sleeps == [2, 2]


def test_wait_until_ready_gives_up(clock):
    with pytest.raises(UploadError, match="10 attempts"):
        wait_until_ready(lambda: False, interval=2, max_attempts=10, sleep=clock.sleep)
    # no sleep after the final attempt
    assert len(clock.sleeps) == 9
