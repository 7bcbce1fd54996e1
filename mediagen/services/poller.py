"""Blocking poll loops for remote tasks and upload confirmation.

The loop is synchronous: each iteration queries once, then sleeps a fixed
interval. The deadline is checked once per iteration, so a slow query can
overrun it by up to one request's latency.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from mediagen.errors import (
    MediaGenError,
    MissingArtifactError,
    TaskFailedError,
    TaskTimeoutError,
    UploadError,
)
from mediagen.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)

Sleep = Callable[[float], None]
Clock = Callable[[], float]


@dataclass(frozen=True)
class PollPolicy:
    """How a provider waits for its tasks.

    `retry_on_error` selects warn-and-retry for query failures instead of
    failing fast. `max_attempts` (0 = unlimited) is a secondary guard next
    to the wall-clock timeout.
    """

    interval: float = 5.0
    timeout: float = 300.0
    max_attempts: int = 0
    retry_on_error: bool = False


def _fmt_seconds(seconds: float) -> str:
    return f"{seconds:g}s"


def poll_task(
    query: Callable[[], Task],
    policy: PollPolicy,
    *,
    label: str = "task",
    sleep: Sleep = time.sleep,
    clock: Clock = time.monotonic,
) -> Task:
    """Query until the task is done, failed, or out of time.

    Returns the finished task (always with a non-empty result URL).

    Raises:
        TaskFailedError: vendor reported failure.
        MissingArtifactError: vendor reported success without an artifact.
        TaskTimeoutError: deadline passed or attempt cap reached.
        MediaGenError: query failure, when the policy is fail-fast.
    """
    deadline = clock() + policy.timeout
    last: Task | None = None
    attempt = 0

    while True:
        attempt += 1
        try:
            task = query()
        except MediaGenError as e:
            if not policy.retry_on_error:
                raise
            logger.warning("%s: query failed (attempt %d): %s", label, attempt, e)
        else:
            last = task
            if task.is_terminal:
                if task.status is TaskStatus.FAILED:
                    raise TaskFailedError(f"{label} {task.id} failed: {task.error or 'unknown error'}")
                if not task.result:
                    raise MissingArtifactError(f"{label} {task.id} succeeded but no artifact URL in response")
                return task

        last_status = last.last_status if last else None
        if clock() > deadline:
            raise TaskTimeoutError(
                f"timeout after {_fmt_seconds(policy.timeout)}, "
                f"{label} still in status: {last_status or 'unknown'}",
                last_status=last_status,
            )
        if policy.max_attempts and attempt >= policy.max_attempts:
            raise TaskTimeoutError(
                f"polling timed out after {attempt} attempts, "
                f"{label} still in status: {last_status or 'unknown'}",
                last_status=last_status,
            )

        logger.info("  Status: %s, waiting %s...", last_status or "unknown", _fmt_seconds(policy.interval))
        sleep(policy.interval)


def wait_until_ready(
    check: Callable[[], bool],
    *,
    interval: float = 2.0,
    max_attempts: int = 10,
    label: str = "upload",
    sleep: Sleep = time.sleep,
) -> None:
    """Call `check` until it returns True, at most `max_attempts` times.

    Errors raised by `check` propagate immediately.
    """
    for attempt in range(1, max_attempts + 1):
        if check():
            return
        if attempt < max_attempts:
            logger.debug("%s not ready (attempt %d/%d)", label, attempt, max_attempts)
            sleep(interval)
    raise UploadError(f"{label} check timed out after {max_attempts} attempts")
