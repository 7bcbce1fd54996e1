"""Base task provider: submit, poll and download share one lifecycle."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

import httpx

from mediagen.config import ClientConfig
from mediagen.models.task import StatusTable, Task, TaskStatus, normalize_status
from mediagen.services.download import download_artifact
from mediagen.services.http import new_client
from mediagen.services.poller import Clock, PollPolicy, Sleep, poll_task

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass
class GenResult:
    """Outcome of one submit → poll → download run."""
    task: Task
    output_path: Path
    size_bytes: int
    provider: str
    latency_ms: int


class BaseTaskProvider(ABC, Generic[R]):
    """Abstract base for providers that run remote asynchronous tasks.

    Subclasses supply the vendor specifics: a status table, a poll policy,
    and the submit / query calls. Everything else is shared.
    """

    provider_name: str = "unknown"
    status_table: StatusTable = {}
    poll_policy: PollPolicy = PollPolicy()

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.Client | None = None,
        sleep: Sleep = time.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self.config = config
        self._client = http_client or new_client(config.http_timeout)
        self._own_client = http_client is None
        self._sleep = sleep
        self._clock = clock

    # --- lifecycle ---

    def close(self) -> None:
        if self._own_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- vendor specifics ---

    @abstractmethod
    def submit(self, request: R) -> Task:
        """Create the remote task; returns a pending Task."""
        ...

    @abstractmethod
    def query(self, task_id: str) -> Task:
        """Fetch a fresh snapshot of the remote task."""
        ...

    def normalize(self, vendor_status: str | None) -> TaskStatus:
        return normalize_status(vendor_status, self.status_table)

    # --- shared flow ---

    def wait(self, task_id: str) -> Task:
        """Poll until the task finishes; see `poll_task` for failure modes."""
        return poll_task(
            lambda: self.query(task_id),
            self.poll_policy,
            label=f"{self.provider_name} task",
            sleep=self._sleep,
            clock=self._clock,
        )

    def download(self, task: Task, output_path: str | Path) -> int:
        return download_artifact(task.result or "", output_path, http_client=self._client)

    def generate(self, request: R, output_path: str | Path) -> GenResult:
        """Submit, wait and download. Raises MediaGenError on any failure."""
        start = time.monotonic()

        task = self.submit(request)
        logger.info("Task created: %s", task.id)
        logger.info("Polling for result (timeout %gs)...", self.poll_policy.timeout)

        task = self.wait(task.id)

        logger.info("Downloading video...")
        size = self.download(task, output_path)
        latency = int((time.monotonic() - start) * 1000)

        return GenResult(
            task=task,
            output_path=Path(output_path),
            size_bytes=size,
            provider=self.provider_name,
            latency_ms=latency,
        )
