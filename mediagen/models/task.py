"""Remote task snapshot and status normalization."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass


class TaskStatus(str, enum.Enum):
    """Normalized task lifecycle statuses."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.DONE, TaskStatus.FAILED)


# Vendor status string -> normalized status. Keys are lower-case.
StatusTable = Mapping[str, TaskStatus]


def normalize_status(vendor_status: str | None, table: StatusTable) -> TaskStatus:
    """Map a vendor status onto the 4-state set.

    Unknown or missing statuses count as still in progress.
    """
    if not vendor_status:
        return TaskStatus.PENDING
    return table.get(vendor_status.strip().lower(), TaskStatus.PENDING)


@dataclass(frozen=True)
class Task:
    """Snapshot of one vendor-side asynchronous job.

    Never mutated locally; a fresh snapshot is built from every query.
    """

    id: str
    status: TaskStatus = TaskStatus.PENDING
    result: str | None = None
    error: str | None = None
    vendor_status: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def last_status(self) -> str:
        """Status string for progress and timeout messages."""
        return self.vendor_status or self.status.value

    @classmethod
    def done(cls, task_id: str, result: str | None, vendor_status: str | None = None) -> "Task":
        return cls(id=task_id, status=TaskStatus.DONE, result=result or None, vendor_status=vendor_status)

    @classmethod
    def failed(cls, task_id: str, error: str | None, vendor_status: str | None = None) -> "Task":
        return cls(id=task_id, status=TaskStatus.FAILED, error=error or None, vendor_status=vendor_status)
