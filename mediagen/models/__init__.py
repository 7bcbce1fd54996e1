"""Plain data types shared by providers and CLIs."""

from mediagen.models.media import MediaInput
from mediagen.models.task import Task, TaskStatus, normalize_status

__all__ = ["MediaInput", "Task", "TaskStatus", "normalize_status"]
