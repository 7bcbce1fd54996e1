"""Volcano Ark (Seedance) video generation provider.

Async task pattern:
1. POST /contents/generations/tasks → create task
2. GET  /contents/generations/tasks/{id} → poll status
3. Download result video when task completes

Model: doubao-seedance-1-5-pro-251215
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from mediagen.errors import DecodeError, VendorError
from mediagen.models.media import MediaInput
from mediagen.models.task import Task, TaskStatus
from mediagen.services.http import expect_dict, expect_str, request_json
from mediagen.services.poller import PollPolicy
from mediagen.services.providers.base import BaseTaskProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "doubao-seedance-1-5-pro-251215"
_DEFAULT_ENDPOINT = "https://ark.cn-beijing.volces.com/api/v3"

ARK_STATUS_TABLE = {
    "queued": TaskStatus.PENDING,
    "running": TaskStatus.RUNNING,
    "succeeded": TaskStatus.DONE,
    "failed": TaskStatus.FAILED,
    "cancelled": TaskStatus.FAILED,
    "expired": TaskStatus.FAILED,
}


@dataclass
class ArkVideoRequest:
    prompt: str
    model: str = DEFAULT_MODEL
    duration: str = "5"
    resolution: str = "720p"
    ratio: str = "16:9"
    audio: bool = True
    first_frame: MediaInput | None = None

    def build_body(self) -> dict[str, Any]:
        content: list[dict[str, Any]] = [{"type": "text", "text": self.prompt}]
        if self.first_frame and not self.first_frame.is_empty:
            content.append({
                "type": "image_url",
                "image_url": {"url": self.first_frame.as_data_url()},
            })

        parameters: dict[str, Any] = {"with_audio": self.audio}
        if self.duration:
            parameters["duration"] = self.duration
        if self.resolution:
            parameters["resolution"] = self.resolution
        if self.ratio:
            parameters["ratio"] = self.ratio

        return {
            "model": self.model or DEFAULT_MODEL,
            "content": content,
            "parameters": parameters,
        }


def _error_text(error: Any) -> str:
    if isinstance(error, dict):
        return f"[{error.get('code', '')}] {error.get('message', '')}".strip()
    return str(error)


class ArkVideoProvider(BaseTaskProvider[ArkVideoRequest]):
    """Seedance video generation over the Ark REST API (Bearer auth)."""

    provider_name = "ark"
    status_table = ARK_STATUS_TABLE
    poll_policy = PollPolicy(interval=5.0, timeout=300.0)

    @property
    def _tasks_url(self) -> str:
        endpoint = (self.config.base_url or _DEFAULT_ENDPOINT).rstrip("/")
        return f"{endpoint}/contents/generations/tasks"

    def _headers(self) -> dict[str, str]:
        if not self.config.api_key:
            raise ValueError("Ark API key is required")
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def submit(self, request: ArkVideoRequest) -> Task:
        body = request.build_body()
        logger.info("Creating task with model %s...", body["model"])

        data = request_json(self._client, "POST", self._tasks_url, json=body, headers=self._headers())

        if data.get("error"):
            err = data["error"]
            code = err.get("code") if isinstance(err, dict) else None
            raise VendorError(f"API error {_error_text(err)}", code=code)

        task_id = expect_str(data.get("id"), "id")
        if not task_id:
            raise DecodeError(f"no task ID in response: {data}")

        return Task(id=task_id, status=TaskStatus.PENDING)

    def query(self, task_id: str) -> Task:
        data = request_json(self._client, "GET", f"{self._tasks_url}/{task_id}", headers=self._headers())

        vendor_status = expect_str(data.get("status"), "status")
        if data.get("error"):
            return Task.failed(task_id, f"task failed {_error_text(data['error'])}", vendor_status)

        status = self.normalize(vendor_status)
        if status is TaskStatus.DONE:
            content = expect_dict(data.get("content"), "content")
            return Task.done(task_id, expect_str(content.get("video_url"), "video_url"), vendor_status)
        if status is TaskStatus.FAILED:
            return Task.failed(task_id, f"task {vendor_status}", vendor_status)
        return Task(id=task_id, status=status, vendor_status=vendor_status)
