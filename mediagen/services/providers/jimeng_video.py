"""Jimeng (Volcano Engine Visual) video generation provider.

Requests are signed with an AccessKey/SecretKey pair by the volcengine SDK.

Supports:
- jimeng 3.0 Pro text-to-video and image-to-video (first / first+last frame)
- jimeng action imitation 2.0 (person image + template video)
- jimeng OmniHuman 1.5 (portrait image + audio)

All of them speak the same envelope: `code == 10000` on success, task
status under `data.status`, result under `data.video_url`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from volcengine.visual.VisualService import VisualService

from mediagen.config import ClientConfig
from mediagen.errors import DecodeError, ProtocolError, VendorError
from mediagen.models.media import MediaInput
from mediagen.models.task import Task, TaskStatus
from mediagen.services.http import expect_dict, expect_str
from mediagen.services.poller import PollPolicy
from mediagen.services.providers.base import BaseTaskProvider

logger = logging.getLogger(__name__)

SUCCESS_CODE = 10000
DEFAULT_FRAMES = 121  # 5 seconds

JIMENG_STATUS_TABLE = {
    "processing": TaskStatus.PENDING,
    "in_queue": TaskStatus.PENDING,
    "generating": TaskStatus.RUNNING,
    "done": TaskStatus.DONE,
    "not_found": TaskStatus.FAILED,
    "expired": TaskStatus.FAILED,
}

# Visual API families
API_SYNC2ASYNC = "sync2async"  # CVSync2AsyncSubmitTask / CVSync2AsyncGetResult
API_ASYNC = "async"            # CVSubmitTask / CVGetResult

_AIGC_META = json.dumps({
    "aigc_meta": {
        "content_producer": "001191440300192203821610000",
        "producer_id": "producer_id_test123",
        "content_propagator": "001191440300192203821610000",
        "propagate_id": "propagate_id_test123",
    },
})


@dataclass(frozen=True)
class JimengModel:
    name: str
    req_key: str
    api: str = API_SYNC2ASYNC
    query_req_json: str | None = None


JIMENG_MODELS: dict[str, JimengModel] = {
    m.name: m
    for m in (
        JimengModel("jimeng-t2v-3-pro", "jimeng_t2v_v30_pro"),
        JimengModel("jimeng-i2v-3-pro", "jimeng_ti2v_v30_pro"),
        JimengModel("jimeng-i2v-startend-3-pro", "jimeng_ti2v_v30_pro"),
        JimengModel(
            "jimeng-action-imitation-v2",
            "jimeng_dreamactor_m20_gen_video",
            query_req_json=_AIGC_META,
        ),
        JimengModel("jimeng-omnihuman", "jimeng_realman_avatar_picture_omni_v15", api=API_ASYNC),
    )
}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass
class JimengVideoRequest:
    """Text/image-to-video (3.0 Pro)."""
    prompt: str
    first_frame: MediaInput | None = None
    end_frame: MediaInput | None = None
    aspect_ratio: str = "16:9"
    frames: int = 0
    seed: int = 0

    def build_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"prompt": self.prompt}

        image_urls: list[str] = []
        base64_data: list[str] = []
        for frame in (self.first_frame, self.end_frame):
            if frame is None or frame.is_empty:
                continue
            if frame.is_inline:
                base64_data.append(frame.data_base64)
            else:
                image_urls.append(frame.url)

        if base64_data:
            body["binary_data_base64"] = base64_data
        if image_urls:
            body["image_urls"] = image_urls
        if self.seed != 0:
            body["seed"] = self.seed
        if self.aspect_ratio:
            body["aspect_ratio"] = self.aspect_ratio
        body["frames"] = self.frames if self.frames > 0 else DEFAULT_FRAMES
        return body


@dataclass
class ActionImitationRequest:
    """Person image + template video."""
    image: MediaInput
    video_url: str
    cut_first_second: bool | None = None

    def build_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"video_url": self.video_url}
        if self.image.is_inline:
            body["binary_data_base64"] = [self.image.data_base64]
        elif self.image.url:
            body["image_urls"] = [self.image.url]
        # Server default is true; only sent when set explicitly
        if self.cut_first_second is not None:
            body["cut_result_first_second_switch"] = self.cut_first_second
        return body


@dataclass
class OmniHumanRequest:
    """Portrait image + audio (< 60s)."""
    image: MediaInput
    audio_url: str
    prompt: str = ""
    seed: int = 0
    output_resolution: int = 0
    fast_mode: bool = False

    def build_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"audio_url": self.audio_url}
        if self.image.is_inline:
            body["binary_data_base64"] = [self.image.data_base64]
        elif self.image.url:
            body["image_url"] = self.image.url
        if self.prompt:
            body["prompt"] = self.prompt
        if self.seed != 0:
            body["seed"] = self.seed
        if self.output_resolution in (720, 1080):
            body["output_resolution"] = self.output_resolution
        if self.fast_mode:
            body["pe_fast_mode"] = True
        return body


JimengRequest = Union[JimengVideoRequest, ActionImitationRequest, OmniHumanRequest]


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

def new_visual_client(access_key_id: str, secret_access_key: str) -> VisualService:
    if not access_key_id or not secret_access_key:
        raise ValueError("Jimeng access keys are required")
    visual = VisualService()
    visual.set_ak(access_key_id)
    visual.set_sk(secret_access_key)
    return visual


def _shorten(prompt: str, limit: int = 80) -> str:
    return prompt if len(prompt) <= limit else prompt[:limit] + "..."


class JimengProvider(BaseTaskProvider[JimengRequest]):
    """One Jimeng model behind the Volcano Visual task API."""

    provider_name = "jimeng"
    status_table = JIMENG_STATUS_TABLE
    poll_policy = PollPolicy(interval=5.0, timeout=300.0)

    def __init__(
        self,
        config: ClientConfig,
        model: JimengModel | str,
        *,
        visual: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, **kwargs)
        if isinstance(model, str):
            if model not in JIMENG_MODELS:
                raise ValueError(f"Unknown Jimeng model: {model}")
            model = JIMENG_MODELS[model]
        self.model = model
        self._visual = visual or new_visual_client(config.access_key_id, config.secret_access_key)

    def _call(self, action: str, body: dict[str, Any]) -> dict[str, Any]:
        if self.model.api == API_ASYNC:
            method = self._visual.cv_submit_task if action == "submit" else self._visual.cv_get_result
        else:
            method = (
                self._visual.cv_sync2async_submit_task
                if action == "submit"
                else self._visual.cv_sync2async_get_result
            )
        try:
            resp = method(body)
        except Exception as e:  # the SDK raises bare Exception for non-200 responses
            raise ProtocolError(f"{action} task: {e}") from e

        logger.debug("Jimeng %s (%s): %s", action, self.model.req_key, resp)
        if not isinstance(resp, dict):
            raise DecodeError(f"unexpected {action} response: {resp!r}")
        return resp

    def submit(self, request: JimengRequest) -> Task:
        body = {"req_key": self.model.req_key, **request.build_body()}
        logger.info(
            "[jimeng] Submitting task: req_key=%s, prompt=%s",
            self.model.req_key, _shorten(body.get("prompt", "")),
        )

        resp = self._call("submit", body)
        code = resp.get("code")
        if code != SUCCESS_CODE:
            raise VendorError(f"API error: code={code}, message={resp.get('message', '')}", code=code)

        task_id = expect_str(expect_dict(resp.get("data"), "data").get("task_id"), "task_id")
        if not task_id:
            raise DecodeError(f"no task ID in response: {resp}")

        return Task(id=task_id, status=TaskStatus.PENDING)

    def query(self, task_id: str) -> Task:
        body: dict[str, Any] = {"req_key": self.model.req_key, "task_id": task_id}
        if self.model.query_req_json:
            body["req_json"] = self.model.query_req_json

        resp = self._call("query", body)
        message = resp.get("message") or ""

        # Business error on a 200 response ends the task
        if resp.get("code") != SUCCESS_CODE:
            return Task.failed(task_id, message or f"code={resp.get('code')}")

        data = expect_dict(resp.get("data"), "data")
        vendor_status = expect_str(data.get("status"), "status")
        status = self.normalize(vendor_status)

        if status is TaskStatus.DONE:
            return Task.done(task_id, expect_str(data.get("video_url"), "video_url"), vendor_status)
        if status is TaskStatus.FAILED:
            return Task.failed(task_id, f"task {vendor_status}", vendor_status)
        return Task(id=task_id, status=status, vendor_status=vendor_status)
