"""TopView video avatar provider.

Source media has to be uploaded before a task can reference it:
  GET  /upload/credential → PUT bytes to the signed URL → GET /upload/check
Then the usual task flow:
  POST /video_avatar/task/submit → GET /video_avatar/task/query → download

Query errors during polling are logged and retried; the attempt cap bounds
how long that can go on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mediagen.errors import DecodeError, ProtocolError, TransportError, UploadError, VendorError
from mediagen.models.media import guess_content_type
from mediagen.models.task import Task, TaskStatus
from mediagen.services.http import expect_str, request_json, send
from mediagen.services.poller import PollPolicy, wait_until_ready
from mediagen.services.providers.base import BaseTaskProvider

logger = logging.getLogger(__name__)

_DEFAULT_ENDPOINT = "https://api.topview.ai/v1"
SUCCESS_CODE = "200"

UPLOAD_CHECK_INTERVAL = 2.0
UPLOAD_CHECK_ATTEMPTS = 10

TOPVIEW_STATUS_TABLE = {
    "pending": TaskStatus.PENDING,
    "queued": TaskStatus.PENDING,
    "waiting": TaskStatus.PENDING,
    "processing": TaskStatus.RUNNING,
    "running": TaskStatus.RUNNING,
    "done": TaskStatus.DONE,
    "completed": TaskStatus.DONE,
    "success": TaskStatus.DONE,
    "failed": TaskStatus.FAILED,
    "error": TaskStatus.FAILED,
}

# Submit field values
_AVATAR_SOURCE_LOCAL_PHOTO = "3"
_AUDIO_SOURCE_UPLOADED = "0"
_MODE_AVATAR4 = "2"

_IMAGE_FORMATS = {".png": "png", ".webp": "webp"}
_AUDIO_FORMATS = {".wav": "wav", ".m4a": "m4a", ".aac": "aac"}


def image_format(filename: str) -> str:
    return _IMAGE_FORMATS.get(Path(filename).suffix.lower(), "jpg")


def audio_format(filename: str) -> str:
    return _AUDIO_FORMATS.get(Path(filename).suffix.lower(), "mp3")


@dataclass
class UploadCredential:
    file_id: str
    upload_url: str
    file_name: str = ""


@dataclass
class AvatarRequest:
    """Local portrait image and audio files."""
    image_path: str
    audio_path: str


class TopViewAvatarProvider(BaseTaskProvider[AvatarRequest]):
    """Talking avatar video generation (avatar4 mode)."""

    provider_name = "topview"
    status_table = TOPVIEW_STATUS_TABLE
    poll_policy = PollPolicy(interval=5.0, timeout=600.0, max_attempts=120, retry_on_error=True)

    @property
    def _endpoint(self) -> str:
        return (self.config.base_url or _DEFAULT_ENDPOINT).rstrip("/")

    def _headers(self) -> dict[str, str]:
        if not self.config.api_key:
            raise ValueError("TopView API key is required")
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        if self.config.uid:
            headers["Topview-Uid"] = self.config.uid
        return headers

    def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        """Call the TopView API and unwrap the `result` field of its envelope."""
        data = request_json(self._client, method, f"{self._endpoint}{path}", headers=self._headers(), **kwargs)
        code = str(data.get("code", ""))
        if code != SUCCESS_CODE:
            raise VendorError(f"TopView API error: {data.get('message', '')} (code: {code})", code=code)
        return data.get("result")

    # --- upload pre-flight ---

    def get_upload_credential(self, fmt: str) -> UploadCredential:
        result = self._call("GET", "/upload/credential", params={"format": fmt})
        if not isinstance(result, dict) or not result.get("fileId") or not result.get("uploadUrl"):
            raise DecodeError(f"parse credential: unexpected result {result!r}")
        return UploadCredential(
            file_id=result["fileId"],
            upload_url=result["uploadUrl"],
            file_name=result.get("fileName", ""),
        )

    def put_object(self, upload_url: str, data: bytes, content_type: str) -> None:
        headers = {"Content-Type": content_type} if content_type else {}
        try:
            send(self._client, "PUT", upload_url, content=data, headers=headers)
        except (ProtocolError, TransportError) as e:
            raise UploadError(f"upload failed: {e}") from e

    def check_upload(self, file_id: str) -> bool:
        result = self._call("GET", "/upload/check", params={"fileId": file_id})
        if not isinstance(result, bool):
            raise DecodeError(f"parse result: expected boolean, got {result!r}")
        return result

    def upload_file(self, data: bytes, fmt: str, content_type: str) -> str:
        """Upload bytes and wait for the backend to confirm; returns the file id."""
        cred = self.get_upload_credential(fmt)
        self.put_object(cred.upload_url, data, content_type)
        wait_until_ready(
            lambda: self.check_upload(cred.file_id),
            interval=UPLOAD_CHECK_INTERVAL,
            max_attempts=UPLOAD_CHECK_ATTEMPTS,
            label=f"upload {cred.file_id}",
            sleep=self._sleep,
        )
        return cred.file_id

    def upload_path(self, path: str, fmt: str) -> str:
        data = Path(path).read_bytes()
        return self.upload_file(data, fmt, guess_content_type(path))

    # --- task flow ---

    def submit_files(self, image_file_id: str, audio_file_id: str) -> Task:
        body = {
            "avatarSourceFrom": _AVATAR_SOURCE_LOCAL_PHOTO,
            "imageFileId": image_file_id,
            "audioSourceFrom": _AUDIO_SOURCE_UPLOADED,
            "audioFileId": audio_file_id,
            "modeType": _MODE_AVATAR4,
        }
        result = self._call("POST", "/video_avatar/task/submit", json=body)
        if not isinstance(result, dict) or not result.get("taskId"):
            raise DecodeError(f"parse submit result: no taskId in {result!r}")
        return Task(id=result["taskId"], status=TaskStatus.PENDING)

    def submit(self, request: AvatarRequest) -> Task:
        logger.info("Uploading image to TopView...")
        image_id = self.upload_path(request.image_path, image_format(request.image_path))
        logger.info("Image uploaded: fileId=%s", image_id)

        logger.info("Uploading audio to TopView...")
        audio_id = self.upload_path(request.audio_path, audio_format(request.audio_path))
        logger.info("Audio uploaded: fileId=%s", audio_id)

        logger.info("Submitting video avatar task...")
        return self.submit_files(image_id, audio_id)

    def query(self, task_id: str) -> Task:
        result = self._call("GET", "/video_avatar/task/query", params={"taskId": task_id})
        if not isinstance(result, dict):
            raise DecodeError(f"parse query result: unexpected result {result!r}")

        vendor_status = expect_str(result.get("status"), "status")
        status = self.normalize(vendor_status)
        if status is TaskStatus.DONE:
            return Task.done(task_id, expect_str(result.get("outputVideoUrl"), "outputVideoUrl"), vendor_status)
        if status is TaskStatus.FAILED:
            return Task.failed(task_id, result.get("errorMsg") or "unknown error", vendor_status)
        return Task(id=task_id, status=status, vendor_status=vendor_status)
