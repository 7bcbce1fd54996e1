"""Google Gemini image generation provider.

generateContent answers synchronously: images come back inline as base64
parts next to any text, so there is no task to poll and nothing to download.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from mediagen.config import ClientConfig
from mediagen.errors import DecodeError, VendorError
from mediagen.models.media import MediaInput
from mediagen.services.http import expect_dict, expect_str, new_client, request_json

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-pro-image-preview"
_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"


@dataclass
class GeminiImageRequest:
    prompt: str
    model: str = DEFAULT_MODEL
    aspect_ratio: str = "1:1"
    image_size: str = "2K"
    reference: MediaInput | None = None
    text_only: bool = False

    def build_body(self) -> dict[str, Any]:
        parts: list[dict[str, Any]] = [{"text": self.prompt}]
        if self.reference and self.reference.is_inline:
            parts.append({
                "inlineData": {
                    "mimeType": self.reference.mime_type,
                    "data": self.reference.data_base64,
                }
            })

        generation_config: dict[str, Any] = {"responseModalities": ["TEXT", "IMAGE"]}
        if not self.text_only:
            image_config: dict[str, str] = {}
            if self.aspect_ratio:
                image_config["aspectRatio"] = self.aspect_ratio
            if self.image_size:
                image_config["imageSize"] = self.image_size
            if image_config:
                generation_config["imageConfig"] = image_config

        return {
            "contents": [{"parts": parts}],
            "generationConfig": generation_config,
        }


@dataclass
class InlineImage:
    mime_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return "jpg" if "jpeg" in self.mime_type else "png"


@dataclass
class GeminiResult:
    texts: list[str] = field(default_factory=list)
    images: list[InlineImage] = field(default_factory=list)
    response_id: str = ""


def parse_response(data: dict[str, Any]) -> GeminiResult:
    """Extract text and images from the first candidate."""
    err = data.get("error")
    if err:
        if not isinstance(err, dict):
            raise VendorError(f"API error: {err}")
        raise VendorError(
            f"API error [{err.get('code')}] {err.get('status', '')}: {err.get('message', '')}",
            code=err.get("code"),
        )

    candidates = data.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        raise DecodeError("no candidates in response")

    result = GeminiResult(response_id=expect_str(data.get("responseId"), "responseId"))
    content = expect_dict(expect_dict(candidates[0], "candidate").get("content"), "candidate content")
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise DecodeError(f"candidate parts: expected a list, got {parts!r}")
    for part in parts:
        part = expect_dict(part, "content part")
        if part.get("text"):
            result.texts.append(part["text"])
        inline = expect_dict(part.get("inlineData") or part.get("inline_data"), "inlineData")
        if not inline:
            continue
        mime_type = expect_str(inline.get("mimeType") or inline.get("mime_type"), "mimeType")
        if not mime_type.startswith("image/"):
            continue
        encoded = expect_str(inline.get("data"), "inline data")
        try:
            result.images.append(InlineImage(mime_type, base64.b64decode(encoded)))
        except (binascii.Error, ValueError) as e:
            logger.error("Error decoding image: %s", e)
    return result


def image_output_paths(
    images: list[InlineImage],
    output: str | None,
    now: datetime | None = None,
) -> list[Path]:
    """Destination for every image.

    An explicit output names the first image; further ones get `_<n>`
    before the extension. Without one, paths are timestamped.
    """
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    paths: list[Path] = []
    for index, image in enumerate(images, start=1):
        if output:
            base = Path(output)
            paths.append(base if index == 1 else base.with_name(f"{base.stem}_{index}{base.suffix}"))
        else:
            paths.append(Path(f"output_{stamp}_{index}.{image.extension}"))
    return paths


class GeminiImageProvider:
    """Image generation over the Gemini REST API (x-goog-api-key auth)."""

    provider_name = "gemini"

    def __init__(self, config: ClientConfig, *, http_client: httpx.Client | None = None) -> None:
        if not config.api_key:
            raise ValueError("Gemini API key is required")
        self.config = config
        self._client = http_client or new_client(config.http_timeout)
        self._own_client = http_client is None

    def close(self) -> None:
        if self._own_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def generate(self, request: GeminiImageRequest) -> GeminiResult:
        endpoint = (self.config.base_url or _DEFAULT_ENDPOINT).rstrip("/")
        model = request.model or DEFAULT_MODEL
        url = f"{endpoint}/models/{model}:generateContent"

        logger.info("Generating with model %s...", model)
        data = request_json(
            self._client,
            "POST",
            url,
            json=request.build_body(),
            headers={"x-goog-api-key": self.config.api_key},
        )
        return parse_response(data)

    def save_images(self, result: GeminiResult, output: str | None = None) -> list[tuple[Path, int]]:
        """Write every returned image; returns (path, size) per saved file."""
        saved: list[tuple[Path, int]] = []
        for image, path in zip(result.images, image_output_paths(result.images, output)):
            try:
                path.write_bytes(image.data)
            except OSError as e:
                logger.error("Error saving image %s: %s", path, e)
                continue
            logger.info("Image saved: %s (%d bytes)", path, len(image.data))
            saved.append((path, len(image.data)))
        return saved
