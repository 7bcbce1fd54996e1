"""Declarative model registry, one per CLI tool.

Each entry lists a model's capabilities and the generate flags it accepts,
and is printed verbatim by the `models` subcommand.

Usage:
    from mediagen.services.model_registry import ARK_REGISTRY
    ARK_REGISTRY.find_model("doubao-seedance-1-5-pro-251215")
    print(ARK_REGISTRY.to_json())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelParam:
    """One generate flag accepted by a model."""
    description: str
    type: str = "string"
    options: tuple[str, ...] = ()
    default: str = ""
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"description": self.description, "type": self.type}
        if self.options:
            out["options"] = list(self.options)
        if self.default:
            out["default"] = self.default
        if self.required:
            out["required"] = True
        return out


@dataclass(frozen=True)
class ModelInfo:
    """Capability descriptor for a single model."""
    name: str
    description: str
    capabilities: tuple[str, ...]
    params: dict[str, ModelParam] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "capabilities": list(self.capabilities),
        }
        if self.params:
            out["params"] = {k: p.to_dict() for k, p in sorted(self.params.items())}
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Registry class
# ---------------------------------------------------------------------------

class ModelRegistry:
    """In-memory list of the models one CLI tool supports."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        self._models: dict[str, ModelInfo] = {}

    def register(self, model: ModelInfo) -> None:
        self._models[model.name] = model

    def find_model(self, name: str) -> ModelInfo | None:
        return self._models.get(name)

    def list_models(self) -> list[ModelInfo]:
        return list(self._models.values())

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "models": [m.to_dict() for m in self._models.values()],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _merge(base: dict[str, ModelParam], extra: dict[str, ModelParam]) -> dict[str, ModelParam]:
    return {**base, **extra}


# ---------------------------------------------------------------------------
# Shared parameter blocks
# ---------------------------------------------------------------------------

_VIDEO_RATIOS = ("16:9", "9:16", "1:1", "4:3", "3:4", "21:9")

_JIMENG_COMMON = {
    "ratio": ModelParam("Aspect ratio of the generated video", options=_VIDEO_RATIOS, default="16:9"),
    "frames": ModelParam("Total frames: 121 for 5 seconds, 241 for 10 seconds", options=("121", "241"), default="121"),
    "seed": ModelParam("Random seed (-1 for random)", type="integer", default="-1"),
}

_FIRST_FRAME = {
    "image": ModelParam("First frame image URL"),
    "image-file": ModelParam("First frame image from local file (auto base64-encoded)"),
}

_END_FRAME = {
    "end-image": ModelParam("Last frame image URL"),
    "end-image-file": ModelParam("Last frame image from local file (auto base64-encoded)"),
}


# ================== ark-cli ==================

ARK_REGISTRY = ModelRegistry("ark-cli")

ARK_REGISTRY.register(ModelInfo(
    "doubao-seedance-1-5-pro-251215",
    "Video generation from text or image prompts using Seedance 1.5 Pro",
    ("text-to-video", "image-to-video"),
    {
        "duration": ModelParam("Video duration in seconds", options=("5", "10"), default="5"),
        "resolution": ModelParam("Video resolution", options=("720p", "1080p"), default="720p"),
        "ratio": ModelParam("Aspect ratio of the generated video", options=_VIDEO_RATIOS, default="16:9"),
        "audio": ModelParam("Whether to generate audio", options=("true", "false"), default="true"),
        **_FIRST_FRAME,
    },
))

ARK_REGISTRY.register(ModelInfo(
    "jimeng-t2v-3-pro",
    "即梦视频生成 3.0 Pro - 文生视频 (text-to-video)",
    ("text-to-video",),
    _JIMENG_COMMON,
))

ARK_REGISTRY.register(ModelInfo(
    "jimeng-i2v-3-pro",
    "即梦视频生成 3.0 Pro - 图生视频（首帧模式）(image-to-video, first frame)",
    ("image-to-video",),
    _merge(_JIMENG_COMMON, _FIRST_FRAME),
))

ARK_REGISTRY.register(ModelInfo(
    "jimeng-i2v-startend-3-pro",
    "即梦视频生成 3.0 Pro - 图生视频（首尾帧模式）(image-to-video, start+end frames)",
    ("image-to-video",),
    _merge(_merge(_JIMENG_COMMON, _FIRST_FRAME), _END_FRAME),
))


# ================== gemini-cli ==================

GEMINI_REGISTRY = ModelRegistry("gemini-cli")

_GEMINI_SIZE = ModelParam("Image resolution", options=("1K", "2K", "4K"), default="2K")

GEMINI_REGISTRY.register(ModelInfo(
    "gemini-3-pro-image-preview",
    "Image generation and editing from text prompts, returns both text and image",
    ("text-to-image", "text"),
    {
        "ratio": ModelParam(
            "Aspect ratio of the generated image",
            options=("1:1", "16:9", "9:16", "4:3", "3:4"),
            default="1:1",
        ),
        "size": _GEMINI_SIZE,
    },
))

GEMINI_REGISTRY.register(ModelInfo(
    "gemini-3.1-flash-image-preview",
    "Fast and cost-efficient image generation, supports more aspect ratios and image search grounding",
    ("text-to-image", "text"),
    {
        "ratio": ModelParam(
            "Aspect ratio of the generated image",
            options=("1:1", "16:9", "9:16", "4:3", "3:4", "2:3", "3:2", "4:5", "5:4",
                     "1:4", "4:1", "1:8", "8:1", "21:9"),
            default="1:1",
        ),
        "size": _GEMINI_SIZE,
    },
))


# ================== jimeng-cli ==================

JIMENG_REGISTRY = ModelRegistry("jimeng-cli")

JIMENG_REGISTRY.register(ModelInfo(
    "jimeng-action-imitation-v2",
    "Jimeng Action Imitation 2.0 - generate video by imitating actions from a "
    "template video onto a person image (即梦动作模仿2.0)",
    ("image+video-to-video",),
    {
        "image": ModelParam("Person image URL"),
        "image-file": ModelParam("Person image from local file (auto base64-encoded)"),
        "video": ModelParam("Template video URL with actions to imitate (required)", required=True),
        "cut-first-second": ModelParam(
            "Whether to cut the first second of result video", type="boolean", default="true",
        ),
    },
))

JIMENG_REGISTRY.register(ModelInfo(
    "jimeng-omnihuman",
    "Jimeng OmniHuman 1.5 - generate talking-head video from a portrait image and audio (即梦OmniHuman1.5)",
    ("image+audio-to-video",),
    {
        "image": ModelParam("Portrait image URL"),
        "image-file": ModelParam("Portrait image from local file (auto base64-encoded)"),
        "audio": ModelParam("Audio URL, must be under 60 seconds (required)", required=True),
        "resolution": ModelParam("Output video resolution", options=("720", "1080"), default="1080"),
        "fast-mode": ModelParam("Enable fast mode (trades quality for speed)", type="boolean", default="false"),
        "seed": ModelParam("Random seed (-1 for random)", type="integer", default="-1"),
    },
))


# ================== topview-cli ==================

TOPVIEW_REGISTRY = ModelRegistry("topview-cli")

TOPVIEW_REGISTRY.register(ModelInfo(
    "topview-video-avatar",
    "Generate video avatar using TopView AI. Upload a portrait image and audio "
    "to create a talking avatar video.",
    ("image-audio-to-video", "video-avatar"),
    {
        "image": ModelParam("Path to portrait image file (jpg, png, webp)", required=True),
        "audio": ModelParam("Path to audio file (mp3, wav, m4a, aac)", required=True),
    },
))
