"""Reference media supplied to a generation request."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path

_EXTRA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/m4a",
    ".aac": "audio/aac",
    ".mp4": "video/mp4",
}


def guess_content_type(filename: str) -> str:
    """Content type from file extension, `application/octet-stream` if unknown."""
    ext = Path(filename).suffix.lower()
    if ext in _EXTRA_TYPES:
        return _EXTRA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


@dataclass(frozen=True)
class MediaInput:
    """One media slot: a remote URL, inline base64 data, or both.

    When both are set the inline data wins.
    """

    url: str = ""
    data_base64: str = ""
    mime_type: str = "image/png"

    @classmethod
    def from_file(cls, path: str | Path, url: str = "") -> "MediaInput":
        path = Path(path)
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        return cls(url=url, data_base64=encoded, mime_type=guess_content_type(path.name))

    @classmethod
    def from_args(cls, url: str | None = None, file: str | None = None) -> "MediaInput | None":
        """Build from a `--x` / `--x-file` flag pair; None if neither was given."""
        if file:
            return cls.from_file(file, url=url or "")
        if url:
            return cls(url=url)
        return None

    @property
    def is_inline(self) -> bool:
        return bool(self.data_base64)

    @property
    def is_empty(self) -> bool:
        return not (self.url or self.data_base64)

    def as_data_url(self) -> str:
        """Inline data as a `data:` URL, else the remote URL."""
        if self.data_base64:
            return f"data:{self.mime_type};base64,{self.data_base64}"
        return self.url
