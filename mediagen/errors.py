"""Error taxonomy for provider calls.

Every failure a CLI can hit while talking to a vendor derives from
`MediaGenError`, so callers only need a single except clause.
"""

from __future__ import annotations


class MediaGenError(Exception):
    """Base class for all provider, polling and download failures."""


class TransportError(MediaGenError):
    """Network / DNS / client-side timeout."""


class ProtocolError(MediaGenError):
    """Non-2xx HTTP response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(MediaGenError):
    """Response body is not the JSON we expected."""


class VendorError(MediaGenError):
    """2xx response carrying a vendor error code."""

    def __init__(self, message: str, code: str | int | None = None):
        super().__init__(message)
        self.code = code


class TaskFailedError(MediaGenError):
    """The remote task reached the failed state."""


class TaskTimeoutError(MediaGenError):
    """Deadline or attempt cap reached while the task was still in progress."""

    def __init__(self, message: str, last_status: str | None = None):
        super().__init__(message)
        self.last_status = last_status


class MissingArtifactError(MediaGenError):
    """Task reported done but carried no artifact URL."""


class DownloadError(MediaGenError):
    """Artifact could not be fetched or written to disk."""


class UploadError(MediaGenError):
    """Source media upload was not confirmed by the backend."""
