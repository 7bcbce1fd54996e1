"""Artifact download: a plain unauthenticated GET streamed to disk."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from mediagen.errors import DownloadError
from mediagen.services.http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


def download_artifact(
    url: str,
    output_path: str | Path,
    *,
    http_client: httpx.Client | None = None,
) -> int:
    """Download `url` into `output_path`, returning the number of bytes written.

    The destination file is only opened once the server has answered 200,
    so an error status never creates or truncates it. A failure mid-stream
    can leave a partial file behind; there is no resume.
    """
    client = http_client or httpx.Client(timeout=DEFAULT_TIMEOUT)
    own_client = http_client is None
    output_path = Path(output_path)

    try:
        with client.stream("GET", url, follow_redirects=True) as response:
            if response.status_code != 200:
                raise DownloadError(f"download failed: HTTP {response.status_code}")

            written = 0
            try:
                with open(output_path, "wb") as f:
                    for chunk in response.iter_bytes(chunk_size=_CHUNK_SIZE):
                        f.write(chunk)
                        written += len(chunk)
            except OSError as e:
                raise DownloadError(f"write file {output_path}: {e}") from e
    except httpx.HTTPError as e:
        raise DownloadError(f"download artifact: {e}") from e
    finally:
        if own_client:
            client.close()

    logger.debug("Downloaded %s -> %s (%d bytes)", url, output_path, written)
    return written
