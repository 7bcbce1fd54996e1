"""JSON-over-HTTP helpers shared by the REST providers.

Maps httpx failures onto the error taxonomy: transport problems become
`TransportError`, non-2xx responses `ProtocolError`, unparsable bodies
`DecodeError`. Vendor business codes are left to each provider.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mediagen.errors import DecodeError, ProtocolError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0

# Cap on raw body text echoed into error messages
_MAX_ERROR_BODY = 2000


def new_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.Client:
    return httpx.Client(timeout=timeout)


def _excerpt(text: str) -> str:
    if len(text) > _MAX_ERROR_BODY:
        return text[:_MAX_ERROR_BODY] + "..."
    return text


def send(
    client: httpx.Client,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send one request; raise on transport error or non-2xx status."""
    try:
        response = client.request(method, url, **kwargs)
    except httpx.RequestError as e:
        raise TransportError(f"http request: {e}") from e

    if not response.is_success:
        raise ProtocolError(
            f"HTTP {response.status_code}: {_excerpt(response.text)}",
            status_code=response.status_code,
        )
    return response


def decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(f"unmarshal response: {e}\nraw: {_excerpt(response.text)}") from e


def request_json(
    client: httpx.Client,
    method: str,
    url: str,
    **kwargs: Any,
) -> dict[str, Any]:
    """Send a request and return the decoded JSON object."""
    response = send(client, method, url, **kwargs)
    data = decode_json(response)
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object, got: {_excerpt(response.text)}")
    logger.debug("%s %s -> %s", method, url, _excerpt(response.text))
    return data


def expect_dict(value: Any, what: str) -> dict[str, Any]:
    """A JSON object field; missing counts as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"{what}: expected an object, got {value!r}")
    return value


def expect_str(value: Any, what: str) -> str:
    """A JSON string field; missing counts as empty."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{what}: expected a string, got {value!r}")
    return value
