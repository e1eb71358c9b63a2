"""Shared httpx helpers for the remote clients."""

import logging
from typing import Any, Optional

import httpx

from cashbook.domain.errors import RemoteRejected, RemoteUnavailable

logger = logging.getLogger(__name__)

# Statuses worth retrying later rather than reporting to the user as a refusal.
TRANSIENT_STATUSES = frozenset({408, 425, 429})


def build_client(base_url: str, timeout: float, client: Optional[httpx.Client] = None) -> httpx.Client:
    if client is not None:
        return client
    return httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)


def error_message(response: httpx.Response) -> str:
    """Pull the most useful message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error", "hint"):
            if body.get(key):
                return str(body[key])
    return response.text or response.reason_phrase


def send(client: httpx.Client, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """Send a request, translating failures into remote error types.

    Raises:
        RemoteUnavailable: On transport errors, timeouts and transient statuses
        RemoteRejected: On any other non-success status
    """
    try:
        response = client.request(method, url, **kwargs)
    except httpx.TransportError as e:
        logger.info("%s %s failed: %s", method, url, e)
        raise RemoteUnavailable(f"Cannot reach server: {e}") from e

    if response.is_success:
        return response

    message = error_message(response)
    logger.info("%s %s returned %s: %s", method, url, response.status_code, message)
    if response.status_code >= 500 or response.status_code in TRANSIENT_STATUSES:
        raise RemoteUnavailable(f"Server error ({response.status_code}): {message}")
    raise RemoteRejected(message)


def json_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise RemoteRejected(f"Malformed server response: {e}") from e
