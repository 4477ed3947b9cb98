"""
Shared helpers for talking to Salla over httpx.
"""
import json
from typing import Any, Dict

import httpx
import structlog

from salla_oauth.exceptions import MalformedResponseError, TransportError

logger = structlog.get_logger()


async def send(client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
    """
    Issue one request. Connection-level failures become TransportError.

    HTTP error statuses are returned as-is; callers decide what they mean.
    """
    try:
        return await client.request(method, url, **kwargs)
    except httpx.TransportError as exc:
        logger.warning("provider_unreachable", method=method, url=url, error=str(exc))
        raise TransportError(f"{method} {url} failed: {exc}") from exc


def parse_json(response: httpx.Response) -> Any:
    """Decode a response body, raising MalformedResponseError for non-JSON."""
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponseError(
            f"Expected JSON from {response.request.url}, got {response.headers.get('content-type', 'unknown content')}",
            body=response.text[:500],
        ) from exc


def parse_json_object(response: httpx.Response) -> Dict[str, Any]:
    """Like parse_json, but the body must be a JSON object."""
    payload = parse_json(response)
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Expected a JSON object from {response.request.url}, got {type(payload).__name__}",
            body=response.text[:500],
        )
    return payload
