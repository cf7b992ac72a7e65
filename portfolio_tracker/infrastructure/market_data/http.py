"""
Shared JSON-over-HTTP helper for upstream market data APIs.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Non-2xx status, transport failure or undecodable body"""


async def fetch_json(url: str, params: Optional[dict] = None, timeout: float = 10.0) -> Any:
    """
    GET ``url`` and decode the JSON body.

    Raises:
        UpstreamError: on transport errors, timeouts, non-200 status or bad JSON
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url, params=params)
    except httpx.HTTPError as exc:
        raise UpstreamError(f"request to {url} failed: {exc!r}") from exc

    if response.status_code != 200:
        logger.debug(f"Upstream {url} returned {response.status_code}: {response.text}")
        raise UpstreamError(f"{url} returned HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(f"{url} returned invalid JSON") from exc
