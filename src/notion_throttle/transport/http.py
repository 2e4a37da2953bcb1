# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
httpx transport for the Notion REST API.

Requires the 'http' extra:
    pip install notion-throttle[http]
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx
from typing_extensions import Self

from ..types.request import RequestOptions
from ..types.result import TransportResponse

logger = logging.getLogger(__name__)

NOTION_BASE_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


def build_headers(
    credential: str, extra: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Default Notion headers with ``extra`` merged over them."""
    headers = {
        "Authorization": f"Bearer {credential}",
        "Notion-Version": NOTION_VERSION,
        "Content-Type": "application/json",
    }
    if extra:
        headers.update(extra)
    return headers


def _parse_body(text: str) -> tuple[Any | None, str | None]:
    if not text:
        return None, "Empty response"
    try:
        return json.loads(text), None
    except json.JSONDecodeError as e:
        return None, f"JSON parse error: {e}"


class NotionHttpTransport:
    """
    Transport performing one Notion API exchange per call with httpx.

    Never raises for HTTP or network failures: errors are reported in the
    returned TransportResponse so the scheduler's retry policy can classify
    them.

    Example:
        >>> async with NotionHttpTransport() as transport:
        ...     scheduler = ThrottleScheduler(transport)
        ...     result = await scheduler.execute("/users/me", token)
    """

    def __init__(
        self,
        base_url: str = NOTION_BASE_URL,
        timeout: httpx.Timeout | float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            base_url: API root; endpoints are appended to it
            timeout: httpx timeout (default 10 s connect, 30 s total)
            client: Pre-built client (tests pass one with a MockTransport).
                A client passed in is not closed by ``aclose``.
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT
        )

    async def execute(
        self, endpoint: str, credential: str, options: RequestOptions
    ) -> TransportResponse:
        url = f"{self.base_url}{endpoint}"

        try:
            response = await self._client.request(
                options.method,
                url,
                headers=build_headers(credential, options.headers),
                json=options.body,
            )
        except httpx.HTTPError as e:
            logger.debug(f"{options.method} {endpoint} failed: {e!r}")
            return TransportResponse(status=0, error=f"Request failed: {e}")

        status = response.status_code
        headers = dict(response.headers)
        body, parse_error = _parse_body(response.text)

        if status >= 400:
            error = f"HTTP {status}"
            if isinstance(body, Mapping) and body.get("message"):
                error = f"{error}: {body['message']}"
            return TransportResponse(
                status=status, body=body, error=error, headers=headers
            )

        if parse_error is not None and status != 204:
            return TransportResponse(status=status, error=parse_error, headers=headers)

        return TransportResponse(status=status, body=body, headers=headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = [
    "DEFAULT_TIMEOUT",
    "NOTION_BASE_URL",
    "NOTION_VERSION",
    "NotionHttpTransport",
    "build_headers",
]
