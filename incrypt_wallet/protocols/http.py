"""Shared aiohttp JSON client for upstream REST services."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import UpstreamConfig
from ..errors import UpstreamRequestFailed

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Thin JSON GET/POST wrapper bound to one upstream base URL.

    Every request is a single attempt bounded by the configured timeout.
    Any transport failure, timeout or non-2xx status is raised as
    :class:`UpstreamRequestFailed`.
    """

    def __init__(self, service: str, config: UpstreamConfig) -> None:
        self.service = service
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self.headers: dict[str, str] = {"Accept": "application/json"}
        if config.api_key:
            self.headers["Authorization"] = f"Bearer {config.api_key}"

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        url = self._url(path)
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(
                connector=connector, headers=self.headers
            ) as session:
                async with session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if not 200 <= response.status < 300:
                        raise UpstreamRequestFailed(
                            self.service, path, f"HTTP {response.status}"
                        )
                    return await response.json(content_type=None)
        except UpstreamRequestFailed as e:
            logger.error("%s", e)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            reason = str(e) or type(e).__name__
            logger.error("%s %s %s failed: %s", self.service, method, path, reason)
            raise UpstreamRequestFailed(self.service, path, reason) from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: Any = None) -> Any:
        return await self.request("POST", path, payload=payload)


def as_records(payload: Any, *keys: str) -> list[dict[str, Any]]:
    """Extract a list of records from an upstream payload.

    Upstreams return either a bare JSON list or an object wrapping the list
    under one of ``keys`` (``data`` by default).
    """
    if payload is None:
        return []
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if isinstance(payload, dict):
        for key in keys or ("data",):
            value = payload.get(key)
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
    logger.debug("Unexpected payload shape: %s", type(payload).__name__)
    return []
