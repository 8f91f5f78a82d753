"""DexScreener REST client — token pairs and search."""
from __future__ import annotations

from typing import Any

from ...config import UpstreamConfig
from ..http import UpstreamClient, as_records


class DexScreenerClient:
    """DexScreener market data endpoints."""

    def __init__(self, config: UpstreamConfig) -> None:
        self._http = UpstreamClient("dexscreener", config)

    async def get_token_pairs(self, token_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/tokens/{token_address}"), "pairs")

    async def get_pair(self, pair_address: str) -> Any:
        return await self._http.get(f"/pairs/{pair_address}")

    async def search(self, query: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get("/search", params={"q": query}), "pairs")

    async def get_latest_token_profiles(self) -> list[dict[str, Any]]:
        return as_records(await self._http.get("/token-profiles/latest/v1"))
