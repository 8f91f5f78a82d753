"""Rugcheck REST client — token and pool safety checks."""
from __future__ import annotations

from typing import Any

from ...config import UpstreamConfig
from ..http import UpstreamClient

# Component name → endpoint template. Each returns an object with a numeric
# ``score`` (0-100) when the check is available for the token.
SAFETY_COMPONENTS: dict[str, str] = {
    "honeypot": "/tokens/honeypot/solana/{mint}",
    "liquidity": "/tokens/liquidity/solana/{mint}",
    "contract": "/tokens/source-code/solana/{mint}",
    "social": "/tokens/social/solana/{mint}",
    "volume": "/tokens/volume/solana/{mint}",
    "developer": "/tokens/developer-activity/solana/{mint}",
    "community": "/tokens/community-trust/solana/{mint}",
}


class RugcheckClient:
    """Rugcheck token safety endpoints."""

    def __init__(self, config: UpstreamConfig) -> None:
        self._http = UpstreamClient("rugcheck", config)

    async def scan_token(self, mint: str) -> Any:
        return await self._http.get(f"/tokens/scan/solana/{mint}")

    async def scan_pool(self, pool_address: str) -> Any:
        return await self._http.get(f"/pools/scan/solana/{pool_address}")

    async def get_component(self, component: str, mint: str) -> Any:
        return await self._http.get(SAFETY_COMPONENTS[component].format(mint=mint))

    async def get_wallet_risk(self, wallet_address: str) -> Any:
        return await self._http.get(f"/wallets/risk-rating/solana/{wallet_address}")
