"""MarginFi REST client."""
from __future__ import annotations

import logging
from typing import Any

from ...config import UpstreamConfig
from ..http import UpstreamClient, as_records

logger = logging.getLogger(__name__)

MARGINFI_PROGRAM_ID = "MFv2hkuF33JdQmQRoM6GVoU2BfMD3sDdfUh5dCkgQ6z"


class MarginFiClient:
    """MarginFi bank and market endpoints."""

    def __init__(self, config: UpstreamConfig) -> None:
        self._http = UpstreamClient("marginfi", config)

    async def get_banks(self) -> list[dict[str, Any]]:
        return as_records(await self._http.get("/banks"))

    async def get_markets(self) -> list[dict[str, Any]]:
        return as_records(await self._http.get("/markets"))

    async def get_bank_details(self, bank_address: str) -> Any:
        return await self._http.get(f"/banks/{bank_address}")

    async def get_bank_assets(self, bank_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/banks/{bank_address}/assets"))

    async def get_user_account(self, wallet_address: str) -> list[dict[str, Any]]:
        payload = await self._http.get(f"/accounts/{wallet_address}")
        if isinstance(payload, dict) and "data" not in payload:
            return [payload]
        return as_records(payload)

    async def get_user_positions(self, wallet_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/positions/{wallet_address}"))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def create_bank(self, wallet_address: str, bank_data: dict[str, Any]) -> Any:
        logger.info("Creating MarginFi bank for %s", wallet_address)
        return await self._http.post(
            "/banks/create", {"walletAddress": wallet_address, **bank_data}
        )

    async def _bank_action(
        self, action: str, bank: str, asset: str, amount: float
    ) -> Any:
        logger.info("MarginFi %s on bank %s", action, bank)
        return await self._http.post(
            f"/banks/{bank}/{action}", {"assetAddress": asset, "amount": amount}
        )

    async def deposit(self, bank: str, asset: str, amount: float) -> Any:
        return await self._bank_action("deposit", bank, asset, amount)

    async def withdraw(self, bank: str, asset: str, amount: float) -> Any:
        return await self._bank_action("withdraw", bank, asset, amount)

    async def borrow(self, bank: str, asset: str, amount: float) -> Any:
        return await self._bank_action("borrow", bank, asset, amount)

    async def repay(self, bank: str, asset: str, amount: float) -> Any:
        return await self._bank_action("repay", bank, asset, amount)

    async def supply_market(self, market: str, amount: float, token: str) -> Any:
        logger.info("MarginFi supply on market %s", market)
        return await self._http.post(
            f"/markets/{market}/supply", {"amount": amount, "token": token}
        )

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def get_bank_analytics(self, bank_address: str) -> Any:
        return await self._http.get(f"/banks/{bank_address}/analytics")

    async def get_user_analytics(self, wallet_address: str) -> Any:
        return await self._http.get(f"/users/{wallet_address}/analytics")

    async def get_health_factor(self, wallet_address: str) -> Any:
        return await self._http.get(f"/users/{wallet_address}/health-factor")

    async def get_utilization_rates(self, bank_address: str) -> Any:
        return await self._http.get(f"/banks/{bank_address}/utilization")

    async def get_interest_rates(self, bank_address: str) -> Any:
        return await self._http.get(f"/banks/{bank_address}/interest-rates")
