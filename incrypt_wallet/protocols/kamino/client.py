"""Kamino Finance REST client for lend markets, vaults and liquidity."""
from __future__ import annotations

import logging
from typing import Any

from ...config import UpstreamConfig
from ..http import UpstreamClient, as_records

logger = logging.getLogger(__name__)

KAMINO_PROGRAMS: dict[str, str] = {
    "LEND": "GzFgdRJXmawPhGeBsyRCDLx4jAKPsvbUqoqitzppkzkW",
    "LIQUIDITY": "E35i5qn7872eEmBt15e5VGhziUBzCTm43XCSWvDoQNNv",
    "VAULTS": "Cyjb5r4P1j1YPEyUemWxMZKbTpBiyNQML1S1YpPvi9xE",
    "MULTISIG_LEND": "6hhBGCtmg7tPWUSgp3LG6X2rsmYWAc4tNsA6G4CnfQbM",
    "MULTISIG_LIQUIDITY": "BccSdKrSsjw4XKKjTPKak2wur1C9dMX3tmXoFwFAU7oh",
    "MULTISIG_VAULTS": "8ksXVE6SMSjQ9sPbj2XQ4Uxx6b7aXh9kHeq4nXMD2tDn",
    "IDL": "6LtLpnUFNByNXLyCoK9wA2MykKAmQNZKBdY8s47dehDc",
}


class KaminoClient:
    """Kamino Lend, Vaults and Liquidity endpoints."""

    def __init__(self, config: UpstreamConfig) -> None:
        self._http = UpstreamClient("kamino", config)

    @staticmethod
    def program_id(program_type: str) -> str | None:
        return KAMINO_PROGRAMS.get(program_type)

    # ------------------------------------------------------------------
    # Markets
    # ------------------------------------------------------------------

    async def get_lend_markets(self) -> list[dict[str, Any]]:
        return as_records(await self._http.get("/lend/markets"))

    async def get_lend_market_details(self, market_address: str) -> Any:
        return await self._http.get(f"/lend/markets/{market_address}")

    async def get_lend_reserves(self, market_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/lend/markets/{market_address}/reserves"))

    async def get_vaults(self) -> list[dict[str, Any]]:
        return as_records(await self._http.get("/vaults"))

    async def get_liquidity_pools(self) -> list[dict[str, Any]]:
        return as_records(await self._http.get("/liquidity/pools"))

    # ------------------------------------------------------------------
    # User data
    # ------------------------------------------------------------------

    async def get_user_positions(self, wallet_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/positions/{wallet_address}"))

    async def get_user_obligations(self, wallet_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/lend/obligations/{wallet_address}"))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _reserve_action(
        self, action: str, market: str, reserve: str, payload: dict[str, Any]
    ) -> Any:
        logger.info("Kamino lend %s on %s/%s", action, market, reserve)
        return await self._http.post(
            f"/lend/markets/{market}/reserves/{reserve}/{action}", payload
        )

    async def deposit_lend(self, market: str, reserve: str, amount: float, token: str) -> Any:
        return await self._reserve_action(
            "deposit", market, reserve, {"amount": amount, "token": token}
        )

    async def withdraw_lend(self, market: str, reserve: str, amount: float) -> Any:
        return await self._reserve_action("withdraw", market, reserve, {"amount": amount})

    async def borrow_lend(self, market: str, reserve: str, amount: float) -> Any:
        return await self._reserve_action("borrow", market, reserve, {"amount": amount})

    async def repay_lend(self, market: str, reserve: str, amount: float) -> Any:
        return await self._reserve_action("repay", market, reserve, {"amount": amount})

    async def deposit_vault(self, vault: str, amount: float, token: str) -> Any:
        logger.info("Kamino vault deposit on %s", vault)
        return await self._http.post(
            f"/vaults/{vault}/deposit", {"amount": amount, "token": token}
        )

    async def withdraw_vault(self, vault: str, amount: float) -> Any:
        logger.info("Kamino vault withdraw on %s", vault)
        return await self._http.post(f"/vaults/{vault}/withdraw", {"amount": amount})

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def get_health_factor(self, wallet_address: str) -> Any:
        return await self._http.get(f"/health/{wallet_address}")

    async def get_liquidation_risk(self, wallet_address: str) -> Any:
        return await self._http.get(f"/risk/liquidation/{wallet_address}")

    async def get_optimal_strategies(
        self, wallet_address: str, risk_tolerance: str = "medium"
    ) -> Any:
        return await self._http.get(
            f"/strategies/{wallet_address}", params={"riskTolerance": risk_tolerance}
        )

    async def get_borrow_limit(self, wallet_address: str, market_address: str) -> Any:
        return await self._http.get(
            f"/lend/markets/{market_address}/borrow-limit/{wallet_address}"
        )

    async def get_supply_limit(self, wallet_address: str, market_address: str) -> Any:
        return await self._http.get(
            f"/lend/markets/{market_address}/supply-limit/{wallet_address}"
        )

    async def get_interest_rates(self, market_address: str) -> Any:
        return await self._http.get(f"/lend/markets/{market_address}/interest-rates")

    async def get_utilization_rates(self, market_address: str) -> Any:
        return await self._http.get(f"/lend/markets/{market_address}/utilization-rates")
