"""Meteora REST client — pools by category, user data and pool actions."""
from __future__ import annotations

import logging
from typing import Any

from ...config import UpstreamConfig
from ...models import PoolCategory
from ..http import UpstreamClient, as_records

logger = logging.getLogger(__name__)

METEORA_PROGRAMS: dict[str, str] = {
    "DLMM": "LBUZKhRxPF3XUpBCjp4YzTKgLccjZhTSDM9YuVaPwxo",
    "DAMM_V1": "Eo7WjKq67rjJQSZxS6z3YkapzY3eMj6Xy8X5EQVn5UaB",
    "DAMM_V2": "cpamdpZCGKUy5JxQXB4dcpGPiikHawvSWAd6mEn1sGG",
    "DBC": "dbcij3LWUppWqq96dh6gJWwBifmcGfLSB5D4DuSMaqN",
    "ALPHA_VAULT": "vaU6kP7iNEGkbmPkLmZfGwiGxd4Mob24QQCie5R9kd2",
    "STAKE2EARN": "FEESngU3neckdwib9X3KWqdL7Mjmqk9XNp3uh5JbP4KP",
    "VAULT": "24Uqj9JCLxUeoC3hGfh5W3s9FM9uCHDS2SG3LYwBpyTi",
    "LOCK": "LocpQgucEQHbqNABEYvBvwoxCPsSbG91A1QaQhQQqjn",
    "DYNAMIC_FEE_SHARING": "dfsdo2UqvwfN8DuUVrMRNfQe11VaiNoKcMqLHVvDPzh",
    "FARM": "FarmuwXPWXvefWUeqFAa5w6rifLkq5X6E8bimYvrhCB1",
    "MERCURIAL_STABLE_SWAP": "MERLuDFBMmsHnsBPZw2sDQZHvXFMwp8EdjudcU2HKky",
}

# Devnet deployments currently share the mainnet program ids.
METEORA_DEVNET_PROGRAMS: dict[str, str] = dict(METEORA_PROGRAMS)


class MeteoraClient:
    """Meteora pool endpoints."""

    def __init__(self, config: UpstreamConfig) -> None:
        self._http = UpstreamClient("meteora", config)

    @staticmethod
    def program_id(program_type: str, devnet: bool = False) -> str | None:
        programs = METEORA_DEVNET_PROGRAMS if devnet else METEORA_PROGRAMS
        return programs.get(program_type)

    async def get_pools(self, category: PoolCategory | None = None) -> list[dict[str, Any]]:
        path = f"/pools/{category.value}" if category else "/pools"
        return as_records(await self._http.get(path))

    async def get_pool_details(self, pool_address: str) -> Any:
        return await self._http.get(f"/pools/{pool_address}")

    async def get_pool_analytics(self, pool_address: str) -> Any:
        return await self._http.get(f"/pools/{pool_address}/analytics")

    async def get_dynamic_fee_sharing(self, pool_address: str) -> Any:
        return await self._http.get(f"/pools/{pool_address}/fee-sharing")

    async def get_lock_info(self, lock_address: str) -> Any:
        return await self._http.get(f"/locks/{lock_address}")

    async def get_farm_info(self, farm_address: str) -> Any:
        return await self._http.get(f"/farms/{farm_address}")

    # ------------------------------------------------------------------
    # User data
    # ------------------------------------------------------------------

    async def get_user_positions(self, wallet_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/positions/{wallet_address}"))

    async def get_user_stakes(self, wallet_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/stakes/{wallet_address}"))

    async def get_user_fee_rewards(self, wallet_address: str) -> list[dict[str, Any]]:
        return as_records(await self._http.get(f"/rewards/{wallet_address}/fees"))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def create_pool(self, pool_data: dict[str, Any]) -> Any:
        logger.info("Creating Meteora pool")
        return await self._http.post("/pools/create", pool_data)

    async def join_pool(self, pool_address: str, join_data: dict[str, Any]) -> Any:
        logger.info("Joining Meteora pool %s", pool_address)
        return await self._http.post(f"/pools/{pool_address}/join", join_data)

    async def stake(self, pool_address: str, stake_data: dict[str, Any]) -> Any:
        return await self._http.post(f"/pools/{pool_address}/stake", stake_data)

    async def unstake(self, pool_address: str, unstake_data: dict[str, Any]) -> Any:
        return await self._http.post(f"/pools/{pool_address}/unstake", unstake_data)

    async def claim_fee_rewards(self, pool_address: str, claim_data: dict[str, Any]) -> Any:
        return await self._http.post(f"/pools/{pool_address}/claim-rewards", claim_data)
