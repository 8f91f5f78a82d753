"""Meteora pool aggregator."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from ..interfaces.session import SessionHandle
from ..models import PoolCategory, PoolEntry
from ..protocols.meteora import MeteoraClient
from .aggregator import RefreshingAggregator

logger = logging.getLogger(__name__)

TOP_POOLS_LIMIT = 10
NEW_POOL_WINDOW = timedelta(days=7)


class PoolAggregator(RefreshingAggregator):
    """Every Meteora pool category, merged, plus the wallet's pool activity."""

    name = "pools"

    def __init__(self, meteora: MeteoraClient, session: SessionHandle | None = None) -> None:
        super().__init__(session)
        self.meteora = meteora

    async def _fetch_entries(self) -> tuple[PoolEntry, ...]:
        categories = list(PoolCategory)
        batches = await asyncio.gather(*(self.meteora.get_pools(c) for c in categories))
        return tuple(
            PoolEntry.from_raw(record, category)
            for batch, category in zip(batches, categories)
            for record in batch
        )

    async def _fetch_user_data(self, wallet_address: str) -> dict[str, tuple[Any, ...]]:
        positions, stakes, rewards = await asyncio.gather(
            self.meteora.get_user_positions(wallet_address),
            self.meteora.get_user_stakes(wallet_address),
            self.meteora.get_user_fee_rewards(wallet_address),
        )
        return {
            "positions": tuple(positions),
            "stakes": tuple(stakes),
            "fee_rewards": tuple(rewards),
        }

    @property
    def pools(self) -> tuple[PoolEntry, ...]:
        return self.entries

    @property
    def positions(self) -> tuple[dict[str, Any], ...]:
        return self.user_data.get("positions", ())

    @property
    def stakes(self) -> tuple[dict[str, Any], ...]:
        return self.user_data.get("stakes", ())

    @property
    def fee_rewards(self) -> tuple[dict[str, Any], ...]:
        return self.user_data.get("fee_rewards", ())

    def by_category(self, category: PoolCategory) -> tuple[PoolEntry, ...]:
        return tuple(p for p in self.entries if p.category == category)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _run_action(self, label: str, call: Any) -> Any:
        self.loading = True
        try:
            result = await call
        except Exception as e:
            logger.error("Error during %s: %s", label, e)
            raise
        finally:
            self.loading = False
        await self.refresh()
        return result

    async def join_pool(self, entry_id: str, join_data: dict[str, Any]) -> Any:
        address = self._require_wallet()
        pool: PoolEntry = self.find(entry_id)
        payload = {**join_data, "walletAddress": address}
        return await self._run_action("join_pool", self.meteora.join_pool(pool.address, payload))

    async def create_pool(self, pool_data: dict[str, Any]) -> Any:
        address = self._require_wallet()
        payload = {**pool_data, "walletAddress": address}
        return await self._run_action("create_pool", self.meteora.create_pool(payload))

    async def stake(self, entry_id: str, stake_data: dict[str, Any]) -> Any:
        address = self._require_wallet()
        pool: PoolEntry = self.find(entry_id)
        payload = {**stake_data, "walletAddress": address}
        return await self._run_action("stake", self.meteora.stake(pool.address, payload))

    async def unstake(self, entry_id: str, unstake_data: dict[str, Any]) -> Any:
        address = self._require_wallet()
        pool: PoolEntry = self.find(entry_id)
        payload = {**unstake_data, "walletAddress": address}
        return await self._run_action("unstake", self.meteora.unstake(pool.address, payload))

    async def claim_fee_rewards(self, entry_id: str, claim_data: dict[str, Any]) -> Any:
        address = self._require_wallet()
        pool: PoolEntry = self.find(entry_id)
        payload = {**claim_data, "walletAddress": address}
        return await self._run_action(
            "claim_fee_rewards", self.meteora.claim_fee_rewards(pool.address, payload)
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def pool_details(self, pool_address: str) -> Any:
        return await self.meteora.get_pool_details(pool_address)

    async def pool_analytics(self, pool_address: str) -> Any:
        return await self.meteora.get_pool_analytics(pool_address)

    async def dynamic_fee_sharing(self, pool_address: str) -> Any:
        return await self.meteora.get_dynamic_fee_sharing(pool_address)

    async def lock_info(self, lock_address: str) -> Any:
        return await self.meteora.get_lock_info(lock_address)

    async def farm_info(self, farm_address: str) -> Any:
        return await self.meteora.get_farm_info(farm_address)

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def top_pools(self, limit: int = TOP_POOLS_LIMIT) -> list[PoolEntry]:
        return sorted(self.entries, key=lambda p: p.tvl, reverse=True)[:limit]

    def high_yield_pools(self, limit: int = TOP_POOLS_LIMIT) -> list[PoolEntry]:
        return sorted(self.entries, key=lambda p: p.apr, reverse=True)[:limit]

    def new_pools(self, now: datetime | None = None) -> list[PoolEntry]:
        cutoff = (now or datetime.now(timezone.utc)) - NEW_POOL_WINDOW
        return [p for p in self.entries if p.created_at is not None and p.created_at > cutoff]

    def top_stake2earn_pools(self, limit: int = TOP_POOLS_LIMIT) -> list[PoolEntry]:
        pools = self.by_category(PoolCategory.STAKE2EARN)
        return sorted(pools, key=lambda p: p.total_staked, reverse=True)[:limit]

    def top_alpha_vault_pools(self, limit: int = TOP_POOLS_LIMIT) -> list[PoolEntry]:
        pools = self.by_category(PoolCategory.ALPHA_VAULT)
        return sorted(pools, key=lambda p: p.total_value, reverse=True)[:limit]
