"""Kamino and MarginFi lending aggregator with the action dispatch table."""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from .. import analytics
from ..errors import ActionDispatchUnsupported
from ..interfaces.session import SessionHandle
from ..models import AggregatedMarketEntry, MarketKind, ProtocolTag, UserPosition
from ..protocols.kamino import KaminoClient
from ..protocols.marginfi import MarginFiClient
from .aggregator import RefreshingAggregator

logger = logging.getLogger(__name__)


class MarketVenue(str, Enum):
    KAMINO_LEND = "kamino_lend"
    KAMINO_VAULT = "kamino_vault"
    KAMINO_LIQUIDITY = "kamino_liquidity"
    MARGINFI_BANK = "marginfi_bank"
    MARGINFI_MARKET = "marginfi_market"


class LendingAction(str, Enum):
    SUPPLY = "supply"
    BORROW = "borrow"
    WITHDRAW = "withdraw"
    REPAY = "repay"


_VENUES: dict[tuple[ProtocolTag, MarketKind], MarketVenue] = {
    (ProtocolTag.KAMINO_LEND, MarketKind.LEND): MarketVenue.KAMINO_LEND,
    (ProtocolTag.KAMINO_VAULTS, MarketKind.VAULT): MarketVenue.KAMINO_VAULT,
    (ProtocolTag.KAMINO_LIQUIDITY, MarketKind.LIQUIDITY): MarketVenue.KAMINO_LIQUIDITY,
    (ProtocolTag.MARGINFI, MarketKind.BANK): MarketVenue.MARGINFI_BANK,
    (ProtocolTag.MARGINFI, MarketKind.MARKET): MarketVenue.MARGINFI_MARKET,
}


def venue_for(entry: AggregatedMarketEntry) -> MarketVenue:
    """Resolve the venue of an entry from its (protocol, kind) tag."""
    try:
        return _VENUES[(entry.protocol, entry.kind)]
    except KeyError:
        raise ActionDispatchUnsupported(
            f"Unsupported protocol: {entry.protocol} / {entry.kind}"
        ) from None


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

Handler = Callable[["LendingAggregator", AggregatedMarketEntry, float, str], Awaitable[Any]]


def _token(entry: AggregatedMarketEntry, asset: str) -> str:
    return asset or entry.asset_address or entry.symbol


async def _kamino_lend_supply(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.kamino.deposit_lend(e.address, e.reserve_address, amount, _token(e, asset))


async def _kamino_lend_borrow(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.kamino.borrow_lend(e.address, e.reserve_address, amount)


async def _kamino_lend_withdraw(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.kamino.withdraw_lend(e.address, e.reserve_address, amount)


async def _kamino_lend_repay(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.kamino.repay_lend(e.address, e.reserve_address, amount)


async def _kamino_vault_supply(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.kamino.deposit_vault(e.address, amount, _token(e, asset))


async def _kamino_vault_withdraw(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.kamino.withdraw_vault(e.address, amount)


async def _marginfi_bank_supply(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.marginfi.deposit(e.address, _token(e, asset), amount)


async def _marginfi_bank_borrow(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.marginfi.borrow(e.address, _token(e, asset), amount)


async def _marginfi_bank_withdraw(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.marginfi.withdraw(e.address, _token(e, asset), amount)


async def _marginfi_bank_repay(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.marginfi.repay(e.address, _token(e, asset), amount)


async def _marginfi_market_supply(agg: LendingAggregator, e: AggregatedMarketEntry, amount: float, asset: str) -> Any:
    return await agg.marginfi.supply_market(e.address, amount, _token(e, asset))


# None marks a combination the upstream does not offer.
DISPATCH: dict[tuple[MarketVenue, LendingAction], Handler | None] = {
    (MarketVenue.KAMINO_LEND, LendingAction.SUPPLY): _kamino_lend_supply,
    (MarketVenue.KAMINO_LEND, LendingAction.BORROW): _kamino_lend_borrow,
    (MarketVenue.KAMINO_LEND, LendingAction.WITHDRAW): _kamino_lend_withdraw,
    (MarketVenue.KAMINO_LEND, LendingAction.REPAY): _kamino_lend_repay,
    (MarketVenue.KAMINO_VAULT, LendingAction.SUPPLY): _kamino_vault_supply,
    (MarketVenue.KAMINO_VAULT, LendingAction.BORROW): None,
    (MarketVenue.KAMINO_VAULT, LendingAction.WITHDRAW): _kamino_vault_withdraw,
    (MarketVenue.KAMINO_VAULT, LendingAction.REPAY): None,
    (MarketVenue.KAMINO_LIQUIDITY, LendingAction.SUPPLY): None,
    (MarketVenue.KAMINO_LIQUIDITY, LendingAction.BORROW): None,
    (MarketVenue.KAMINO_LIQUIDITY, LendingAction.WITHDRAW): None,
    (MarketVenue.KAMINO_LIQUIDITY, LendingAction.REPAY): None,
    (MarketVenue.MARGINFI_BANK, LendingAction.SUPPLY): _marginfi_bank_supply,
    (MarketVenue.MARGINFI_BANK, LendingAction.BORROW): _marginfi_bank_borrow,
    (MarketVenue.MARGINFI_BANK, LendingAction.WITHDRAW): _marginfi_bank_withdraw,
    (MarketVenue.MARGINFI_BANK, LendingAction.REPAY): _marginfi_bank_repay,
    # MarginFi markets only expose supply; the rest go through the bank
    # endpoints keyed by the market address.
    (MarketVenue.MARGINFI_MARKET, LendingAction.SUPPLY): _marginfi_market_supply,
    (MarketVenue.MARGINFI_MARKET, LendingAction.BORROW): _marginfi_bank_borrow,
    (MarketVenue.MARGINFI_MARKET, LendingAction.WITHDRAW): _marginfi_bank_withdraw,
    (MarketVenue.MARGINFI_MARKET, LendingAction.REPAY): _marginfi_bank_repay,
}


def check_dispatch_table(
    table: dict[tuple[MarketVenue, LendingAction], Handler | None],
) -> None:
    """Raise if any venue/action combination is missing from ``table``."""
    missing = [
        f"{venue.value}/{action.value}"
        for venue in MarketVenue
        for action in LendingAction
        if (venue, action) not in table
    ]
    if missing:
        raise RuntimeError(f"Lending dispatch table is missing: {', '.join(missing)}")


check_dispatch_table(DISPATCH)


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------


class LendingAggregator(RefreshingAggregator):
    """Merged Kamino + MarginFi lending view for one wallet."""

    name = "lending"

    def __init__(
        self,
        kamino: KaminoClient,
        marginfi: MarginFiClient,
        session: SessionHandle | None = None,
        liquidation_threshold: float = analytics.DEFAULT_LIQUIDATION_THRESHOLD,
    ) -> None:
        super().__init__(session)
        self.kamino = kamino
        self.marginfi = marginfi
        self.liquidation_threshold = liquidation_threshold

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _fetch_entries(self) -> tuple[AggregatedMarketEntry, ...]:
        sources = [
            (self.kamino.get_lend_markets(), ProtocolTag.KAMINO_LEND, MarketKind.LEND),
            (self.kamino.get_vaults(), ProtocolTag.KAMINO_VAULTS, MarketKind.VAULT),
            (self.kamino.get_liquidity_pools(), ProtocolTag.KAMINO_LIQUIDITY, MarketKind.LIQUIDITY),
            (self.marginfi.get_banks(), ProtocolTag.MARGINFI, MarketKind.BANK),
            (self.marginfi.get_markets(), ProtocolTag.MARGINFI, MarketKind.MARKET),
        ]
        batches = await asyncio.gather(*(fetch for fetch, _, _ in sources))
        return tuple(
            AggregatedMarketEntry.from_raw(record, protocol, kind)
            for batch, (_, protocol, kind) in zip(batches, sources)
            for record in batch
        )

    async def _fetch_user_data(self, wallet_address: str) -> dict[str, tuple[Any, ...]]:
        kamino_positions, obligations, marginfi_positions, accounts = await asyncio.gather(
            self.kamino.get_user_positions(wallet_address),
            self.kamino.get_user_obligations(wallet_address),
            self.marginfi.get_user_positions(wallet_address),
            self.marginfi.get_user_account(wallet_address),
        )
        positions = tuple(
            UserPosition.from_raw(raw, ProtocolTag.KAMINO_LEND, wallet_address)
            for raw in kamino_positions
        ) + tuple(
            UserPosition.from_raw(raw, ProtocolTag.MARGINFI, wallet_address)
            for raw in marginfi_positions
        )
        return {
            "positions": positions,
            "obligations": tuple(obligations),
            "user_accounts": tuple(accounts),
        }

    @property
    def markets(self) -> tuple[AggregatedMarketEntry, ...]:
        return self.entries

    @property
    def positions(self) -> tuple[UserPosition, ...]:
        return self.user_data.get("positions", ())

    @property
    def obligations(self) -> tuple[dict[str, Any], ...]:
        return self.user_data.get("obligations", ())

    @property
    def user_accounts(self) -> tuple[dict[str, Any], ...]:
        return self.user_data.get("user_accounts", ())

    def markets_for(
        self, protocol: ProtocolTag, kind: MarketKind | None = None
    ) -> tuple[AggregatedMarketEntry, ...]:
        return tuple(
            m for m in self.entries
            if m.protocol == protocol and (kind is None or m.kind == kind)
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _dispatch(
        self, action: LendingAction, entry_id: str, amount: float, asset: str = ""
    ) -> Any:
        self._require_wallet()
        if amount <= 0:
            raise ValueError("Amount must be positive")

        entry: AggregatedMarketEntry = self.find(entry_id)
        venue = venue_for(entry)
        handler = DISPATCH[(venue, action)]
        if handler is None:
            raise ActionDispatchUnsupported(
                f"Unsupported protocol for {action.value}: {entry.protocol.value} {entry.kind.value}"
            )

        self.loading = True
        try:
            result = await handler(self, entry, amount, asset)
        except Exception as e:
            logger.error("Error during %s on %s: %s", action.value, entry_id, e)
            raise
        finally:
            self.loading = False

        await self.refresh()
        return result

    async def supply(self, entry_id: str, amount: float, asset: str = "") -> Any:
        return await self._dispatch(LendingAction.SUPPLY, entry_id, amount, asset)

    async def borrow(self, entry_id: str, amount: float, asset: str = "") -> Any:
        return await self._dispatch(LendingAction.BORROW, entry_id, amount, asset)

    async def withdraw(self, entry_id: str, amount: float, asset: str = "") -> Any:
        return await self._dispatch(LendingAction.WITHDRAW, entry_id, amount, asset)

    async def repay(self, entry_id: str, amount: float, asset: str = "") -> Any:
        return await self._dispatch(LendingAction.REPAY, entry_id, amount, asset)

    async def create_marginfi_bank(self, bank_data: dict[str, Any]) -> Any:
        address = self._require_wallet()
        result = await self.marginfi.create_bank(address, bank_data)
        await self.refresh()
        return result

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def net_apy(self) -> float:
        return analytics.net_apy(self.positions)

    def health_factor(self) -> float:
        return analytics.health_factor(self.positions, self.liquidation_threshold)

    async def remote_health_factor(self) -> Any:
        return await self.kamino.get_health_factor(self._require_wallet())

    async def marginfi_health_factor(self) -> Any:
        return await self.marginfi.get_health_factor(self._require_wallet())

    async def liquidation_risk(self) -> Any:
        return await self.kamino.get_liquidation_risk(self._require_wallet())

    async def optimal_strategies(self, risk_tolerance: str = "medium") -> Any:
        return await self.kamino.get_optimal_strategies(self._require_wallet(), risk_tolerance)

    async def borrow_limit(self, market_address: str) -> Any:
        return await self.kamino.get_borrow_limit(self._require_wallet(), market_address)

    async def supply_limit(self, market_address: str) -> Any:
        return await self.kamino.get_supply_limit(self._require_wallet(), market_address)

    async def lend_market_details(self, market_address: str) -> Any:
        return await self.kamino.get_lend_market_details(market_address)

    async def lend_reserves(self, market_address: str) -> list[dict[str, Any]]:
        return await self.kamino.get_lend_reserves(market_address)

    async def interest_rates(self, entry_id: str) -> Any:
        entry: AggregatedMarketEntry = self.find(entry_id)
        if entry.protocol == ProtocolTag.MARGINFI:
            return await self.marginfi.get_interest_rates(entry.address)
        return await self.kamino.get_interest_rates(entry.address)

    async def utilization_rates(self, entry_id: str) -> Any:
        entry: AggregatedMarketEntry = self.find(entry_id)
        if entry.protocol == ProtocolTag.MARGINFI:
            return await self.marginfi.get_utilization_rates(entry.address)
        return await self.kamino.get_utilization_rates(entry.address)

    async def marginfi_bank_details(self, bank_address: str) -> Any:
        return await self.marginfi.get_bank_details(bank_address)

    async def marginfi_bank_assets(self, bank_address: str) -> list[dict[str, Any]]:
        return await self.marginfi.get_bank_assets(bank_address)

    async def marginfi_bank_analytics(self, bank_address: str) -> Any:
        return await self.marginfi.get_bank_analytics(bank_address)

    async def marginfi_user_analytics(self) -> Any:
        return await self.marginfi.get_user_analytics(self._require_wallet())
