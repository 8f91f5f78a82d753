"""Token safety and market data aggregator over Rugcheck and DexScreener."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Iterable

from .. import analytics
from ..interfaces.session import SessionHandle
from ..models import TokenMarketData, TokenSafetyReport
from ..protocols.dexscreener import DexScreenerClient
from ..protocols.rugcheck import SAFETY_COMPONENTS, RugcheckClient
from .aggregator import RefreshingAggregator

logger = logging.getLogger(__name__)


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _component_score(payload: Any) -> float | None:
    """Numeric score of one component response, or None when unavailable."""
    if isinstance(payload, Mapping):
        return _number(payload.get("score"))
    return _number(payload)


def _market_from_pairs(mint: str, pairs: list[dict[str, Any]]) -> TokenMarketData | None:
    """Build market data from the primary (first listed) DEX pair."""
    if not pairs:
        return None

    primary = pairs[0]
    base = primary.get("baseToken") or {}
    return TokenMarketData(
        address=mint,
        name=str(base.get("name") or ""),
        symbol=str(base.get("symbol") or ""),
        price_usd=_number(primary.get("priceUsd")) or 0.0,
        price_change_24h=_number((primary.get("priceChange") or {}).get("h24")) or 0.0,
        volume_24h=_number((primary.get("volume") or {}).get("h24")) or 0.0,
        liquidity_usd=_number((primary.get("liquidity") or {}).get("usd")) or 0.0,
        market_cap=_number(primary.get("marketCap") or primary.get("fdv")) or 0.0,
        dex_id=str(primary.get("dexId") or ""),
        pair_address=str(primary.get("pairAddress") or ""),
        pairs=tuple(pairs),
    )


class MarketDataAggregator(RefreshingAggregator):
    """Safety reports for a watchlist of token mints.

    ``refresh`` analyses every watched mint in one batch and replaces
    ``reports`` as a whole; one failing lookup fails the batch.
    """

    name = "market"

    def __init__(
        self,
        rugcheck: RugcheckClient,
        dexscreener: DexScreenerClient,
        watchlist: Iterable[str] = (),
        session: SessionHandle | None = None,
    ) -> None:
        super().__init__(session)
        self.rugcheck = rugcheck
        self.dexscreener = dexscreener
        self.watchlist: tuple[str, ...] = tuple(watchlist)
        self.reports: dict[str, TokenSafetyReport] = {}

    @staticmethod
    def _entry_id(entry: TokenSafetyReport) -> str:
        return entry.mint

    async def _build_report(self, mint: str) -> TokenSafetyReport:
        names = list(SAFETY_COMPONENTS)
        scan, pairs, *component_payloads = await asyncio.gather(
            self.rugcheck.scan_token(mint),
            self.dexscreener.get_token_pairs(mint),
            *(self.rugcheck.get_component(name, mint) for name in names),
        )

        components: dict[str, float] = {}
        for name, payload in zip(names, component_payloads):
            score = _component_score(payload)
            if score is not None:
                components[name] = score

        overall = analytics.overall_safety_score(components)
        return TokenSafetyReport(
            mint=mint,
            overall_score=overall,
            safety_level=analytics.safety_level(overall),
            components=components,
            market=_market_from_pairs(mint, pairs),
            raw={"scan": scan, **dict(zip(names, component_payloads))},
        )

    async def _fetch_entries(self) -> tuple[TokenSafetyReport, ...]:
        if not self.watchlist:
            return ()
        return tuple(await asyncio.gather(*(self._build_report(m) for m in self.watchlist)))

    async def refresh(self) -> bool:
        ok = await super().refresh()
        if ok:
            self.reports = {report.mint: report for report in self.entries}
        return ok

    async def analyze_token(self, mint: str) -> TokenSafetyReport:
        """Analyse one mint and store the report.

        Errors set ``error`` and propagate.
        """
        self.loading = True
        self.error = None
        try:
            report = await self._build_report(mint)
        except Exception as e:
            logger.error("Error analyzing token %s: %s", mint, e)
            self.error = "Failed to analyze token safety"
            raise
        finally:
            self.loading = False
        self.reports = {**self.reports, mint: report}
        logger.info(
            "Token %s scored %.1f (%s)", mint, report.overall_score, report.safety_level.value
        )
        return report

    async def analyze_pool(self, pool_address: str) -> Any:
        return await self.rugcheck.scan_pool(pool_address)

    async def wallet_risk(self) -> Any:
        return await self.rugcheck.get_wallet_risk(self._require_wallet())

    async def search_tokens(self, query: str) -> list[dict[str, Any]]:
        return await self.dexscreener.search(query)

    async def pair_info(self, pair_address: str) -> Any:
        return await self.dexscreener.get_pair(pair_address)

    async def latest_token_profiles(self) -> list[dict[str, Any]]:
        return await self.dexscreener.get_latest_token_profiles()

    async def token_market_data(self, mint: str) -> TokenMarketData | None:
        return _market_from_pairs(mint, await self.dexscreener.get_token_pairs(mint))
