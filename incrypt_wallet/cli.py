"""Command-line interface for the Incrypt wallet core."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .address import normalize_address
from .chains.solana import LAMPORTS_PER_SOL, SolanaClient
from .config import AppConfig, load_config
from .errors import IncryptError
from .formatting import format_address, format_currency, format_percentage
from .logging_setup import configure_logging
from .models import PoolCategory
from .protocols.dexscreener import DexScreenerClient
from .protocols.kamino import KaminoClient
from .protocols.marginfi import MarginFiClient
from .protocols.meteora import MeteoraClient
from .protocols.rugcheck import RugcheckClient
from .services import LendingAggregator, MarketDataAggregator, PoolAggregator

logger = logging.getLogger(__name__)


class ReadOnlySession:
    """Session handle for an address given on the command line (no signing)."""

    def __init__(self, address: str) -> None:
        self._address = normalize_address(address)

    @property
    def address(self) -> str:
        return self._address

    @property
    def connected(self) -> bool:
        return True


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="incrypt-wallet",
        description="Solana wallet and DeFi data client",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("markets", help="List Kamino and MarginFi lending markets")

    pools_parser = sub.add_parser("pools", help="List Meteora pools")
    pools_parser.add_argument(
        "--category",
        choices=[c.value for c in PoolCategory],
        default=None,
        help="Only show pools of this category",
    )

    positions_parser = sub.add_parser("positions", help="Lending positions of a wallet")
    positions_parser.add_argument("address", help="Wallet address (base58 or base64)")

    balance_parser = sub.add_parser("balance", help="SOL balance of a wallet")
    balance_parser.add_argument("address", help="Wallet address (base58 or base64)")

    token_parser = sub.add_parser("token", help="Safety report for a token mint")
    token_parser.add_argument("mint", help="Token mint address")

    watch_parser = sub.add_parser("watch", help="Continuously refresh the token watchlist")
    watch_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Refresh interval in seconds (default: 60)",
    )

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _lending(config: AppConfig, session: ReadOnlySession | None = None) -> LendingAggregator:
    return LendingAggregator(
        KaminoClient(config.upstream("kamino")),
        MarginFiClient(config.upstream("marginfi")),
        session,
    )


def _market_data(config: AppConfig) -> MarketDataAggregator:
    return MarketDataAggregator(
        RugcheckClient(config.upstream("rugcheck")),
        DexScreenerClient(config.upstream("dexscreener")),
        config.watchlist,
    )


async def _show_markets(config: AppConfig) -> int:
    lending = _lending(config)
    if not await lending.refresh():
        print(lending.error, file=sys.stderr)
        return 1
    for entry in lending.markets:
        print(
            f"{entry.protocol.value:<18} {entry.kind.value:<10} "
            f"{format_address(entry.address):<12} {entry.symbol:<10} "
            f"APY {format_percentage(entry.apy * 100)}  TVL ${format_currency(entry.tvl)}"
        )
    return 0


async def _show_pools(config: AppConfig, category: str | None) -> int:
    pools = PoolAggregator(MeteoraClient(config.upstream("meteora")))
    if not await pools.refresh():
        print(pools.error, file=sys.stderr)
        return 1
    entries = pools.by_category(PoolCategory(category)) if category else pools.top_pools()
    for pool in entries:
        print(
            f"{pool.category.value:<14} {format_address(pool.address):<12} {pool.name:<24} "
            f"TVL ${format_currency(pool.tvl)}  APR {format_percentage(pool.apr)}"
        )
    return 0


async def _show_positions(config: AppConfig, address: str) -> int:
    lending = _lending(config, ReadOnlySession(address))
    if not await lending.refresh():
        print(lending.error, file=sys.stderr)
        return 1
    for position in lending.positions:
        print(
            f"{position.protocol.value:<18} {position.side.value:<7} "
            f"{format_address(position.market_address):<12} "
            f"${format_currency(position.value)}  APY {format_percentage(position.apy * 100)}"
        )
    print(f"Net APY: {format_percentage(lending.net_apy() * 100)}")
    print(f"Health factor: {lending.health_factor():.2f}")
    return 0


async def _show_balance(config: AppConfig, address: str) -> int:
    client = SolanaClient(config.chain)
    lamports = await client.get_balance(normalize_address(address))
    print(f"{lamports / LAMPORTS_PER_SOL:.4f} SOL")
    return 0


async def _show_token(config: AppConfig, mint: str) -> int:
    report = await _market_data(config).analyze_token(mint)
    market = report.market
    print(f"{mint}: {report.safety_level.value} ({report.overall_score:.1f}/100)")
    for name, score in report.components.items():
        print(f"  {name:<10} {score:.1f}")
    if market is not None:
        print(
            f"  {market.symbol} ${market.price_usd:.6g}  "
            f"24h {format_percentage(market.price_change_24h)}  "
            f"liquidity ${format_currency(market.liquidity_usd)}"
        )
    return 0


async def _watch(config: AppConfig, interval: int | None) -> None:
    seconds = interval or 60
    market_data = _market_data(config)
    logger.info(
        "Watching %d tokens (refreshing every %d seconds)", len(market_data.watchlist), seconds
    )
    while True:
        if await market_data.refresh():
            for report in market_data.reports.values():
                logger.info(
                    "%s: %s (%.1f)",
                    format_address(report.mint),
                    report.safety_level.value,
                    report.overall_score,
                )
        await asyncio.sleep(seconds)


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    try:
        if args.command == "markets":
            return await _show_markets(config)
        if args.command == "pools":
            return await _show_pools(config, args.category)
        if args.command == "positions":
            return await _show_positions(config, args.address)
        if args.command == "balance":
            return await _show_balance(config, args.address)
        if args.command == "token":
            return await _show_token(config, args.mint)
        if args.command == "watch":
            await _watch(config, args.interval)
            return 0
    except IncryptError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
