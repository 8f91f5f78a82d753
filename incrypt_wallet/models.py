"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------


DEMO_SESSION_LABEL = "Demo Wallet (view only)"


@dataclass(frozen=True)
class WalletSession:
    """An authorized wallet connection."""

    address: str
    auth_token: str
    label: str = "Mobile Wallet"
    is_demo: bool = False


# ---------------------------------------------------------------------------
# Lending markets
# ---------------------------------------------------------------------------


class ProtocolTag(str, Enum):
    KAMINO_LEND = "Kamino Lend"
    KAMINO_VAULTS = "Kamino Vaults"
    KAMINO_LIQUIDITY = "Kamino Liquidity"
    MARGINFI = "MarginFi"
    METEORA = "Meteora"


class MarketKind(str, Enum):
    LEND = "lend"
    VAULT = "vault"
    LIQUIDITY = "liquidity"
    BANK = "bank"
    MARKET = "market"


@dataclass(frozen=True)
class AggregatedMarketEntry:
    """One upstream market tagged with the protocol and kind it came from."""

    id: str
    protocol: ProtocolTag
    kind: MarketKind
    address: str = ""
    reserve_address: str = ""
    asset_address: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(
        cls, raw: Mapping[str, Any], protocol: ProtocolTag, kind: MarketKind
    ) -> AggregatedMarketEntry:
        address = str(_first(raw, "address", "pubkey") or "")
        reserve_address = str(_first(raw, "reserveAddress", "reserve_address") or "")
        entry_id = _first(raw, "id")
        if entry_id is None:
            # Kamino reserves share their market address.
            entry_id = ":".join(p for p in (kind.value, address, reserve_address) if p)
        return cls(
            id=str(entry_id),
            protocol=protocol,
            kind=kind,
            address=address,
            reserve_address=reserve_address,
            asset_address=str(_first(raw, "assetAddress", "asset_address", "mint") or ""),
            raw=dict(raw),
        )

    @property
    def symbol(self) -> str:
        return str(_first(self.raw, "symbol", "tokenSymbol", "name") or "")

    @property
    def apy(self) -> float:
        return _as_float(_first(self.raw, "apy", "supplyApy", "supply_apy"))

    @property
    def tvl(self) -> float:
        return _as_float(_first(self.raw, "tvl", "totalValueLocked", "totalSupplyUsd"))


# ---------------------------------------------------------------------------
# Liquidity pools
# ---------------------------------------------------------------------------


class PoolCategory(str, Enum):
    DLMM = "dlmm"
    DAMM_V1 = "damm-v1"
    DAMM_V2 = "damm-v2"
    DBC = "dbc"
    ALPHA_VAULT = "alpha-vault"
    STAKE2EARN = "stake2earn"
    DYNAMIC_VAULT = "dynamic-vault"


@dataclass(frozen=True)
class PoolEntry:
    """One Meteora pool tagged with its category."""

    id: str
    address: str
    category: PoolCategory
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], category: PoolCategory) -> PoolEntry:
        address = str(_first(raw, "address", "pool_address", "poolAddress") or "")
        return cls(
            id=str(_first(raw, "id", "address", "pool_address", "poolAddress") or ""),
            address=address,
            category=category,
            raw=dict(raw),
        )

    @property
    def name(self) -> str:
        return str(_first(self.raw, "name", "pair") or self.address)

    @property
    def tvl(self) -> float:
        return _as_float(_first(self.raw, "tvl", "liquidity"))

    @property
    def apr(self) -> float:
        return _as_float(self.raw.get("apr"))

    @property
    def total_staked(self) -> float:
        return _as_float(_first(self.raw, "totalStaked", "total_staked"))

    @property
    def total_value(self) -> float:
        return _as_float(_first(self.raw, "totalValue", "total_value"))

    @property
    def created_at(self) -> datetime | None:
        value = _first(self.raw, "createdAt", "created_at")
        if value is None:
            return None
        if isinstance(value, (int, float)):
            # Epoch milliseconds when large enough, seconds otherwise.
            seconds = value / 1000 if value > 1e11 else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


# ---------------------------------------------------------------------------
# User positions
# ---------------------------------------------------------------------------


class PositionSide(str, Enum):
    SUPPLY = "supply"
    BORROW = "borrow"


_BORROW_MARKERS = {"borrow", "debt", "loan", "liability"}


@dataclass(frozen=True)
class UserPosition:
    """A wallet's position in one market, as reported by the protocol."""

    protocol: ProtocolTag
    side: PositionSide
    amount: float
    value: float
    apy: float
    earned: float = 0.0
    wallet_address: str = ""
    market_address: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(
        cls, raw: Mapping[str, Any], protocol: ProtocolTag, wallet_address: str = ""
    ) -> UserPosition:
        side_raw = str(_first(raw, "side", "type", "kind") or "").lower()
        side = PositionSide.BORROW if side_raw in _BORROW_MARKERS else PositionSide.SUPPLY
        return cls(
            protocol=protocol,
            side=side,
            amount=_as_float(raw.get("amount")),
            value=_as_float(_first(raw, "value", "usdValue", "usd_value")),
            apy=_as_float(raw.get("apy")),
            earned=_as_float(_first(raw, "earned", "rewards")),
            wallet_address=str(_first(raw, "walletAddress", "wallet_address") or wallet_address),
            market_address=str(_first(raw, "marketAddress", "market_address", "address") or ""),
            raw=dict(raw),
        )


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


class SafetyLevel(str, Enum):
    SAFE = "SAFE"
    MODERATE = "MODERATE"
    RISKY = "RISKY"
    DANGEROUS = "DANGEROUS"


@dataclass(frozen=True)
class TokenMarketData:
    """Primary DEX pair data for a token."""

    address: str
    name: str = ""
    symbol: str = ""
    price_usd: float = 0.0
    price_change_24h: float = 0.0
    volume_24h: float = 0.0
    liquidity_usd: float = 0.0
    market_cap: float = 0.0
    dex_id: str = ""
    pair_address: str = ""
    pairs: tuple[Mapping[str, Any], ...] = ()


@dataclass(frozen=True)
class TokenSafetyReport:
    """Weighted safety assessment for a token mint."""

    mint: str
    overall_score: float
    safety_level: SafetyLevel
    components: Mapping[str, float] = field(default_factory=dict)
    market: TokenMarketData | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)
