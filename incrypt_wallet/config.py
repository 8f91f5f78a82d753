"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .address import is_canonical_address

logger = logging.getLogger(__name__)

CLUSTERS = ("mainnet-beta", "devnet", "testnet")
COMMITMENTS = ("processed", "confirmed", "finalized")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppIdentity:
    name: str = "Incrypt"
    uri: str = "https://incrypt.app"
    icon: str = "favicon.ico"


@dataclass(frozen=True)
class WalletConfig:
    identity: AppIdentity = field(default_factory=AppIdentity)
    cluster: str = "mainnet-beta"
    balance_poll_seconds: float = 30.0
    demo_fallback: bool = True


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoint: str = "https://api.mainnet-beta.solana.com"
    rpc_timeout: int = 15
    commitment: str = "confirmed"
    confirm_timeout: int = 60


@dataclass(frozen=True)
class UpstreamConfig:
    base_url: str = ""
    timeout: int = 10
    api_key: str = ""


DEFAULT_UPSTREAMS: dict[str, UpstreamConfig] = {
    "kamino": UpstreamConfig(base_url="https://api.kamino.finance", timeout=10),
    "marginfi": UpstreamConfig(base_url="https://api.marginfi.com", timeout=10),
    "meteora": UpstreamConfig(base_url="https://api.meteora.ag", timeout=10),
    "rugcheck": UpstreamConfig(base_url="https://api.rugcheck.xyz/v1", timeout=15),
    "dexscreener": UpstreamConfig(base_url="https://api.dexscreener.com", timeout=15),
}


@dataclass(frozen=True)
class AppConfig:
    wallet: WalletConfig = field(default_factory=WalletConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    protocols: dict[str, UpstreamConfig] = field(
        default_factory=lambda: dict(DEFAULT_UPSTREAMS)
    )
    watchlist: tuple[str, ...] = ()

    def upstream(self, name: str) -> UpstreamConfig:
        return self.protocols.get(name, DEFAULT_UPSTREAMS[name])


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


def _as_bool(value: Any, key: str, default: bool) -> bool:
    """Parse a YAML or env-interpolated flag (``"false"`` is False)."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got '{value}'")


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(
        identity=AppIdentity(
            name=raw.get("app_name", AppIdentity.name),
            uri=raw.get("app_uri", AppIdentity.uri),
            icon=raw.get("icon", AppIdentity.icon),
        ),
        cluster=raw.get("cluster", "mainnet-beta"),
        balance_poll_seconds=float(raw.get("balance_poll_seconds", 30)),
        demo_fallback=_as_bool(raw.get("demo_fallback", True), "wallet.demo_fallback", True),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoint=raw.get("rpc_endpoint") or ChainConfig.rpc_endpoint,
        rpc_timeout=int(raw.get("rpc_timeout", 15)),
        commitment=raw.get("commitment", "confirmed"),
        confirm_timeout=int(raw.get("confirm_timeout", 60)),
    )


def _build_protocols(raw: dict[str, Any]) -> dict[str, UpstreamConfig]:
    protocols = dict(DEFAULT_UPSTREAMS)
    for name, cfg in raw.items():
        default = DEFAULT_UPSTREAMS.get(name, UpstreamConfig())
        cfg = cfg or {}
        protocols[name] = UpstreamConfig(
            base_url=cfg.get("base_url", default.base_url).rstrip("/"),
            timeout=int(cfg.get("timeout", default.timeout)),
            api_key=cfg.get("api_key", default.api_key),
        )
    return protocols


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        wallet=_build_wallet(raw.get("wallet", {})),
        chain=_build_chain(raw.get("chain", {})),
        protocols=_build_protocols(raw.get("protocols", {})),
        watchlist=tuple(raw.get("watchlist", []) or []),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.wallet.cluster not in CLUSTERS:
        raise ValueError(f"Unknown cluster '{cfg.wallet.cluster}'")
    if cfg.wallet.balance_poll_seconds <= 0:
        raise ValueError("balance_poll_seconds must be positive")

    if not cfg.chain.rpc_endpoint:
        raise ValueError("chain.rpc_endpoint must be set")
    if cfg.chain.rpc_timeout <= 0:
        raise ValueError("chain.rpc_timeout must be positive")
    if cfg.chain.commitment not in COMMITMENTS:
        raise ValueError(f"Unknown commitment '{cfg.chain.commitment}'")

    for name, upstream in cfg.protocols.items():
        if not upstream.base_url:
            raise ValueError(f"Protocol '{name}' has no base_url")
        if upstream.timeout <= 0:
            raise ValueError(f"Protocol '{name}' timeout must be positive")

    for mint in cfg.watchlist:
        if not is_canonical_address(mint):
            raise ValueError(f"Watchlist entry '{mint}' is not a valid address")
