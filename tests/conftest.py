"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from incrypt_wallet.address import address_from_bytes
from incrypt_wallet.config import (
    DEFAULT_UPSTREAMS,
    AppConfig,
    AppIdentity,
    ChainConfig,
    UpstreamConfig,
    WalletConfig,
)
from incrypt_wallet.interfaces.wallet import AuthorizationResult
from incrypt_wallet.models import PositionSide, ProtocolTag, UserPosition
from incrypt_wallet.protocols.dexscreener import DexScreenerClient
from incrypt_wallet.protocols.kamino import KaminoClient
from incrypt_wallet.protocols.marginfi import MarginFiClient
from incrypt_wallet.protocols.meteora import MeteoraClient
from incrypt_wallet.protocols.rugcheck import RugcheckClient

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class StubSession:
    """Minimal session handle with a fixed address."""

    def __init__(self, address: str | None = None, connected: bool = True) -> None:
        self.address = address
        self.connected = connected


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_key_bytes() -> bytes:
    return bytes(range(1, 33))


@pytest.fixture()
def sample_address(sample_key_bytes: bytes) -> str:
    return address_from_bytes(sample_key_bytes)


@pytest.fixture()
def stub_session(sample_address: str) -> StubSession:
    return StubSession(sample_address)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoint="https://rpc.example.com",
        rpc_timeout=5,
        commitment="confirmed",
        confirm_timeout=2,
    )


@pytest.fixture()
def sample_upstream_config() -> UpstreamConfig:
    return UpstreamConfig(base_url="https://api.example.com/", timeout=5)


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(
        wallet=WalletConfig(
            identity=AppIdentity(name="Incrypt", uri="https://incrypt.app", icon="favicon.ico"),
            cluster="devnet",
            balance_poll_seconds=30.0,
        ),
        chain=sample_chain_config,
        protocols=dict(DEFAULT_UPSTREAMS),
        watchlist=(USDC_MINT,),
    )


SAMPLE_YAML = textwrap.dedent(f"""\
    wallet:
      app_name: Incrypt Test
      app_uri: https://test.incrypt.app
      cluster: devnet
      balance_poll_seconds: 15
      demo_fallback: false
    chain:
      rpc_endpoint: https://rpc.example.com
      rpc_timeout: 10
      commitment: finalized
    protocols:
      kamino:
        base_url: https://kamino.example.com/
        timeout: 5
      rugcheck:
        api_key: "rc-key"
    watchlist:
      - {USDC_MINT}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Wallet adapter / network
# ---------------------------------------------------------------------------


@pytest.fixture()
def wallet_adapter(sample_address: str) -> MagicMock:
    """A wallet adapter whose handshake succeeds with ``sample_address``."""
    adapter = MagicMock()
    adapter.is_available.return_value = True
    adapter.authorize = AsyncMock(
        return_value=AuthorizationResult(
            auth_token="auth-token-1",
            accounts=({"address": sample_address, "label": "Phantom"},),
            wallet_uri_base="https://phantom.app",
        )
    )
    adapter.deauthorize = AsyncMock(return_value=None)
    adapter.sign_transactions = AsyncMock(return_value=[b"signed-tx"])
    adapter.sign_messages = AsyncMock(return_value=[b"signed-msg"])
    return adapter


@pytest.fixture()
def network() -> AsyncMock:
    client = AsyncMock()
    client.get_balance.return_value = 2_500_000_000
    client.send_raw_transaction.return_value = "5igSig"
    client.confirm_transaction.return_value = "confirmed"
    return client


# ---------------------------------------------------------------------------
# Upstream client mocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def kamino() -> MagicMock:
    client = MagicMock(spec=KaminoClient)
    client.get_lend_markets.return_value = [
        {"address": "kLendMkt", "reserveAddress": "kReserve", "symbol": "SOL", "apy": 0.05,
         "tvl": 1_000_000, "mint": "So11111111111111111111111111111111111111112"},
    ]
    client.get_vaults.return_value = [{"address": "kVault", "symbol": "JitoSOL", "apy": 0.08}]
    client.get_liquidity_pools.return_value = [{"address": "kLiq", "name": "SOL-USDC"}]
    client.get_user_positions.return_value = [
        {"marketAddress": "kLendMkt", "side": "supply", "amount": 10, "value": 100, "apy": 0.05},
    ]
    client.get_user_obligations.return_value = [{"obligation": "ob1"}]
    return client


@pytest.fixture()
def marginfi() -> MagicMock:
    client = MagicMock(spec=MarginFiClient)
    client.get_banks.return_value = [
        {"address": "mBank", "assetAddress": USDC_MINT, "symbol": "USDC", "apy": 0.06},
    ]
    client.get_markets.return_value = [{"address": "mMarket", "mint": USDC_MINT}]
    client.get_user_positions.return_value = [
        {"marketAddress": "mBank", "side": "supply", "amount": 300, "value": 300, "apy": 0.10},
    ]
    client.get_user_account.return_value = [{"account": "acct1"}]
    return client


@pytest.fixture()
def meteora() -> MagicMock:
    return MagicMock(spec=MeteoraClient)


@pytest.fixture()
def rugcheck() -> MagicMock:
    return MagicMock(spec=RugcheckClient)


@pytest.fixture()
def dexscreener() -> MagicMock:
    return MagicMock(spec=DexScreenerClient)


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_positions() -> list[UserPosition]:
    return [
        UserPosition(
            protocol=ProtocolTag.KAMINO_LEND, side=PositionSide.SUPPLY,
            amount=1.0, value=100.0, apy=0.05,
        ),
        UserPosition(
            protocol=ProtocolTag.MARGINFI, side=PositionSide.SUPPLY,
            amount=300.0, value=300.0, apy=0.10,
        ),
    ]
