"""Integration tests for the wallet facade — balance polling and sending."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from incrypt_wallet.chains.solana import SolanaClient
from incrypt_wallet.config import AppIdentity, load_config
from incrypt_wallet.errors import NotConnected, RpcError
from incrypt_wallet.interfaces.wallet import AuthorizationResult
from incrypt_wallet.wallet import SessionState, Wallet, WalletAuthorizationSession


def _wallet(adapter, network, poll: float = 30.0) -> Wallet:
    session = WalletAuthorizationSession(adapter, network, AppIdentity())
    return Wallet(session, network, balance_poll_interval=poll)


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_fetches_balance_and_polls(
        self, wallet_adapter: MagicMock, network: AsyncMock, sample_address: str
    ) -> None:
        wallet = _wallet(wallet_adapter, network)

        session = await wallet.connect()
        try:
            assert session is not None
            assert wallet.connected
            assert wallet.address == sample_address
            assert wallet.balance == pytest.approx(2.5)
            assert wallet.polling
            network.get_balance.assert_awaited_with(sample_address)
        finally:
            await wallet.disconnect()

        assert not wallet.connected
        assert not wallet.polling
        assert wallet.balance == 0.0

    @pytest.mark.asyncio
    async def test_capability_unavailable_returns_none(self, network: AsyncMock) -> None:
        wallet = _wallet(None, network)

        result = await wallet.connect()

        assert result is None
        assert wallet.error
        assert not wallet.connected
        assert wallet.session is None
        assert not wallet.polling
        network.get_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_authorization_failure_returns_none(
        self, wallet_adapter: MagicMock, network: AsyncMock
    ) -> None:
        wallet_adapter.authorize.side_effect = RuntimeError("declined")
        wallet = _wallet(wallet_adapter, network)

        assert await wallet.connect() is None
        assert "declined" in wallet.error
        assert not wallet.connecting

    @pytest.mark.asyncio
    async def test_short_address(self, wallet_adapter: MagicMock, network: AsyncMock, sample_address: str) -> None:
        wallet = _wallet(wallet_adapter, network)
        assert wallet.short_address == ""
        await wallet.connect()
        try:
            assert wallet.short_address == f"{sample_address[:4]}...{sample_address[-4:]}"
        finally:
            await wallet.close()

    @pytest.mark.asyncio
    async def test_disconnect_with_failing_deauthorize(
        self, wallet_adapter: MagicMock, network: AsyncMock
    ) -> None:
        wallet_adapter.deauthorize.side_effect = RuntimeError("gone")
        wallet = _wallet(wallet_adapter, network)
        await wallet.connect()

        await wallet.disconnect()

        assert not wallet.connected
        assert wallet._session.state is SessionState.DISCONNECTED


class TestBalance:
    @pytest.mark.asyncio
    async def test_failed_poll_keeps_last_balance(
        self, wallet_adapter: MagicMock, network: AsyncMock
    ) -> None:
        wallet = _wallet(wallet_adapter, network)
        await wallet.connect()
        try:
            network.get_balance.side_effect = RpcError("getBalance: HTTP 429")

            assert await wallet.refresh_balance() is None
            assert wallet.balance == pytest.approx(2.5)
            assert wallet.error == "Failed to fetch balance"
        finally:
            await wallet.close()

    @pytest.mark.asyncio
    async def test_periodic_poll(self, wallet_adapter: MagicMock, network: AsyncMock) -> None:
        wallet = _wallet(wallet_adapter, network, poll=0.01)
        await wallet.connect()
        try:
            network.get_balance.return_value = 5_000_000_000
            await asyncio.sleep(0.1)
            assert network.get_balance.await_count >= 2
            assert wallet.balance == pytest.approx(5.0)
        finally:
            await wallet.disconnect()

        calls = network.get_balance.await_count
        await asyncio.sleep(0.05)
        assert network.get_balance.await_count == calls

    @pytest.mark.asyncio
    async def test_no_address_zero_balance(self, wallet_adapter: MagicMock, network: AsyncMock) -> None:
        wallet = _wallet(wallet_adapter, network)
        assert await wallet.refresh_balance() is None
        assert wallet.balance == 0.0


class TestSendTransaction:
    @pytest.mark.asyncio
    async def test_sign_submit_confirm(self, wallet_adapter: MagicMock, network: AsyncMock) -> None:
        wallet = _wallet(wallet_adapter, network)
        await wallet.connect()
        try:
            signature = await wallet.send_transaction(b"tx", commitment="finalized")
        finally:
            await wallet.close()

        assert signature == "5igSig"
        network.confirm_transaction.assert_awaited_once_with("5igSig", "finalized")
        assert wallet.loading is False

    @pytest.mark.asyncio
    async def test_not_connected_propagates(self, wallet_adapter: MagicMock, network: AsyncMock) -> None:
        wallet = _wallet(wallet_adapter, network)
        with pytest.raises(NotConnected):
            await wallet.send_transaction(b"tx")
        assert wallet.loading is False

    @pytest.mark.asyncio
    async def test_confirmation_failure_propagates(
        self, wallet_adapter: MagicMock, network: AsyncMock
    ) -> None:
        network.confirm_transaction.side_effect = RpcError("Transaction failed")
        wallet = _wallet(wallet_adapter, network)
        await wallet.connect()
        try:
            with pytest.raises(RpcError):
                await wallet.send_transaction(b"tx")
        finally:
            await wallet.close()


class TestSessionDisconnect:
    @pytest.mark.asyncio
    async def test_poll_stops_when_session_disconnects(
        self, wallet_adapter: MagicMock, network: AsyncMock
    ) -> None:
        session = WalletAuthorizationSession(wallet_adapter, network, AppIdentity())
        wallet = Wallet(session, network, balance_poll_interval=0.01)
        await wallet.connect()
        assert wallet.polling

        await session.disconnect()
        await asyncio.sleep(0.05)

        assert not wallet.polling
        calls = network.get_balance.await_count
        await asyncio.sleep(0.05)
        assert network.get_balance.await_count == calls
        await wallet.close()


class TestFromConfig:
    @pytest.mark.asyncio
    async def test_wallet_section_is_applied(
        self, sample_yaml_path, wallet_adapter: MagicMock, network: AsyncMock
    ) -> None:
        config = load_config(sample_yaml_path)
        wallet = Wallet.from_config(config, wallet_adapter, network)

        assert wallet._poll_interval == 15.0
        await wallet.connect()
        try:
            cluster, identity = wallet_adapter.authorize.await_args.args
            assert cluster == "devnet"
            assert identity.name == "Incrypt Test"
            assert identity.uri == "https://test.incrypt.app"
        finally:
            await wallet.close()

    @pytest.mark.asyncio
    async def test_demo_fallback_disabled(
        self, sample_yaml_path, wallet_adapter: MagicMock, network: AsyncMock
    ) -> None:
        wallet_adapter.authorize.return_value = AuthorizationResult(
            auth_token="auth-token-1", accounts=({"address": "not-a-key"},)
        )
        wallet = Wallet.from_config(load_config(sample_yaml_path), wallet_adapter, network)

        assert await wallet.connect() is None
        assert not wallet.connected
        assert not wallet.is_demo
        assert wallet.error

    def test_default_network_uses_chain_config(
        self, sample_yaml_path, wallet_adapter: MagicMock
    ) -> None:
        wallet = Wallet.from_config(load_config(sample_yaml_path), wallet_adapter)
        assert isinstance(wallet._network, SolanaClient)
