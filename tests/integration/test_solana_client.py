"""Integration tests for the Solana RPC client — calls, errors, confirmation."""
from __future__ import annotations

import asyncio
import base64
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from incrypt_wallet.chains.solana import SolanaClient
from incrypt_wallet.config import ChainConfig
from incrypt_wallet.errors import RpcError


@pytest.fixture()
def client(sample_chain_config: ChainConfig) -> SolanaClient:
    client = SolanaClient(sample_chain_config)
    client.poll_interval = 0.01
    return client


def _mock_session(response_data: dict | None = None, error: Exception | None = None, status: int = 200):
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=response_data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)

    return mock_session


class TestRpcCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: SolanaClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": {"value": 42}})

        with patch("incrypt_wallet.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("incrypt_wallet.chains.solana.client.aiohttp.TCPConnector"):
                result = await client.rpc_call("getBalance", ["addr"])

        assert result == {"value": 42}
        url = mock_session.post.call_args[0][0]
        payload = mock_session.post.call_args.kwargs["json"]
        assert url == "https://rpc.example.com"
        assert payload["method"] == "getBalance"

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self, client: SolanaClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "error": {"code": -32602, "message": "bad"}})

        with patch("incrypt_wallet.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("incrypt_wallet.chains.solana.client.aiohttp.TCPConnector"):
                with pytest.raises(RpcError, match="RPC Error"):
                    await client.rpc_call("getBalance", ["addr"])

    @pytest.mark.asyncio
    async def test_http_status_raises(self, client: SolanaClient) -> None:
        mock_session = _mock_session(status=429)

        with patch("incrypt_wallet.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("incrypt_wallet.chains.solana.client.aiohttp.TCPConnector"):
                with pytest.raises(RpcError, match="HTTP 429"):
                    await client.rpc_call("getBalance", ["addr"])

    @pytest.mark.asyncio
    async def test_connection_error_single_attempt(self, client: SolanaClient) -> None:
        mock_session = _mock_session(error=aiohttp.ClientError("refused"))

        with patch("incrypt_wallet.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("incrypt_wallet.chains.solana.client.aiohttp.TCPConnector"):
                with pytest.raises(RpcError):
                    await client.rpc_call("getBalance", ["addr"])

        assert mock_session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self, client: SolanaClient) -> None:
        mock_session = _mock_session(error=asyncio.TimeoutError())

        with patch("incrypt_wallet.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("incrypt_wallet.chains.solana.client.aiohttp.TCPConnector"):
                with pytest.raises(RpcError):
                    await client.rpc_call("getBalance", ["addr"])


class TestMethods:
    @pytest.mark.asyncio
    async def test_get_balance(self, client: SolanaClient) -> None:
        with patch.object(client, "rpc_call", AsyncMock(return_value={"value": 1_500_000_000})) as rpc:
            assert await client.get_balance("addr") == 1_500_000_000
        rpc.assert_awaited_once_with("getBalance", ["addr", {"commitment": "confirmed"}])

    @pytest.mark.asyncio
    async def test_send_raw_transaction_base64(self, client: SolanaClient) -> None:
        with patch.object(client, "rpc_call", AsyncMock(return_value="sig1")) as rpc:
            assert await client.send_raw_transaction(b"\x01\x02") == "sig1"
        method, params = rpc.call_args[0]
        assert method == "sendTransaction"
        assert params[0] == base64.b64encode(b"\x01\x02").decode()
        assert params[1]["encoding"] == "base64"

    @pytest.mark.asyncio
    async def test_latest_blockhash(self, client: SolanaClient) -> None:
        result = {"value": {"blockhash": "hash1", "lastValidBlockHeight": 10}}
        with patch.object(client, "rpc_call", AsyncMock(return_value=result)):
            assert await client.get_latest_blockhash() == "hash1"


class TestConfirmTransaction:
    @pytest.mark.asyncio
    async def test_waits_for_commitment(self, client: SolanaClient) -> None:
        statuses = [
            {"value": [None]},
            {"value": [{"confirmationStatus": "processed", "err": None}]},
            {"value": [{"confirmationStatus": "confirmed", "err": None}]},
        ]
        with patch.object(client, "rpc_call", AsyncMock(side_effect=statuses)) as rpc:
            assert await client.confirm_transaction("sig1", "confirmed") == "confirmed"
        assert rpc.await_count == 3

    @pytest.mark.asyncio
    async def test_finalized_satisfies_confirmed(self, client: SolanaClient) -> None:
        status = {"value": [{"confirmationStatus": "finalized", "err": None}]}
        with patch.object(client, "rpc_call", AsyncMock(return_value=status)):
            assert await client.confirm_transaction("sig1") == "finalized"

    @pytest.mark.asyncio
    async def test_on_chain_error(self, client: SolanaClient) -> None:
        status = {"value": [{"confirmationStatus": "confirmed", "err": {"InstructionError": [0, 1]}}]}
        with patch.object(client, "rpc_call", AsyncMock(return_value=status)):
            with pytest.raises(RpcError, match="failed"):
                await client.confirm_transaction("sig1")

    @pytest.mark.asyncio
    async def test_timeout(self, client: SolanaClient) -> None:
        client.confirm_timeout = 0
        with patch.object(client, "rpc_call", AsyncMock(return_value={"value": [None]})):
            with pytest.raises(RpcError, match="not confirmed"):
                await client.confirm_transaction("sig1", "confirmed")
