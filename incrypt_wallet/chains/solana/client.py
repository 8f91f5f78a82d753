"""Solana JSON-RPC client — balances, submission and confirmation."""
import asyncio
import base64
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import RpcError

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class SolanaClient:
    """Solana RPC client. Each call is a single attempt against one endpoint."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoint = config.rpc_endpoint
        self.timeout = config.rpc_timeout
        self.commitment = config.commitment
        self.confirm_timeout = config.confirm_timeout
        self.poll_interval = 0.5

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make a JSON-RPC call and return its ``result`` member."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.endpoint,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise RpcError(f"{method}: HTTP {response.status}")
                    result = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("RPC %s against %s failed: %s", method, self.endpoint, e)
            raise RpcError(f"{method}: {e}") from e

        if "error" in result:
            raise RpcError(f"{method}: RPC Error: {result['error']}")
        return result.get("result")

    async def get_balance(self, address: str) -> int:
        """Return the account balance in lamports."""
        result = await self.rpc_call(
            "getBalance", [address, {"commitment": self.commitment}]
        )
        if isinstance(result, dict):
            return int(result.get("value", 0))
        return int(result or 0)

    async def get_latest_blockhash(self) -> str:
        result = await self.rpc_call(
            "getLatestBlockhash", [{"commitment": self.commitment}]
        )
        return result["value"]["blockhash"]

    async def send_raw_transaction(self, transaction: bytes) -> str:
        """Submit a signed, serialized transaction and return its signature."""
        encoded = base64.b64encode(bytes(transaction)).decode("ascii")
        signature = await self.rpc_call(
            "sendTransaction",
            [
                encoded,
                {"encoding": "base64", "preflightCommitment": self.commitment},
            ],
        )
        logger.info("Submitted transaction %s", signature)
        return signature

    async def get_signature_status(self, signature: str) -> dict[str, Any] | None:
        result = await self.rpc_call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": False}],
        )
        values = (result or {}).get("value") or [None]
        return values[0]

    async def confirm_transaction(
        self, signature: str, commitment: str = "confirmed"
    ) -> str:
        """Wait until ``signature`` reaches ``commitment``.

        Raises:
            RpcError: if the transaction failed on chain or was not confirmed
                within ``confirm_timeout`` seconds.
        """
        wanted = _COMMITMENT_RANK.get(commitment, 1)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirm_timeout

        while True:
            status = await self.get_signature_status(signature)
            if status:
                if status.get("err"):
                    raise RpcError(f"Transaction {signature} failed: {status['err']}")
                reached = status.get("confirmationStatus") or "processed"
                if _COMMITMENT_RANK.get(reached, 0) >= wanted:
                    logger.info("Transaction %s reached %s", signature, reached)
                    return reached
            if loop.time() >= deadline:
                raise RpcError(
                    f"Transaction {signature} not {commitment} after {self.confirm_timeout}s"
                )
            await asyncio.sleep(self.poll_interval)
