"""Network client protocol — balance queries and transaction submission."""
from typing import Protocol


class NetworkClient(Protocol):
    """Abstract interface for the chain RPC layer."""

    async def get_balance(self, address: str) -> int: ...

    async def send_raw_transaction(self, transaction: bytes) -> str: ...

    async def confirm_transaction(
        self, signature: str, commitment: str = "confirmed"
    ) -> str: ...
