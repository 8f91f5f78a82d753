"""Wallet adapter protocol: the mobile wallet signing handshake."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from ..config import AppIdentity


@dataclass(frozen=True)
class AuthorizationResult:
    """What the wallet returns from ``authorize``.

    Wallets report either a list of accounts (each a mapping with an
    ``address`` key, or a bare key value) or a single ``public_key``.
    """

    auth_token: str
    accounts: tuple[Any, ...] = ()
    public_key: Any = None
    wallet_uri_base: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


class WalletAdapter(Protocol):
    """Abstract interface to a native wallet signing module."""

    def is_available(self) -> bool: ...

    async def authorize(self, cluster: str, identity: AppIdentity) -> AuthorizationResult: ...

    async def deauthorize(self, auth_token: str) -> None: ...

    async def sign_transactions(
        self, transactions: list[bytes], auth_token: str
    ) -> list[bytes]: ...

    async def sign_messages(
        self, messages: list[bytes], auth_token: str, address: str
    ) -> list[bytes]: ...
