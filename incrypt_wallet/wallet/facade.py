"""Wallet facade — connect/disconnect, balance polling, sending transactions."""
from __future__ import annotations

import asyncio
import contextlib
import logging

from ..chains.solana import LAMPORTS_PER_SOL, SolanaClient
from ..config import AppConfig
from ..errors import AuthorizationFailed, CapabilityUnavailable
from ..formatting import format_address
from ..interfaces.network import NetworkClient
from ..interfaces.wallet import WalletAdapter
from ..models import WalletSession
from .session import SessionState, WalletAuthorizationSession

logger = logging.getLogger(__name__)

DEFAULT_BALANCE_POLL_SECONDS = 30.0


class Wallet:
    """Unified wallet operations for consumers.

    Wraps a :class:`WalletAuthorizationSession` and keeps ``balance`` fresh
    with a periodic poll while connected. ``balance`` is always the result of
    the most recent successful poll.
    """

    def __init__(
        self,
        session: WalletAuthorizationSession,
        network: NetworkClient,
        balance_poll_interval: float = DEFAULT_BALANCE_POLL_SECONDS,
    ) -> None:
        self._session = session
        self._network = network
        self._poll_interval = balance_poll_interval
        self._poll_task: asyncio.Task[None] | None = None
        self.balance: float = 0.0
        self.error: str | None = None
        self.loading = False

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        adapter: WalletAdapter | None,
        network: NetworkClient | None = None,
    ) -> Wallet:
        """Build a wallet and its authorization session from ``config.wallet``.

        ``network`` defaults to a :class:`SolanaClient` on ``config.chain``.
        """
        if network is None:
            network = SolanaClient(config.chain)
        session = WalletAuthorizationSession(
            adapter,
            network,
            config.wallet.identity,
            cluster=config.wallet.cluster,
            demo_fallback=config.wallet.demo_fallback,
        )
        return cls(session, network, balance_poll_interval=config.wallet.balance_poll_seconds)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> WalletSession | None:
        return self._session.session

    @property
    def address(self) -> str | None:
        session = self._session.session
        return session.address if session else None

    @property
    def connected(self) -> bool:
        return self._session.is_authorized

    @property
    def connecting(self) -> bool:
        return self._session.state is SessionState.AUTHORIZING

    @property
    def is_demo(self) -> bool:
        session = self._session.session
        return bool(session and session.is_demo)

    @property
    def short_address(self) -> str:
        return format_address(self.address)

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> WalletSession | None:
        """Connect the wallet.

        Returns ``None`` instead of raising when the signing capability is
        missing or authorization fails; the reason is kept in ``error``.
        """
        self.error = None
        try:
            session = await self._session.connect()
        except CapabilityUnavailable as e:
            logger.warning("Wallet capability unavailable, staying view-only: %s", e)
            self.error = str(e)
            return None
        except AuthorizationFailed as e:
            logger.error("Wallet connection failed: %s", e)
            self.error = str(e)
            return None

        await self.refresh_balance()
        self._start_polling()
        return session

    async def disconnect(self) -> None:
        await self._stop_polling()
        await self._session.disconnect()
        self.balance = 0.0

    async def close(self) -> None:
        """Stop background work. In-flight one-shot requests are left to finish."""
        await self._stop_polling()

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    async def refresh_balance(self) -> float | None:
        address = self.address
        if address is None:
            self.balance = 0.0
            return None
        try:
            lamports = await self._network.get_balance(address)
        except Exception as e:
            logger.error("Error fetching balance: %s", e)
            self.error = "Failed to fetch balance"
            return None
        self.balance = lamports / LAMPORTS_PER_SOL
        return self.balance

    def _start_polling(self) -> None:
        if self.polling:
            return
        self._poll_task = asyncio.create_task(self._poll_balance())

    async def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _poll_balance(self) -> None:
        while self.connected:
            await asyncio.sleep(self._poll_interval)
            if not self.connected:
                break
            await self.refresh_balance()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def send_transaction(
        self, transaction: bytes, commitment: str = "confirmed"
    ) -> str:
        """Sign, submit and confirm one transaction. Errors propagate."""
        self.loading = True
        try:
            signature = await self._session.sign_and_submit(transaction)
            await self._network.confirm_transaction(signature, commitment)
            return signature
        except Exception as e:
            logger.error("Error sending transaction: %s", e)
            raise
        finally:
            self.loading = False

    async def sign_message(self, message: bytes) -> bytes:
        return await self._session.sign_message(message)
