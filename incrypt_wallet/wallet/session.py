"""Mobile wallet-adapter authorization session."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from ..address import SYSTEM_PROGRAM_ADDRESS, normalize_address
from ..config import AppIdentity
from ..errors import (
    AddressNormalizationFailed,
    AuthorizationFailed,
    CapabilityUnavailable,
    NotConnected,
    SigningFailed,
)
from ..interfaces.network import NetworkClient
from ..interfaces.wallet import AuthorizationResult, WalletAdapter
from ..models import DEMO_SESSION_LABEL, WalletSession

logger = logging.getLogger(__name__)

DEFAULT_WALLET_LABEL = "Mobile Wallet"


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    AUTHORIZING = "authorizing"
    AUTHORIZED = "authorized"
    DISCONNECTING = "disconnecting"


class WalletAuthorizationSession:
    """Owns the auth token for one wallet connection.

    State machine::

        DISCONNECTED -> AUTHORIZING -> AUTHORIZED -> DISCONNECTING -> DISCONNECTED

    Every operation is a single attempt; nothing is retried. The auth token
    lives only in memory on this object.
    """

    def __init__(
        self,
        adapter: WalletAdapter | None,
        network: NetworkClient,
        identity: AppIdentity,
        cluster: str = "mainnet-beta",
        demo_fallback: bool = True,
    ) -> None:
        self._adapter = adapter
        self._network = network
        self._identity = identity
        self._cluster = cluster
        self._demo_fallback = demo_fallback
        self._state = SessionState.DISCONNECTED
        self._session: WalletSession | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> WalletSession | None:
        return self._session

    @property
    def auth_token(self) -> str | None:
        return self._session.auth_token if self._session else None

    @property
    def is_authorized(self) -> bool:
        return self._state is SessionState.AUTHORIZED

    @property
    def capability_available(self) -> bool:
        if self._adapter is None:
            return False
        try:
            return bool(self._adapter.is_available())
        except Exception as e:
            logger.warning("Wallet capability probe failed: %s", e)
            return False

    def _require_adapter(self) -> WalletAdapter:
        adapter = self._adapter
        if adapter is None or not self.capability_available:
            raise CapabilityUnavailable("Native wallet signing module is not available")
        return adapter

    def _require_session(self) -> WalletSession:
        if self._state is not SessionState.AUTHORIZED or self._session is None:
            raise NotConnected("Wallet not connected")
        return self._session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> WalletSession:
        """Authorize with the wallet and cache the resulting session.

        Calling ``connect`` while already authorized returns the existing
        session without another handshake.
        """
        if self._state is SessionState.AUTHORIZED and self._session is not None:
            logger.debug("connect() while authorized; reusing session")
            return self._session
        if self._state is SessionState.AUTHORIZING:
            raise AuthorizationFailed("Authorization already in progress")

        adapter = self._require_adapter()

        self._state = SessionState.AUTHORIZING
        try:
            result = await adapter.authorize(self._cluster, self._identity)
            session = self._build_session(result)
        except AuthorizationFailed:
            self._state = SessionState.DISCONNECTED
            raise
        except Exception as e:
            self._state = SessionState.DISCONNECTED
            logger.error("Wallet authorization failed: %s", e)
            raise AuthorizationFailed(f"Wallet authorization failed: {e}") from e
        except BaseException:
            # Cancelled mid-handshake.
            self._state = SessionState.DISCONNECTED
            raise

        self._session = session
        self._state = SessionState.AUTHORIZED
        logger.info("Wallet authorized: %s (%s)", session.address, session.label)
        return session

    def _build_session(self, result: AuthorizationResult) -> WalletSession:
        auth_token = getattr(result, "auth_token", None)
        if not auth_token:
            raise AuthorizationFailed("Wallet returned no auth token")

        label = getattr(result, "wallet_uri_base", "") or DEFAULT_WALLET_LABEL
        raw_key = _extract_public_key(result)

        try:
            address = normalize_address(raw_key)
        except AddressNormalizationFailed as e:
            if not self._demo_fallback:
                raise
            logger.warning(
                "Could not normalize wallet address (%s); continuing with demo session", e
            )
            return WalletSession(
                address=SYSTEM_PROGRAM_ADDRESS,
                auth_token=auth_token,
                label=DEMO_SESSION_LABEL,
                is_demo=True,
            )

        return WalletSession(address=address, auth_token=auth_token, label=label)

    async def disconnect(self) -> None:
        """Deauthorize remotely (best effort) and always clear local state."""
        if self._state is not SessionState.AUTHORIZED or self._session is None:
            self._session = None
            self._state = SessionState.DISCONNECTED
            return

        token = self._session.auth_token
        self._state = SessionState.DISCONNECTING
        try:
            if self._adapter is not None:
                await self._adapter.deauthorize(token)
        except Exception as e:
            logger.warning("Wallet deauthorize failed, clearing session anyway: %s", e)
        finally:
            self._session = None
            self._state = SessionState.DISCONNECTED
            logger.info("Wallet disconnected")

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    async def sign_and_submit(self, transaction: bytes) -> str:
        """Have the wallet sign exactly one transaction, then submit it.

        Returns:
            The network's transaction signature.
        """
        adapter = self._require_adapter()
        session = self._require_session()

        signed = await adapter.sign_transactions([transaction], session.auth_token)
        if len(signed) != 1:
            raise SigningFailed(f"Wallet returned {len(signed)} signed transactions, expected 1")

        signature = await self._network.send_raw_transaction(bytes(signed[0]))
        logger.info("Transaction submitted: %s", signature)
        return signature

    async def sign_message(self, message: bytes) -> bytes:
        adapter = self._require_adapter()
        session = self._require_session()

        signed = await adapter.sign_messages([message], session.auth_token, session.address)
        if len(signed) != 1:
            raise SigningFailed(f"Wallet returned {len(signed)} signed messages, expected 1")
        return bytes(signed[0])


def _extract_public_key(result: AuthorizationResult) -> Any:
    accounts = getattr(result, "accounts", None) or ()
    if accounts:
        first = accounts[0]
        if isinstance(first, Mapping):
            key = first.get("address") or first.get("public_key") or first.get("publicKey")
        else:
            key = getattr(first, "address", first)
        if key:
            return key

    public_key = getattr(result, "public_key", None)
    if public_key:
        return public_key

    raise AuthorizationFailed("No address received from wallet")
