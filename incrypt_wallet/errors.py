"""Exception hierarchy for wallet sessions, upstream clients and dispatch."""
from __future__ import annotations


class IncryptError(Exception):
    """Base class for all errors raised by this package."""


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------


class WalletError(IncryptError):
    """Base class for wallet session failures."""


class CapabilityUnavailable(WalletError):
    """The native wallet signing capability is not present in this runtime."""


class AuthorizationFailed(WalletError):
    """The wallet rejected the handshake or returned a malformed result."""


class AddressNormalizationFailed(AuthorizationFailed, ValueError):
    """A wallet-provided public key could not be turned into a canonical address."""


class NotConnected(WalletError):
    """An operation that needs an authorized session was called without one."""


class SigningFailed(WalletError):
    """The wallet returned an unexpected signing result."""


# ---------------------------------------------------------------------------
# Upstream / network
# ---------------------------------------------------------------------------


class UpstreamRequestFailed(IncryptError):
    """A single call to an upstream REST service failed."""

    def __init__(self, service: str, path: str, reason: str) -> None:
        super().__init__(f"{service} request {path} failed: {reason}")
        self.service = service
        self.path = path
        self.reason = reason


class RpcError(IncryptError):
    """The Solana JSON-RPC node returned an error or could not be reached."""


# ---------------------------------------------------------------------------
# Aggregators
# ---------------------------------------------------------------------------


class ActionDispatchUnsupported(IncryptError):
    """No upstream action exists for the entry's protocol/kind combination."""


class EntryNotFound(IncryptError, LookupError):
    """The requested market, pool or position is not in the current list."""
