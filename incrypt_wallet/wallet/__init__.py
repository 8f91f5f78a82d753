"""Wallet session and facade."""
from .facade import Wallet
from .session import SessionState, WalletAuthorizationSession

__all__ = ["SessionState", "Wallet", "WalletAuthorizationSession"]
