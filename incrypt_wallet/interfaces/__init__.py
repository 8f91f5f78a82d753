"""Protocol interfaces for the wallet client."""
from .network import NetworkClient
from .session import SessionHandle
from .wallet import AuthorizationResult, WalletAdapter

__all__ = ["AuthorizationResult", "NetworkClient", "SessionHandle", "WalletAdapter"]
