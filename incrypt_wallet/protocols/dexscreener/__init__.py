"""DexScreener client."""
from .client import DexScreenerClient

__all__ = ["DexScreenerClient"]
