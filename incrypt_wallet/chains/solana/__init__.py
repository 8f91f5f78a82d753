"""Solana chain client."""
from .client import LAMPORTS_PER_SOL, SolanaClient

__all__ = ["LAMPORTS_PER_SOL", "SolanaClient"]
