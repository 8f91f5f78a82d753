"""Incrypt wallet core: Solana wallet session, DeFi data aggregation, analytics."""

__version__ = "0.1.0"
