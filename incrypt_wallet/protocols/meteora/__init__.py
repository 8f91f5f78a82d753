"""Meteora client."""
from .client import METEORA_DEVNET_PROGRAMS, METEORA_PROGRAMS, MeteoraClient

__all__ = ["METEORA_DEVNET_PROGRAMS", "METEORA_PROGRAMS", "MeteoraClient"]
