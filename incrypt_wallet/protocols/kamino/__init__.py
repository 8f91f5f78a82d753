"""Kamino Finance client."""
from .client import KAMINO_PROGRAMS, KaminoClient

__all__ = ["KAMINO_PROGRAMS", "KaminoClient"]
