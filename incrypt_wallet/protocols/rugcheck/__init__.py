"""Rugcheck client."""
from .client import SAFETY_COMPONENTS, RugcheckClient

__all__ = ["SAFETY_COMPONENTS", "RugcheckClient"]
