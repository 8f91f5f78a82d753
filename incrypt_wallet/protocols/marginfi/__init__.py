"""MarginFi client."""
from .client import MARGINFI_PROGRAM_ID, MarginFiClient

__all__ = ["MARGINFI_PROGRAM_ID", "MarginFiClient"]
