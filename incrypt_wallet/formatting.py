"""Display helpers for addresses, amounts and percentages."""
from __future__ import annotations


def format_address(address: str | None, start_chars: int = 4, end_chars: int = 4) -> str:
    """Shorten an address to ``abcd...wxyz``."""
    if not address:
        return ""
    if len(address) <= start_chars + end_chars:
        return address
    return f"{address[:start_chars]}...{address[-end_chars:]}"


def format_currency(value: float | None, decimals: int = 1) -> str:
    """Format a value with K / M / B suffixes."""
    if value is None:
        return "0"
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.{decimals}f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.{decimals}f}M"
    if value >= 1_000:
        return f"{value / 1_000:.{decimals}f}K"
    return f"{value:.{decimals}f}"


def format_percentage(value: float | None, decimals: int = 2) -> str:
    if value is None:
        return "0%"
    return f"{value:.{decimals}f}%"
