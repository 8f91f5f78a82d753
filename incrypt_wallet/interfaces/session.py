"""Session handle protocol."""
from typing import Protocol


class SessionHandle(Protocol):
    """Read-only view of the connected wallet."""

    @property
    def address(self) -> str | None: ...

    @property
    def connected(self) -> bool: ...
