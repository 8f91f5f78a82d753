"""Refresh-replace base for the protocol data aggregators."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from ..errors import EntryNotFound, IncryptError, NotConnected
from ..interfaces.session import SessionHandle

logger = logging.getLogger(__name__)


class RefreshingAggregator:
    """Fan out upstream fetches, merge them, swap the result in whole.

    Subclasses implement :meth:`_fetch_entries` (one concurrent batch over
    every upstream category) and optionally :meth:`_fetch_user_data` (a
    second batch keyed by wallet address). ``refresh`` only replaces the
    stored data once both batches succeeded; on any failure the previous
    ``entries`` and ``user_data`` stay exactly as they were and ``error`` is
    set. Concurrent refreshes are not serialized: the last one to finish wins.
    """

    name = "aggregator"

    def __init__(self, session: SessionHandle | None = None) -> None:
        self._session = session
        self.entries: tuple[Any, ...] = ()
        self.user_data: dict[str, tuple[Any, ...]] = {}
        self.error: str | None = None
        self.loading = False
        self.last_refreshed: datetime | None = None

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _fetch_entries(self) -> tuple[Any, ...]:
        raise NotImplementedError

    async def _fetch_user_data(self, wallet_address: str) -> dict[str, tuple[Any, ...]]:
        return {}

    @staticmethod
    def _entry_id(entry: Any) -> str:
        return entry.id

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    @property
    def wallet_address(self) -> str | None:
        if self._session is None or not self._session.connected:
            return None
        return self._session.address

    def _require_wallet(self) -> str:
        address = self.wallet_address
        if not address:
            raise NotConnected("Wallet not connected")
        return address

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Refetch everything. Returns ``False`` (and sets ``error``) on failure."""
        self.loading = True
        try:
            entries = await self._fetch_entries()
            address = self.wallet_address
            user_data = await self._fetch_user_data(address) if address else {}
        except IncryptError as e:
            logger.error("Error refreshing %s data: %s", self.name, e)
            self.error = f"Failed to fetch {self.name} data"
            return False
        finally:
            self.loading = False

        self._warn_duplicate_ids(entries)
        self.entries = entries
        self.user_data = user_data
        self.error = None
        self.last_refreshed = datetime.now(timezone.utc)
        logger.info("Refreshed %s: %d entries", self.name, len(entries))
        return True

    def _warn_duplicate_ids(self, entries: tuple[Any, ...]) -> None:
        counts = Counter(self._entry_id(entry) for entry in entries)
        for entry_id, count in counts.items():
            if count > 1:
                logger.warning("%s: %d entries share id '%s'", self.name, count, entry_id)

    def find(self, entry_id: str) -> Any:
        """Return the single entry with ``entry_id``.

        An id shared by several entries is refused rather than resolved to
        an arbitrary one.
        """
        matches = [entry for entry in self.entries if self._entry_id(entry) == entry_id]
        if not matches:
            raise EntryNotFound(f"{self.name} entry '{entry_id}' not found")
        if len(matches) > 1:
            raise EntryNotFound(
                f"{self.name} entry '{entry_id}' is ambiguous ({len(matches)} matches)"
            )
        return matches[0]
