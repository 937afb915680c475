"""In-memory snapshot cache for BART reference data."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any

from bart_facade.core.metrics import record_cache_event
from bart_facade.services.bart_errors import NotReadyError

logger = logging.getLogger(__name__)


class CacheSlot(str, Enum):
    """Independently refreshed snapshot slots."""

    STATION_LIST = "station_list"
    STATION_INFO = "station_info"
    STATION_ACCESS = "station_access"
    ELEVATOR_STATUS = "elevator_status"


class SnapshotCache:
    """
    Holder for the last-known-good snapshot of each slot.

    Slots are read whole and replaced whole; there is no merge and no
    cross-slot consistency (the station list may be ahead of the details
    fanned out from it). Only the refresh jobs write, on the event loop
    thread, so readers always see some complete past snapshot.
    """

    def __init__(self) -> None:
        self._values: dict[CacheSlot, Any] = {}
        self._updated_at: dict[CacheSlot, float] = {}

    def get(self, slot: CacheSlot) -> Any | None:
        """Return the current value of ``slot`` or None before its first refresh."""
        value = self._values.get(slot)
        record_cache_event(slot.value, "hit" if value is not None else "not_ready")
        return value

    def require(self, slot: CacheSlot) -> Any:
        """Return the current value of ``slot``.

        Raises:
            NotReadyError: If the slot has never been refreshed successfully.
        """
        value = self.get(slot)
        if value is None:
            raise NotReadyError(
                f"The {slot.value.replace('_', ' ')} snapshot has not been loaded yet."
            )
        return value

    def set(self, slot: CacheSlot, value: Any) -> None:
        """Atomically replace ``slot``; lists are frozen into tuples."""
        if value is None:
            raise ValueError("Snapshot slots cannot be cleared.")
        if isinstance(value, list):
            value = tuple(value)
        self._values[slot] = value
        self._updated_at[slot] = time.time()
        record_cache_event(slot.value, "replace")
        logger.debug("Snapshot slot %s replaced", slot.value)

    def is_ready(self, slot: CacheSlot) -> bool:
        return slot in self._values

    def updated_at(self, slot: CacheSlot) -> float | None:
        """Unix timestamp of the last replace of ``slot``."""
        return self._updated_at.get(slot)

    def snapshot_ages(self) -> dict[str, float | None]:
        """Seconds since each slot was last replaced (None if never)."""
        now = time.time()
        return {
            slot.value: (
                round(now - self._updated_at[slot], 3)
                if slot in self._updated_at
                else None
            )
            for slot in CacheSlot
        }


__all__ = ["CacheSlot", "SnapshotCache"]
