# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Fixed-capacity history of completed calculations.

Entries are immutable and kept in insertion order.  When an append pushes the
store past its capacity the oldest entry is evicted, so the store always
holds the most recent ``capacity`` calculations.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any
import uuid

import anyio
from pydantic import BaseModel, ConfigDict, Field


MAX_HISTORY_SIZE = 50


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_calculation_id() -> str:
    return uuid.uuid4().hex


class HistoryEntry(BaseModel):
    """One successful calculation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_calculation_id)
    timestamp: str = Field(default_factory=utc_timestamp)
    operation: str
    input_1: float
    input_2: float | None = None
    result: float
    expression: str

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class HistoryStore:
    """Insertion-ordered store with FIFO eviction.

    Appends are serialised by a lock so concurrent writers can neither lose
    an entry nor push the size past ``capacity``.
    """

    def __init__(self, capacity: int = MAX_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self._capacity = capacity
        self._entries: OrderedDict[str, HistoryEntry] = OrderedDict()
        self._lock = anyio.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    async def append(self, entry: HistoryEntry) -> HistoryEntry:
        async with self._lock:
            self._entries[entry.id] = entry
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)
        return entry

    async def record(
        self,
        operation: str,
        input_1: float,
        input_2: float | None,
        result: float,
        expression: str,
    ) -> HistoryEntry:
        """Create and append an entry in one step."""
        entry = HistoryEntry(
            operation=operation,
            input_1=input_1,
            input_2=input_2,
            result=result,
            expression=expression,
        )
        return await self.append(entry)

    def get(self, entry_id: str) -> HistoryEntry | None:
        return self._entries.get(entry_id)

    def list(self, limit: int | None = None) -> list[HistoryEntry]:
        """Newest first, at most ``limit`` entries (default: everything held)."""
        newest_first = list(reversed(self._entries.values()))
        if limit is None:
            return newest_first
        return newest_first[: max(limit, 0)]

    def ids(self) -> list[str]:
        return [entry.id for entry in self.list()]


__all__ = ["MAX_HISTORY_SIZE", "HistoryEntry", "HistoryStore", "new_calculation_id", "utc_timestamp"]
