# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Mutable state owned by one server instance."""

from __future__ import annotations

from dataclasses import dataclass, field

from .history import MAX_HISTORY_SIZE, HistoryStore
from .stats import ServerStats


@dataclass(slots=True)
class ServerState:
    """History and counters, injected into the server so tests stay isolated."""

    history: HistoryStore = field(default_factory=HistoryStore)
    stats: ServerStats = field(default_factory=ServerStats)

    @classmethod
    def with_capacity(cls, history_capacity: int = MAX_HISTORY_SIZE) -> ServerState:
        return cls(history=HistoryStore(history_capacity))


__all__ = ["ServerState"]
