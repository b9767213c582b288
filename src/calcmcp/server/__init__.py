# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Public server-side surface for calcmcp.

The heavy lifting lives in :mod:`calcmcp.server.core` and
:mod:`calcmcp.server.dispatcher`; this module re-exports the primitives that
host applications are expected to import.
"""

from __future__ import annotations

from .batch import MAX_BATCH_SIZE, BatchItemOutcome, run_batch
from .core import EnvelopeServer
from .dispatcher import DispatchConfig, Dispatcher, RequestPhase
from .history import MAX_HISTORY_SIZE, HistoryEntry, HistoryStore
from .lifecycle import EXIT_DATA_ERROR, EXIT_OK, EXIT_SOFTWARE, serve
from .state import ServerState
from .stats import ServerStats


__all__ = [
    "EnvelopeServer",
    "DispatchConfig",
    "Dispatcher",
    "RequestPhase",
    "ServerState",
    "ServerStats",
    "HistoryEntry",
    "HistoryStore",
    "MAX_HISTORY_SIZE",
    "BatchItemOutcome",
    "MAX_BATCH_SIZE",
    "run_batch",
    "serve",
    "EXIT_OK",
    "EXIT_DATA_ERROR",
    "EXIT_SOFTWARE",
]
