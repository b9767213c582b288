# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Transport adapters for calcmcp servers.

Transports only move bytes; framing lives in :mod:`.framing` and everything
above it belongs to the server.
"""

from __future__ import annotations

from .base import BaseTransport
from .framing import LineFramer, iter_lines, split_lines
from .stdio import StdioTransport

__all__ = [
    "BaseTransport",
    "LineFramer",
    "StdioTransport",
    "iter_lines",
    "split_lines",
]
