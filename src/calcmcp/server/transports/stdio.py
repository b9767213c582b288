# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""STDIO transport.

Reads newline-delimited envelopes from ``stdin`` and writes responses and
progress notifications to ``stdout``.  ``stdout`` carries protocol traffic
only; logging goes to ``stderr``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
import sys
from typing import Any, BinaryIO

import anyio

from .base import BaseTransport
from ...utils import get_logger


READ_CHUNK_SIZE = 65536


async def read_chunks(stream: BinaryIO, *, chunk_size: int = READ_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield raw chunks from a blocking binary stream until EOF.

    Blocking reads happen on a worker thread so other handlers keep running.
    """
    reader = getattr(stream, "read1", stream.read)
    while True:
        chunk = await anyio.to_thread.run_sync(reader, chunk_size, abandon_on_cancel=True)
        if not chunk:
            return
        yield chunk


def get_stdio_streams() -> tuple[BinaryIO, BinaryIO]:
    """Return the process's binary ``stdin``/``stdout``.

    Separated into a helper so tests can patch it with in-memory streams.
    """
    return sys.stdin.buffer, sys.stdout.buffer


class StdioTransport(BaseTransport):
    """Serve an :class:`calcmcp.server.core.EnvelopeServer` over STDIO."""

    def __init__(self, server: Any) -> None:
        super().__init__(server)
        self._logger = get_logger("calcmcp.transport.stdio")

    async def run(self) -> None:
        stdin, stdout = get_stdio_streams()
        output = anyio.wrap_file(stdout)

        async def send(payload: bytes) -> None:
            await output.write(payload)
            await output.flush()

        self._logger.debug("STDIO transport started")
        await self.server.serve_connection(read_chunks(stdin), send)
        self._logger.debug("STDIO input closed")


__all__ = ["READ_CHUNK_SIZE", "StdioTransport", "get_stdio_streams", "read_chunks"]
