# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared test helpers for envelope server tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from itertools import count
from typing import Any

import anyio
import orjson

from calcmcp.server import EnvelopeServer


_REQUEST_COUNTER = count(1)


class RecordingOutput:
    """In-memory output channel capturing every envelope written."""

    def __init__(self) -> None:
        self.writes: list[bytes] = []

    async def send(self, payload: bytes) -> None:
        await anyio.lowlevel.checkpoint()
        self.writes.append(payload)

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [orjson.loads(payload) for payload in self.writes]

    def responses(self) -> list[dict[str, Any]]:
        return [message for message in self.messages if "id" in message and "method" not in message]

    def response_for(self, request_id: Any) -> dict[str, Any]:
        matches = [message for message in self.responses() if message["id"] == request_id]
        assert len(matches) == 1, f"expected one response for {request_id!r}, got {len(matches)}"
        return matches[0]

    def progress_for(self, request_id: Any) -> list[dict[str, Any]]:
        return [
            message["params"]
            for message in self.messages
            if message.get("method") == "progress" and message["params"]["relatedRequestId"] == request_id
        ]


class FailingOutput(RecordingOutput):
    """Output channel whose peer has gone away."""

    async def send(self, payload: bytes) -> None:
        raise BrokenPipeError("peer closed the pipe")


def envelope(method: str, params: dict[str, Any] | None = None, *, request_id: Any = None) -> bytes:
    """Encode one request line; ``request_id`` defaults to a fresh integer."""
    message: dict[str, Any] = {
        "jsonrpc": "2.0",
        "id": next(_REQUEST_COUNTER) if request_id is None else request_id,
        "method": method,
    }
    if params is not None:
        message["params"] = params
    return orjson.dumps(message) + b"\n"


def notification(method: str, params: dict[str, Any] | None = None) -> bytes:
    message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        message["params"] = params
    return orjson.dumps(message) + b"\n"


async def feed(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    """Async chunk source over *chunks*."""
    for chunk in chunks:
        await anyio.lowlevel.checkpoint()
        yield chunk


async def lines_of(lines: Iterable[str]) -> AsyncIterator[str]:
    for line in lines:
        await anyio.lowlevel.checkpoint()
        yield line


async def serve_lines(server: EnvelopeServer, *lines: bytes) -> RecordingOutput:
    """Serve one connection over *lines* and return what was written."""
    output = RecordingOutput()
    await server.serve_connection(feed(lines), output.send)
    return output


async def call(server: EnvelopeServer, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Send one request over a fresh connection and return its response envelope."""
    request_id = next(_REQUEST_COUNTER)
    output = await serve_lines(server, envelope(method, params, request_id=request_id))
    return output.response_for(request_id)
