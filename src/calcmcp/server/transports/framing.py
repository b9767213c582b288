# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Newline framing for byte streams.

Envelopes travel one per line.  Chunks read from a pipe rarely align with
line boundaries, so the framer keeps the unterminated tail of each chunk and
prepends it to the next one.  Framing never fails: undecodable bytes are
passed through with replacement characters and rejected by the codec.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator, Iterable


class LineFramer:
    """Incremental splitter; one instance per connection."""

    __slots__ = ("_buffer",)

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received after the last newline."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> list[str]:
        """Add *chunk* and return every line it completed, empty lines dropped."""
        self._buffer.extend(chunk)
        if b"\n" not in chunk:
            return []
        *complete, tail = self._buffer.split(b"\n")
        self._buffer = bytearray(tail)
        return [text for text in (_decode(raw) for raw in complete) if text]

    def flush(self) -> list[str]:
        """Return the trailing unterminated line, if any, at end of stream."""
        raw, self._buffer = bytes(self._buffer), bytearray()
        text = _decode(raw)
        return [text] if text else []


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").strip()


async def iter_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield complete lines from an async chunk source until it is exhausted."""
    framer = LineFramer()
    async for chunk in chunks:
        for line in framer.feed(chunk):
            yield line
    for line in framer.flush():
        yield line


def split_lines(chunks: Iterable[bytes]) -> list[str]:
    """Synchronous convenience wrapper over :class:`LineFramer`."""
    framer = LineFramer()
    lines: list[str] = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    lines.extend(framer.flush())
    return lines


__all__ = ["LineFramer", "iter_lines", "split_lines"]
