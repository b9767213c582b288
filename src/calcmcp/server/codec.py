# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Envelope codec: line text in, typed messages out, and back again.

Inbound lines are parsed with :mod:`orjson` and classified as a request, a
notification, or a response from the peer.  Anything else is malformed and
raises :class:`~calcmcp.errors.EnvelopeDecodeError`.  Outbound envelopes are
serialised to a single ``\\n``-terminated line and written through
:class:`EnvelopeWriter`, which never lets two envelopes interleave.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import anyio
import orjson
from pydantic import ValidationError

from .. import types
from ..errors import EnvelopeDecodeError


class EnvelopeKind(str, Enum):
    REQUEST = "request"
    NOTIFICATION = "notification"
    RESPONSE = "response"


@dataclass(frozen=True, slots=True)
class DecodedEnvelope:
    kind: EnvelopeKind
    request: types.JSONRPCRequest | None = None
    notification: types.JSONRPCNotification | None = None
    raw: dict[str, Any] | None = None

    @property
    def method(self) -> str | None:
        message = self.request or self.notification
        return message.method if message is not None else None


def decode_envelope(line: str | bytes) -> DecodedEnvelope:
    """Parse and classify one envelope.

    Raises:
        EnvelopeDecodeError: If the line is not JSON, not an object, lacks the
            ``"jsonrpc": "2.0"`` tag, or matches none of the known shapes.
    """
    text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise EnvelopeDecodeError(f"Parse error: {exc}", line=text, code=types.PARSE_ERROR) from exc

    if not isinstance(data, dict):
        raise EnvelopeDecodeError("Envelope must be a JSON object", line=text)
    if data.get("jsonrpc") != types.JSONRPC_VERSION:
        raise EnvelopeDecodeError('Envelope must carry "jsonrpc": "2.0"', line=text, request_id=_usable_id(data))

    try:
        if "method" in data:
            if "id" in data:
                request = types.JSONRPCRequest.model_validate(data)
                return DecodedEnvelope(EnvelopeKind.REQUEST, request=request, raw=data)
            notification = types.JSONRPCNotification.model_validate(data)
            return DecodedEnvelope(EnvelopeKind.NOTIFICATION, notification=notification, raw=data)
    except ValidationError as exc:
        raise EnvelopeDecodeError(
            f"Invalid envelope: {exc.error_count()} field error(s)", line=text, request_id=_usable_id(data)
        ) from exc

    if "id" in data and ("result" in data or "error" in data):
        return DecodedEnvelope(EnvelopeKind.RESPONSE, raw=data)

    raise EnvelopeDecodeError(
        "Envelope is neither a request, a notification nor a response", line=text, request_id=_usable_id(data)
    )


def _usable_id(data: dict[str, Any]) -> types.RequestId | None:
    value = data.get("id")
    if isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool)):
        return value
    return None


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _dump(envelope: dict[str, Any]) -> bytes:
    return orjson.dumps(envelope) + b"\n"


def encode_result(request_id: types.RequestId, result: dict[str, Any]) -> bytes:
    return _dump({"jsonrpc": types.JSONRPC_VERSION, "id": request_id, "result": result})


def encode_error(request_id: types.RequestId | None, error: types.ErrorData) -> bytes:
    """Encode an error response; ``request_id`` is ``None`` only for parse errors."""
    return _dump(
        {
            "jsonrpc": types.JSONRPC_VERSION,
            "id": request_id,
            "error": error.model_dump(mode="json", exclude_none=True),
        }
    )


def encode_progress(related_request_id: types.RequestId, percent: int, message: str | None = None) -> bytes:
    params = types.ProgressParams(related_request_id=related_request_id, percent=percent, message=message)
    return _dump(
        {
            "jsonrpc": types.JSONRPC_VERSION,
            "method": types.PROGRESS_METHOD,
            "params": params.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
    )


SendBytes = Callable[[bytes], Awaitable[None]]


class EnvelopeWriter:
    """Serialises writes of whole envelopes onto one output stream.

    Each write holds a lock and runs shielded from cancellation, so a
    shutdown or timeout can stop a handler but never truncate a line.
    """

    def __init__(self, send: SendBytes) -> None:
        self._send = send
        self._lock = anyio.Lock()
        self.sent = 0

    async def write(self, payload: bytes) -> None:
        async with self._lock:
            with anyio.CancelScope(shield=True):
                await self._send(payload)
                self.sent += 1

    async def send_result(self, request_id: types.RequestId, result: dict[str, Any]) -> None:
        await self.write(encode_result(request_id, result))

    async def send_error(self, request_id: types.RequestId | None, error: types.ErrorData) -> None:
        await self.write(encode_error(request_id, error))

    async def send_progress(
        self, related_request_id: types.RequestId, percent: int, message: str | None = None
    ) -> None:
        await self.write(encode_progress(related_request_id, percent, message))


__all__ = [
    "DecodedEnvelope",
    "EnvelopeKind",
    "EnvelopeWriter",
    "decode_envelope",
    "encode_error",
    "encode_progress",
    "encode_result",
]
