# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Exceptions raised by calcmcp outside the per-request error path."""

from __future__ import annotations

from mcp.shared.exceptions import McpError

from . import types


class EnvelopeDecodeError(ValueError):
    """Inbound line could not be decoded into a request or notification.

    Under the default policy this is fatal for the connection and the process
    exits with the data-error status.
    """

    def __init__(
        self,
        message: str,
        *,
        line: str | None = None,
        code: int = types.INVALID_REQUEST,
        request_id: types.RequestId | None = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.code = code
        self.request_id = request_id


class DuplicateRegistrationError(ValueError):
    """An operation name is already registered within its capability class."""

    def __init__(self, capability: str, name: str) -> None:
        super().__init__(f"{capability} {name!r} is already registered")
        self.capability = capability
        self.name = name


__all__ = ["DuplicateRegistrationError", "EnvelopeDecodeError", "McpError"]
