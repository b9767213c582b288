"""Shared transport primitives for :mod:`calcmcp.server`.

A transport owns a byte source and a byte sink and hands both to
:meth:`EnvelopeServer.serve_connection`, which does the framing, decoding and
dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..core import EnvelopeServer


class BaseTransport(ABC):
    """Common base for server transports."""

    def __init__(self, server: "EnvelopeServer") -> None:
        self._server = server

    @property
    def server(self) -> "EnvelopeServer":
        """Return the owning :class:`EnvelopeServer`."""

        return self._server

    @abstractmethod
    async def run(self) -> None:
        """Serve one connection until its input ends."""


__all__ = ["BaseTransport"]
