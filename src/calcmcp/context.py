"""Request context helpers for calcmcp handlers.

While a handler runs, :func:`get_context` returns a :class:`Context` bound to
the originating request.  The context is the handler's only route to the
output stream: :meth:`Context.report_progress` hands the update to a sink
owned by the dispatcher, which performs the actual write.

Example::

    from calcmcp import get_context, tool

    @tool(description="Counts to three")
    async def count() -> dict:
        ctx = get_context()
        for percent in (33, 66, 100):
            await ctx.report_progress(percent)
        return {"done": True}
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
import math
from typing import Iterator, Protocol

from . import types


class ProgressSink(Protocol):
    """Receives progress updates for one in-flight request."""

    async def __call__(self, percent: int, message: str | None) -> None: ...


_CURRENT_CONTEXT: ContextVar["Context | None"] = ContextVar("calcmcp_current_context", default=None)


def get_context() -> "Context":
    """Return the active :class:`Context`.

    Raises:
        LookupError: If called outside of a request handler.
    """

    ctx = _CURRENT_CONTEXT.get()
    if ctx is None:
        raise LookupError(
            "No active context; use get_context() from within a request handler",
        )
    return ctx


@dataclass(slots=True)
class Context:
    """Per-request handle given to handlers."""

    request_id: types.RequestId
    method: str
    _sink: ProgressSink | None = None

    async def report_progress(self, percent: int | float, message: str | None = None) -> None:
        """Emit one progress notification tied to this request.

        ``percent`` is clamped to 0..100 and rounded to an integer; NaN and
        infinities raise :class:`ValueError`.  The call returns once the
        notification has been written, so successive calls reach the peer in
        order and before the final response.
        """

        if not math.isfinite(percent):
            raise ValueError(f"Progress percent must be a finite number, got {percent!r}")
        if self._sink is None:
            return
        clamped = max(0, min(100, round(percent)))
        await self._sink(clamped, message)


@contextmanager
def context_scope(context: Context) -> Iterator[Context]:
    """Activate *context* for the duration of a handler call."""

    token: Token[Context | None] = _CURRENT_CONTEXT.set(context)
    try:
        yield context
    finally:
        _CURRENT_CONTEXT.reset(token)


__all__ = ["Context", "ProgressSink", "context_scope", "get_context"]
