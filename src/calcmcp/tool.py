# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool registration utilities for calcmcp.

When an :class:`~calcmcp.server.EnvelopeServer` instance enters its
:meth:`binding <calcmcp.server.EnvelopeServer.binding>` context, functions
decorated with :func:`tool` are registered immediately.  Outside a binding the
decorator only attaches a :class:`ToolSpec`, which can be registered later
with ``server.register_tool(fn)``.
"""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from .utils.schema import signature_model


if TYPE_CHECKING:  # pragma: no cover - type-checking helpers only
    from .server import EnvelopeServer

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

ToolFn = Callable[..., Any]


@dataclass(slots=True)
class ToolSpec:
    """In-memory representation of a tool definition.

    ``input_model`` is the declared parameter shape; when omitted the shape is
    derived from the handler signature.  ``output_model`` is optional and, when
    present, every value the handler returns is checked against it.
    """

    name: str
    fn: ToolFn
    description: str = ""
    title: str | None = None
    input_model: type[BaseModel] | None = None
    output_model: Any = None
    _shape: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def params_shape(self) -> Any:
        if self._shape is None:
            self._shape = self.input_model if self.input_model is not None else signature_model(self.fn)
        return self._shape


_TOOL_ATTR = "__calcmcp_tool__"
_ACTIVE_SERVER: ContextVar[EnvelopeServer | None] = ContextVar("_calcmcp_active_server", default=None)


def get_active_server() -> EnvelopeServer | None:
    """Return the server currently binding tool definitions, if any."""
    return _ACTIVE_SERVER.get()


def set_active_server(server: EnvelopeServer) -> Any:
    return _ACTIVE_SERVER.set(server)


def reset_active_server(token: Any) -> None:
    _ACTIVE_SERVER.reset(token)


def tool(
    name: str | None = None,
    *,
    description: str | None = None,
    title: str | None = None,
    input_model: type[BaseModel] | None = None,
    output_model: Any = None,
) -> Callable[[ToolFn], ToolFn]:
    """Decorator that marks a callable as a tool.

    With ``input_model`` the handler receives the model's fields as keyword
    arguments.  Handlers may be sync or async and may return a plain value,
    :class:`~calcmcp.results.Success` or :class:`~calcmcp.results.Failure`.
    """

    def decorator(fn: ToolFn) -> ToolFn:
        desc = (description if description is not None else (fn.__doc__ or "")).strip()
        spec = ToolSpec(
            name=name or fn.__name__,
            fn=fn,
            description=desc,
            title=title,
            input_model=input_model,
            output_model=output_model,
        )
        setattr(fn, _TOOL_ATTR, spec)

        server = get_active_server()
        if server is not None:
            server.register_tool(spec)

        return fn

    return decorator


def extract_tool_spec(fn: ToolFn) -> ToolSpec | None:
    """Return the attached :class:`ToolSpec` for *fn*, if present."""
    spec = getattr(fn, _TOOL_ATTR, None)
    if isinstance(spec, ToolSpec):
        return spec
    return None


__all__ = [
    "ToolSpec",
    "ToolFn",
    "tool",
    "extract_tool_spec",
    "get_active_server",
    "set_active_server",
    "reset_active_server",
]
