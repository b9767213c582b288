# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Prompt registration utilities.

Prompts render parameterised conversational content.  A handler may return a
plain string (wrapped as a single user message), a sequence of
``PromptMessage`` objects or mappings, or a full ``GetPromptResult``.
"""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from . import types
from .utils.schema import signature_model


if TYPE_CHECKING:  # pragma: no cover
    from .server import EnvelopeServer

PromptFn = Callable[..., Any]


@dataclass(slots=True)
class PromptSpec:
    name: str
    fn: PromptFn
    description: str | None = None
    title: str | None = None
    input_model: type[BaseModel] | None = None
    _shape: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def params_shape(self) -> Any:
        if self._shape is None:
            self._shape = self.input_model if self.input_model is not None else signature_model(self.fn)
        return self._shape

    def arguments(self) -> list[types.PromptArgument]:
        """Advertised arguments, taken from the parameter shape."""
        shape = self.params_shape
        if not (isinstance(shape, type) and issubclass(shape, BaseModel)):
            return []
        return [
            types.PromptArgument(name=name, description=info.description, required=info.is_required())
            for name, info in shape.model_fields.items()
        ]


_PROMPT_ATTR = "__calcmcp_prompt__"
_ACTIVE_SERVER: ContextVar[EnvelopeServer | None] = ContextVar("_calcmcp_prompt_server", default=None)


def get_active_server() -> EnvelopeServer | None:
    return _ACTIVE_SERVER.get()


def set_active_server(server: EnvelopeServer) -> object:
    return _ACTIVE_SERVER.set(server)


def reset_active_server(token: object) -> None:
    _ACTIVE_SERVER.reset(token)


def prompt(
    name: str | None = None,
    *,
    description: str | None = None,
    title: str | None = None,
    input_model: type[BaseModel] | None = None,
) -> Callable[[PromptFn], PromptFn]:
    """Register a prompt renderer."""

    def decorator(fn: PromptFn) -> PromptFn:
        spec = PromptSpec(
            name=name or fn.__name__,
            fn=fn,
            description=description if description is not None else (fn.__doc__ or "").strip() or None,
            title=title,
            input_model=input_model,
        )
        setattr(fn, _PROMPT_ATTR, spec)

        server = get_active_server()
        if server is not None:
            server.register_prompt(spec)
        return fn

    return decorator


def extract_prompt_spec(fn: PromptFn) -> PromptSpec | None:
    spec = getattr(fn, _PROMPT_ATTR, None)
    if isinstance(spec, PromptSpec):
        return spec
    return None


__all__ = [
    "PromptSpec",
    "PromptFn",
    "prompt",
    "extract_prompt_spec",
    "set_active_server",
    "reset_active_server",
]
