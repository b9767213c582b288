# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Completion providers for prompt arguments and resource template variables.

A provider answers ``completion/complete`` for one prompt or one resource
template.  It may be scoped to a single argument name with ``argument=``;
an unscoped provider answers for every argument of its target that has no
scoped provider of its own::

    @completion(prompt="generate-problems", argument="difficulty")
    def difficulty(argument, context):
        return [d for d in ("easy", "medium", "hard") if d.startswith(argument.value)]

Each ``(target, key, argument)`` slot holds at most one provider.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from . import types


if TYPE_CHECKING:
    from collections.abc import Callable

    from .server import EnvelopeServer

CompletionTarget = Literal["prompt", "resource"]


@dataclass(frozen=True, slots=True)
class CompletionSpec:
    target: CompletionTarget
    key: str  # prompt name or resource template URI
    fn: Callable[..., Any]
    argument: str | None = None

    @property
    def slot(self) -> tuple[str, str, str | None]:
        return (self.target, self.key, self.argument)

    def describe(self) -> str:
        label = f"{self.target} {self.key}"
        return f"{label} argument {self.argument}" if self.argument else label


def target_of(ref: types.PromptReference | types.ResourceTemplateReference) -> tuple[CompletionTarget, str]:
    """Map a wire reference onto the ``(target, key)`` pair providers register under."""
    if isinstance(ref, types.PromptReference):
        return "prompt", ref.name
    return "resource", ref.uri


_COMPLETION_ATTR = "__calcmcp_completion__"
_ACTIVE_SERVER: ContextVar[EnvelopeServer | None] = ContextVar("_calcmcp_completion_server", default=None)


def set_active_server(server: EnvelopeServer) -> Any:
    return _ACTIVE_SERVER.set(server)


def reset_active_server(token: Any) -> None:
    _ACTIVE_SERVER.reset(token)


def completion(
    *,
    prompt: str | None = None,
    resource: str | None = None,
    argument: str | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a callable as the completion provider for a prompt or a template.

    Exactly one of ``prompt`` or ``resource`` must be given.  The provider is
    called with the :class:`~calcmcp.types.CompletionArgument` being typed and
    the optional :class:`~calcmcp.types.CompletionContext`, and returns either
    an iterable of strings or a ready :class:`~calcmcp.types.Completion`.
    """
    if (prompt is None) == (resource is None):
        raise ValueError("Provide exactly one of 'prompt' or 'resource'.")

    target: CompletionTarget = "prompt" if prompt is not None else "resource"
    key = prompt if prompt is not None else resource

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        spec = CompletionSpec(target=target, key=key, fn=fn, argument=argument)  # type: ignore[arg-type]
        setattr(fn, _COMPLETION_ATTR, spec)

        server = _ACTIVE_SERVER.get()
        if server is not None:
            server.register_completion(spec)
        return fn

    return decorator


def extract_completion_spec(fn: Callable[..., Any]) -> CompletionSpec | None:
    spec = getattr(fn, _COMPLETION_ATTR, None)
    return spec if isinstance(spec, CompletionSpec) else None


__all__ = [
    "CompletionSpec",
    "CompletionTarget",
    "completion",
    "extract_completion_spec",
    "reset_active_server",
    "set_active_server",
    "target_of",
]
