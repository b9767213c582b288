"""Resource registration utilities for calcmcp.

A resource is a read-only payload at a literal address such as
``calculator://constants``.  Usage mirrors the :mod:`calcmcp.tool` ambient
registration pattern.  Templated addresses live in
:mod:`calcmcp.resource_template`.
"""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:  # pragma: no cover
    from .server import EnvelopeServer

ResourceFn = Callable[[], Any]

JSON_MIME_TYPE = "application/json"


@dataclass(slots=True)
class ResourceSpec:
    uri: str
    fn: ResourceFn
    name: str | None = None
    description: str | None = None
    mime_type: str = JSON_MIME_TYPE


_RESOURCE_ATTR = "__calcmcp_resource__"
_ACTIVE_SERVER: ContextVar["EnvelopeServer | None"] = ContextVar(
    "_calcmcp_resource_server",
    default=None,
)


def get_active_server() -> "EnvelopeServer | None":
    return _ACTIVE_SERVER.get()


def set_active_server(server: "EnvelopeServer") -> object:
    return _ACTIVE_SERVER.set(server)


def reset_active_server(token: object) -> None:
    _ACTIVE_SERVER.reset(token)


def resource(
    uri: str,
    *,
    name: str | None = None,
    description: str | None = None,
    mime_type: str = JSON_MIME_TYPE,
) -> Callable[[ResourceFn], ResourceFn]:
    """Register a resource-producing callable.

    The decorated function takes no arguments and returns a JSON-serialisable
    payload (or a :class:`~calcmcp.results.Failure`).  Registration happens
    immediately if inside :meth:`calcmcp.server.EnvelopeServer.binding`.
    """

    def decorator(fn: ResourceFn) -> ResourceFn:
        spec = ResourceSpec(
            uri=uri,
            fn=fn,
            name=name or fn.__name__,
            description=description if description is not None else (fn.__doc__ or "").strip() or None,
            mime_type=mime_type,
        )
        setattr(fn, _RESOURCE_ATTR, spec)

        server = get_active_server()
        if server is not None:
            server.register_resource(spec)
        return fn

    return decorator


def extract_resource_spec(fn: ResourceFn) -> ResourceSpec | None:
    spec = getattr(fn, _RESOURCE_ATTR, None)
    if isinstance(spec, ResourceSpec):
        return spec
    return None


__all__ = [
    "JSON_MIME_TYPE",
    "resource",
    "ResourceSpec",
    "extract_resource_spec",
    "set_active_server",
    "reset_active_server",
]
