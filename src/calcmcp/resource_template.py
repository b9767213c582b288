# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource template registration utilities.

A template address such as ``calculator://history/{calculationId}`` names a
family of resources.  Reading a concrete address extracts the placeholder
values and passes them to the handler as keyword arguments.  The optional
``lister`` enumerates the concrete addresses that currently exist; it is
called afresh every time resources are listed.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from contextvars import ContextVar
from dataclasses import dataclass, field
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

from .resource import JSON_MIME_TYPE


if TYPE_CHECKING:  # pragma: no cover
    from .server import EnvelopeServer

TemplateFn = Callable[..., Any]
ListerFn = Callable[[], Iterable[str] | Awaitable[Iterable[str]]]

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def compile_uri_template(template: str) -> tuple[re.Pattern[str], tuple[str, ...]]:
    """Compile *template* into an anchored regex and its placeholder names.

    Each placeholder matches one non-empty path segment.

    Raises:
        ValueError: If the template has stray braces, repeats a placeholder,
            or contains no placeholder at all.
    """
    names: list[str] = []
    parts: list[str] = []
    position = 0
    for match in _PLACEHOLDER.finditer(template):
        literal = template[position : match.start()]
        if "{" in literal or "}" in literal:
            raise ValueError(f"Malformed URI template: {template!r}")
        name = match.group(1)
        if name in names:
            raise ValueError(f"Placeholder {name!r} repeated in URI template {template!r}")
        names.append(name)
        parts.append(re.escape(literal))
        parts.append(f"(?P<{name}>[^/]+)")
        position = match.end()

    tail = template[position:]
    if "{" in tail or "}" in tail:
        raise ValueError(f"Malformed URI template: {template!r}")
    if not names:
        raise ValueError(f"URI template {template!r} has no placeholders; register it as a resource")
    parts.append(re.escape(tail))
    return re.compile("^" + "".join(parts) + "$"), tuple(names)


@dataclass(slots=True)
class ResourceTemplateSpec:
    uri_template: str
    fn: TemplateFn
    name: str | None = None
    description: str | None = None
    mime_type: str = JSON_MIME_TYPE
    lister: ListerFn | None = None
    pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)
    placeholders: tuple[str, ...] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        self.pattern, self.placeholders = compile_uri_template(self.uri_template)

    def match(self, uri: str) -> dict[str, str] | None:
        """Return placeholder values if *uri* is an instance of this template."""
        found = self.pattern.match(uri)
        if found is None:
            return None
        return {name: unquote(value) for name, value in found.groupdict().items()}


_TEMPLATE_ATTR = "__calcmcp_resource_template__"
_ACTIVE_SERVER: ContextVar[EnvelopeServer | None] = ContextVar("_calcmcp_resource_template_server", default=None)


def get_active_server() -> EnvelopeServer | None:
    return _ACTIVE_SERVER.get()


def set_active_server(server: EnvelopeServer) -> object:
    return _ACTIVE_SERVER.set(server)


def reset_active_server(token: object) -> None:
    _ACTIVE_SERVER.reset(token)


def resource_template(
    uri_template: str,
    *,
    name: str | None = None,
    description: str | None = None,
    mime_type: str = JSON_MIME_TYPE,
    lister: ListerFn | None = None,
) -> Callable[[TemplateFn], TemplateFn]:
    """Register a templated resource handler.

    The handler's parameters must be named after the template placeholders.
    """

    def decorator(fn: TemplateFn) -> TemplateFn:
        spec = ResourceTemplateSpec(
            uri_template=uri_template,
            fn=fn,
            name=name or fn.__name__,
            description=description if description is not None else (fn.__doc__ or "").strip() or None,
            mime_type=mime_type,
            lister=lister,
        )
        setattr(fn, _TEMPLATE_ATTR, spec)

        server = get_active_server()
        if server is not None:
            server.register_resource_template(spec)
        return fn

    return decorator


def extract_resource_template_spec(fn: TemplateFn) -> ResourceTemplateSpec | None:
    spec = getattr(fn, _TEMPLATE_ATTR, None)
    if isinstance(spec, ResourceTemplateSpec):
        return spec
    return None


__all__ = [
    "ResourceTemplateSpec",
    "compile_uri_template",
    "extract_resource_template_spec",
    "reset_active_server",
    "resource_template",
    "set_active_server",
]
