# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource capability service."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from mcp.shared.exceptions import McpError

from ..adapters import normalize_resource_payload, to_jsonable, unwrap_outcome
from ..registry import Addressable, Capability, OperationRegistry, ResolvedAddress
from ... import types
from ...resource import ResourceSpec, extract_resource_spec
from ...resource_template import ResourceTemplateSpec, extract_resource_template_spec
from ...results import Failure
from ...utils import maybe_await_with_args


class ResourcesService:
    """Registers resources and templates, lists addresses and reads payloads."""

    def __init__(self, registry: OperationRegistry, *, logger: logging.Logger) -> None:
        self._registry = registry
        self._logger = logger

    @property
    def uris(self) -> list[str]:
        return self._registry.names(Capability.RESOURCE)

    def register_resource(self, target: ResourceSpec | Callable[[], Any]) -> ResourceSpec:
        spec = target if isinstance(target, ResourceSpec) else extract_resource_spec(target)
        if spec is None:
            raise TypeError("register_resource expects a ResourceSpec or a function decorated with @resource")
        self._registry.register(Capability.RESOURCE, spec)
        return spec

    def register_template(self, target: ResourceTemplateSpec | Callable[..., Any]) -> ResourceTemplateSpec:
        spec = target if isinstance(target, ResourceTemplateSpec) else extract_resource_template_spec(target)
        if spec is None:
            raise TypeError(
                "register_resource_template expects a ResourceTemplateSpec or a function decorated with "
                "@resource_template"
            )
        self._registry.register(Capability.RESOURCE, spec)
        return spec

    async def list_resources(self) -> types.ListResourcesResult:
        entries = await self._registry.list_addressable()
        return types.ListResourcesResult(resources=[self._describe(entry) for entry in entries])

    async def list_templates(self) -> types.ListResourceTemplatesResult:
        templates = [
            types.ResourceTemplate(
                name=spec.name or spec.uri_template,
                uriTemplate=spec.uri_template,
                description=spec.description,
                mimeType=spec.mime_type,
            )
            for spec in self._registry.templates
        ]
        return types.ListResourceTemplatesResult(resourceTemplates=templates)

    def resolve(self, uri: str) -> ResolvedAddress:
        resolved = self._registry.resolve_address(uri)
        if resolved is None:
            raise McpError(types.ErrorData(code=types.RESOURCE_NOT_FOUND, message=f"Resource not found: {uri}"))
        return resolved

    async def read_payload(self, resolved: ResolvedAddress) -> Any:
        """Run the resource handler; returns JSON-ready data or a :class:`Failure`."""
        outcome = unwrap_outcome(await maybe_await_with_args(resolved.spec.fn, **resolved.params))
        if isinstance(outcome, Failure):
            return outcome
        return to_jsonable(outcome)

    async def read(self, uri: str) -> types.ReadResourceResult:
        """In-process read; a :class:`Failure` is raised as ``McpError``."""
        resolved = self.resolve(uri)
        payload = await self.read_payload(resolved)
        if isinstance(payload, Failure):
            raise McpError(payload.to_error())
        return self.render(resolved, payload)

    def render(self, resolved: ResolvedAddress, payload: Any) -> types.ReadResourceResult:
        return normalize_resource_payload(resolved.uri, resolved.spec.mime_type, payload)

    @staticmethod
    def _describe(entry: Addressable) -> types.Resource:
        spec = entry.spec
        return types.Resource(
            uri=entry.uri,
            name=entry.name or spec.name or entry.uri,
            description=entry.description if entry.description is not None else spec.description,
            mimeType=spec.mime_type,
        )


__all__ = ["ResourcesService"]
