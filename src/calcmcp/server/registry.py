# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Operation registry shared by the capability services.

Descriptors are registered once at startup and never mutated afterwards.
Each capability class has its own namespace; registering a name twice in the
same class raises :class:`~calcmcp.errors.DuplicateRegistrationError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ..errors import DuplicateRegistrationError
from ..prompt import PromptSpec
from ..resource import ResourceSpec
from ..resource_template import ResourceTemplateSpec
from ..tool import ToolSpec
from ..utils import maybe_await


class Capability(str, Enum):
    TOOL = "tool"
    RESOURCE = "resource"
    PROMPT = "prompt"


Descriptor = Union[ToolSpec, ResourceSpec, ResourceTemplateSpec, PromptSpec]

_EXPECTED: dict[Capability, tuple[type, ...]] = {
    Capability.TOOL: (ToolSpec,),
    Capability.RESOURCE: (ResourceSpec, ResourceTemplateSpec),
    Capability.PROMPT: (PromptSpec,),
}


@dataclass(frozen=True, slots=True)
class Addressable:
    """One concrete resource address and the descriptor that serves it."""

    uri: str
    spec: ResourceSpec | ResourceTemplateSpec
    name: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedAddress:
    uri: str
    spec: ResourceSpec | ResourceTemplateSpec
    params: dict[str, str]


def _listed(item: str | Mapping[str, Any], template: ResourceTemplateSpec) -> Addressable:
    if isinstance(item, Mapping):
        return Addressable(
            uri=str(item["uri"]),
            spec=template,
            name=item.get("name"),
            description=item.get("description"),
        )
    return Addressable(uri=str(item), spec=template)


def descriptor_key(descriptor: Descriptor) -> str:
    if isinstance(descriptor, ResourceSpec):
        return descriptor.uri
    if isinstance(descriptor, ResourceTemplateSpec):
        return descriptor.uri_template
    return descriptor.name


class OperationRegistry:
    """Name-keyed store of tools, resources and prompts."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._resources: dict[str, ResourceSpec] = {}
        self._templates: dict[str, ResourceTemplateSpec] = {}
        self._prompts: dict[str, PromptSpec] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, capability: Capability, descriptor: Descriptor) -> Descriptor:
        if not isinstance(descriptor, _EXPECTED[capability]):
            raise TypeError(f"{type(descriptor).__name__} cannot be registered as a {capability.value}")

        key = descriptor_key(descriptor)
        if self._contains(capability, key):
            raise DuplicateRegistrationError(capability.value, key)

        if isinstance(descriptor, ToolSpec):
            self._tools[key] = descriptor
        elif isinstance(descriptor, ResourceSpec):
            self._resources[key] = descriptor
        elif isinstance(descriptor, ResourceTemplateSpec):
            self._templates[key] = descriptor
        else:
            self._prompts[key] = descriptor
        return descriptor

    def _contains(self, capability: Capability, key: str) -> bool:
        if capability is Capability.TOOL:
            return key in self._tools
        if capability is Capability.PROMPT:
            return key in self._prompts
        return key in self._resources or key in self._templates

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, capability: Capability, name: str) -> Descriptor | None:
        """Return the descriptor registered under *name*, or ``None``."""
        if capability is Capability.TOOL:
            return self._tools.get(name)
        if capability is Capability.PROMPT:
            return self._prompts.get(name)
        return self._resources.get(name) or self._templates.get(name)

    def names(self, capability: Capability) -> list[str]:
        if capability is Capability.TOOL:
            return list(self._tools)
        if capability is Capability.PROMPT:
            return list(self._prompts)
        return [*self._resources, *self._templates]

    @property
    def tools(self) -> list[ToolSpec]:
        return list(self._tools.values())

    @property
    def resources(self) -> list[ResourceSpec]:
        return list(self._resources.values())

    @property
    def templates(self) -> list[ResourceTemplateSpec]:
        return list(self._templates.values())

    @property
    def prompts(self) -> list[PromptSpec]:
        return list(self._prompts.values())

    # ------------------------------------------------------------------
    # Resource addressing
    # ------------------------------------------------------------------

    async def list_addressable(self) -> list[Addressable]:
        """Literal addresses followed by each template lister's current output.

        Listers run on every call; their output reflects state at call time.
        """
        entries = [Addressable(uri=uri, spec=spec) for uri, spec in self._resources.items()]
        for template in self._templates.values():
            if template.lister is None:
                continue
            for item in await maybe_await(template.lister):
                entries.append(_listed(item, template))
        return entries

    def resolve_address(self, uri: str) -> ResolvedAddress | None:
        """Match literals first, then templates in registration order."""
        literal = self._resources.get(uri)
        if literal is not None:
            return ResolvedAddress(uri=uri, spec=literal, params={})
        for template in self._templates.values():
            params = template.match(uri)
            if params is not None:
                return ResolvedAddress(uri=uri, spec=template, params=params)
        return None


__all__ = [
    "Addressable",
    "Capability",
    "Descriptor",
    "OperationRegistry",
    "ResolvedAddress",
    "descriptor_key",
]
