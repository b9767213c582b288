# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Prompt capability service."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any

from mcp.shared.exceptions import McpError

from ..adapters import normalize_prompt_result, unwrap_outcome
from ..registry import Capability, OperationRegistry
from ... import types
from ...prompt import PromptSpec, extract_prompt_spec
from ...results import Failure
from ...utils import maybe_await_with_args
from ...utils.schema import validate_params


class PromptsService:
    def __init__(self, registry: OperationRegistry, *, logger: logging.Logger) -> None:
        self._registry = registry
        self._logger = logger

    @property
    def names(self) -> list[str]:
        return self._registry.names(Capability.PROMPT)

    def register(self, target: PromptSpec | Callable[..., Any]) -> PromptSpec:
        spec = target if isinstance(target, PromptSpec) else extract_prompt_spec(target)
        if spec is None:
            fn = target
            spec = PromptSpec(name=getattr(fn, "__name__", "anonymous"), fn=fn, description=fn.__doc__)
        self._registry.register(Capability.PROMPT, spec)
        return spec

    def get(self, name: str) -> PromptSpec | None:
        spec = self._registry.lookup(Capability.PROMPT, name)
        return spec if isinstance(spec, PromptSpec) else None

    def require(self, name: str) -> PromptSpec:
        spec = self.get(name)
        if spec is None:
            raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Unknown prompt: {name}"))
        return spec

    async def list_prompts(self) -> types.ListPromptsResult:
        prompts = [
            types.Prompt(
                name=spec.name,
                title=spec.title,
                description=spec.description,
                arguments=spec.arguments() or None,
            )
            for spec in self._registry.prompts
        ]
        return types.ListPromptsResult(prompts=prompts)

    def bind(self, spec: PromptSpec, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
        return validate_params(spec.params_shape, arguments)

    async def render(self, spec: PromptSpec, kwargs: Mapping[str, Any]) -> types.GetPromptResult | Failure:
        outcome = unwrap_outcome(await maybe_await_with_args(spec.fn, **kwargs))
        if isinstance(outcome, Failure):
            return outcome
        return normalize_prompt_result(outcome, description=spec.description)

    async def get_prompt(self, name: str, arguments: Mapping[str, Any] | None = None) -> types.GetPromptResult:
        """In-process render; a :class:`Failure` is raised as ``McpError``."""
        spec = self.require(name)
        result = await self.render(spec, self.bind(spec, arguments))
        if isinstance(result, Failure):
            raise McpError(result.to_error())
        return result


__all__ = ["PromptsService"]
