# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool capability service."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any

from mcp.shared.exceptions import McpError
from pydantic import ValidationError

from ..adapters import normalize_tool_result, to_jsonable, unwrap_outcome
from ..registry import Capability, OperationRegistry
from ... import types
from ...results import Failure
from ...tool import ToolSpec, extract_tool_spec
from ...utils import maybe_await_with_args
from ...utils.schema import adapter_for, json_schema_for, validate_params


class OutputShapeError(RuntimeError):
    """A tool returned a value that does not match its declared ``output_model``."""

    def __init__(self, tool_name: str, error: ValidationError) -> None:
        super().__init__(f"Tool {tool_name!r} returned output violating its declared shape")
        self.tool_name = tool_name
        self.error = error


class ToolsService:
    """Registers, lists and runs tools."""

    def __init__(self, registry: OperationRegistry, *, logger: logging.Logger) -> None:
        self._registry = registry
        self._logger = logger
        self._tool_defs: dict[str, types.Tool] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def tool_names(self) -> list[str]:
        return self._registry.names(Capability.TOOL)

    def register(self, target: ToolSpec | Callable[..., Any]) -> ToolSpec:
        spec = target if isinstance(target, ToolSpec) else extract_tool_spec(target)
        if spec is None:
            fn = target
            spec = ToolSpec(name=getattr(fn, "__name__", "anonymous"), fn=fn, description=(fn.__doc__ or "").strip())
        self._registry.register(Capability.TOOL, spec)
        self._tool_defs[spec.name] = self._build_definition(spec)
        return spec

    def get(self, name: str) -> ToolSpec | None:
        spec = self._registry.lookup(Capability.TOOL, name)
        return spec if isinstance(spec, ToolSpec) else None

    def require(self, name: str) -> ToolSpec:
        spec = self.get(name)
        if spec is None:
            raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))
        return spec

    async def list_tools(self) -> types.ListToolsResult:
        return types.ListToolsResult(tools=[self._tool_defs[name] for name in self.tool_names])

    def bind(self, spec: ToolSpec, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
        """Validate *arguments* against the tool's parameter shape.

        Raises:
            ValidationError: When the arguments do not match.
        """
        return validate_params(spec.params_shape, arguments)

    async def execute(self, spec: ToolSpec, kwargs: Mapping[str, Any]) -> Any:
        """Run the handler and return its JSON-ready output or a :class:`Failure`.

        Raises:
            OutputShapeError: When the output violates ``spec.output_model``.
        """
        outcome = unwrap_outcome(await maybe_await_with_args(spec.fn, **kwargs))
        if isinstance(outcome, Failure):
            return outcome
        if spec.output_model is not None:
            try:
                outcome = adapter_for(spec.output_model).validate_python(to_jsonable(outcome))
            except ValidationError as exc:
                raise OutputShapeError(spec.name, exc) from exc
        return to_jsonable(outcome)

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> types.CallToolResult:
        """Validate and run a tool in-process, outside any request.

        Failures come back as ``isError`` results rather than exceptions.
        """
        spec = self.get(name)
        if spec is None:
            return _error_result(f"Unknown tool: {name}")
        try:
            kwargs = self.bind(spec, arguments)
        except ValidationError as exc:
            return _error_result(f"Invalid arguments: {exc.error_count()} validation error(s)")
        outcome = await self.execute(spec, kwargs)
        if isinstance(outcome, Failure):
            return _error_result(outcome.message)
        return normalize_tool_result(outcome)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_definition(self, spec: ToolSpec) -> types.Tool:
        output_schema = None
        if spec.output_model is not None:
            output_schema = json_schema_for(spec.output_model)
        return types.Tool(
            name=spec.name,
            title=spec.title,
            description=spec.description or None,
            inputSchema=json_schema_for(spec.params_shape),
            outputSchema=output_schema,
        )


def _error_result(message: str) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=message)], isError=True)


__all__ = ["OutputShapeError", "ToolsService"]
