# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Composable envelope server."""

from __future__ import annotations

from collections.abc import AsyncIterable
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping

from .codec import EnvelopeWriter, SendBytes
from .dispatcher import DispatchConfig, Dispatcher
from .registry import OperationRegistry
from .services import CompletionService, PromptsService, ResourcesService, ToolsService
from .state import ServerState
from .transports import StdioTransport, iter_lines
from .. import types
from ..completion import CompletionSpec
from ..completion import reset_active_server as reset_completion_server
from ..completion import set_active_server as set_completion_server
from ..prompt import PromptSpec
from ..prompt import reset_active_server as reset_prompt_server
from ..prompt import set_active_server as set_prompt_server
from ..resource import ResourceSpec
from ..resource import reset_active_server as reset_resource_server
from ..resource import set_active_server as set_resource_server
from ..resource_template import ResourceTemplateSpec
from ..resource_template import reset_active_server as reset_resource_template_server
from ..resource_template import set_active_server as set_resource_template_server
from ..tool import ToolSpec
from ..tool import reset_active_server as reset_tool_server
from ..tool import set_active_server as set_tool_server
from ..utils import get_logger


class EnvelopeServer:
    """Registry, capability services and state behind one dispatch surface.

    Operations are registered either directly (``register_tool(fn)``) or by
    decorating functions inside :meth:`binding`::

        server = EnvelopeServer("demo", version="1.0.0")
        with server.binding():

            @tool(description="Adds two numbers")
            def add(a: float, b: float) -> float:
                return a + b

    History and counters live on :class:`ServerState`, which callers may
    inject so each test or connection works on isolated state.
    """

    def __init__(
        self,
        name: str,
        *,
        version: str | None = None,
        instructions: str | None = None,
        state: ServerState | None = None,
        config: DispatchConfig | None = None,
    ) -> None:
        self.name = name
        self.version = version or "0.0.0"
        self.instructions = instructions
        self.state = state or ServerState()
        self.config = config or DispatchConfig()
        self._logger = get_logger(f"calcmcp.server.{name}")
        self._registry = OperationRegistry()
        self._tools = ToolsService(self._registry, logger=self._logger)
        self._resources = ResourcesService(self._registry, logger=self._logger)
        self._prompts = PromptsService(self._registry, logger=self._logger)
        self._completions = CompletionService()

    # //////////////////////////////////////////////////////////////////
    # Capability services
    # //////////////////////////////////////////////////////////////////

    @property
    def registry(self) -> OperationRegistry:
        return self._registry

    @property
    def tools(self) -> ToolsService:
        return self._tools

    @property
    def resources(self) -> ResourcesService:
        return self._resources

    @property
    def prompts(self) -> PromptsService:
        return self._prompts

    @property
    def completions(self) -> CompletionService:
        return self._completions

    @property
    def tool_names(self) -> list[str]:
        return self._tools.tool_names

    @property
    def prompt_names(self) -> list[str]:
        return self._prompts.names

    # //////////////////////////////////////////////////////////////////
    # Registration
    # //////////////////////////////////////////////////////////////////

    def register_tool(self, target: ToolSpec | Callable[..., Any]) -> ToolSpec:
        return self._tools.register(target)

    def register_resource(self, target: ResourceSpec | Callable[[], Any]) -> ResourceSpec:
        return self._resources.register_resource(target)

    def register_resource_template(self, target: ResourceTemplateSpec | Callable[..., Any]) -> ResourceTemplateSpec:
        return self._resources.register_template(target)

    def register_prompt(self, target: PromptSpec | Callable[..., Any]) -> PromptSpec:
        return self._prompts.register(target)

    def register_completion(self, target: CompletionSpec | Callable[..., Any]) -> CompletionSpec:
        return self._completions.register(target)

    @contextmanager
    def binding(self) -> Iterator["EnvelopeServer"]:
        """Route ``@tool``/``@resource``/``@prompt``/... decorators to this server."""
        tool_token = set_tool_server(self)
        resource_token = set_resource_server(self)
        completion_token = set_completion_server(self)
        prompt_token = set_prompt_server(self)
        template_token = set_resource_template_server(self)
        try:
            yield self
        finally:
            reset_tool_server(tool_token)
            reset_resource_server(resource_token)
            reset_completion_server(completion_token)
            reset_prompt_server(prompt_token)
            reset_resource_template_server(template_token)

    # //////////////////////////////////////////////////////////////////
    # In-process invocation
    # //////////////////////////////////////////////////////////////////

    async def invoke_tool(self, name: str, **arguments: Any) -> types.CallToolResult:
        return await self._tools.call_tool(name, arguments)

    async def invoke_resource(self, uri: str) -> types.ReadResourceResult:
        return await self._resources.read(uri)

    async def invoke_prompt(self, name: str, *, arguments: Mapping[str, Any] | None = None) -> types.GetPromptResult:
        return await self._prompts.get_prompt(name, arguments)

    def initialize_result(self) -> types.InitializeResult:
        capabilities = types.ServerCapabilities(
            tools=types.ToolsCapability(listChanged=False),
            resources=types.ResourcesCapability(subscribe=False, listChanged=False),
            prompts=types.PromptsCapability(listChanged=False),
            completions=types.CompletionsCapability(),
        )
        return types.InitializeResult(
            protocolVersion=types.LATEST_PROTOCOL_VERSION,
            capabilities=capabilities,
            serverInfo=types.Implementation(name=self.name, version=self.version),
            instructions=self.instructions,
        )

    # //////////////////////////////////////////////////////////////////
    # Serving
    # //////////////////////////////////////////////////////////////////

    def create_dispatcher(self, send: SendBytes) -> Dispatcher:
        return Dispatcher(self, EnvelopeWriter(send), config=self.config, logger=get_logger("calcmcp.dispatcher"))

    async def serve_connection(self, chunks: AsyncIterable[bytes], send: SendBytes) -> None:
        """Serve one byte stream until it ends.

        Raises:
            EnvelopeDecodeError: On a malformed line when decode errors are fatal.
        """
        dispatcher = self.create_dispatcher(send)
        await dispatcher.run(iter_lines(chunks))

    async def serve_stdio(self, *, announce: bool = True) -> None:
        if announce:
            self._logger.info(
                "Serving %s %s via STDIO (%d tools, %d resources, %d prompts)",
                self.name,
                self.version,
                len(self.tool_names),
                len(self._registry.resources) + len(self._registry.templates),
                len(self.prompt_names),
            )
        await StdioTransport(self).run()


__all__ = ["EnvelopeServer"]
