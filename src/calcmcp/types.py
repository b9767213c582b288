# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Wire-level bindings shared across calcmcp.

The JSON-RPC envelopes and MCP result models come from the reference SDK's
generated Pydantic models (``mcp.types``); this module re-exports the subset
calcmcp speaks and adds the codes and payloads specific to this server.
"""

from __future__ import annotations

from typing import Final

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    CallToolResult,
    CompleteRequestParams,
    CompleteResult,
    Completion,
    CompletionArgument,
    CompletionContext,
    CompletionsCapability,
    EmptyResult,
    ErrorData,
    GetPromptResult,
    Implementation,
    InitializeResult,
    JSONRPCError,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    ListPromptsResult,
    ListResourcesResult,
    ListResourceTemplatesResult,
    ListToolsResult,
    Prompt,
    PromptArgument,
    PromptMessage,
    PromptReference,
    PromptsCapability,
    ReadResourceResult,
    RequestId,
    Resource,
    ResourcesCapability,
    ResourceTemplate,
    ResourceTemplateReference,
    ServerCapabilities,
    TextContent,
    TextResourceContents,
    Tool,
    ToolsCapability,
)
from pydantic import BaseModel, ConfigDict, Field


JSONRPC_VERSION: Final[str] = "2.0"

RESOURCE_NOT_FOUND: Final[int] = -32002
"""Requested resource address or id does not exist."""

REQUEST_TIMEOUT: Final[int] = -32001
"""Handler exceeded the configured per-request timeout."""

PROGRESS_METHOD: Final[str] = "progress"


class ProgressParams(BaseModel):
    """Payload of a ``progress`` notification."""

    model_config = ConfigDict(populate_by_name=True)

    related_request_id: RequestId = Field(alias="relatedRequestId")
    percent: int = Field(ge=0, le=100)
    message: str | None = None


__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JSONRPC_VERSION",
    "LATEST_PROTOCOL_VERSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "PROGRESS_METHOD",
    "REQUEST_TIMEOUT",
    "RESOURCE_NOT_FOUND",
    "CallToolResult",
    "CompleteRequestParams",
    "CompleteResult",
    "Completion",
    "CompletionArgument",
    "CompletionContext",
    "CompletionsCapability",
    "EmptyResult",
    "ErrorData",
    "GetPromptResult",
    "Implementation",
    "InitializeResult",
    "JSONRPCError",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "ListPromptsResult",
    "ListResourcesResult",
    "ListResourceTemplatesResult",
    "ListToolsResult",
    "ProgressParams",
    "Prompt",
    "PromptArgument",
    "PromptMessage",
    "PromptReference",
    "PromptsCapability",
    "ReadResourceResult",
    "RequestId",
    "Resource",
    "ResourcesCapability",
    "ResourceTemplate",
    "ResourceTemplateReference",
    "ServerCapabilities",
    "TextContent",
    "TextResourceContents",
    "Tool",
    "ToolsCapability",
]
