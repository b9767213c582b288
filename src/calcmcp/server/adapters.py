"""Normalization helpers for handler results.

Handlers return whatever is natural for them: plain mappings, Pydantic models,
strings, or :class:`~calcmcp.results.Success` / :class:`~calcmcp.results.Failure`
wrappers.  The adapters here turn those values into the JSON-ready payloads
and MCP result models the dispatcher puts on the wire.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, is_dataclass
from typing import Any

import orjson
from pydantic import BaseModel

from .. import types
from ..results import Success

__all__ = [
    "dump_result",
    "normalize_prompt_result",
    "normalize_resource_payload",
    "normalize_tool_result",
    "to_jsonable",
    "to_result_object",
    "unwrap_outcome",
]


def unwrap_outcome(value: Any) -> Any:
    """Strip a :class:`Success` wrapper; :class:`Failure` passes through."""
    if isinstance(value, Success):
        return value.value
    return value


def to_jsonable(value: Any) -> Any:
    """Convert models and dataclasses into plain JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def to_result_object(value: Any) -> dict[str, Any]:
    """Response ``result`` members are objects; wrap scalars as ``{"result": value}``."""
    plain = to_jsonable(value)
    if isinstance(plain, dict):
        return plain
    return {"result": plain}


def dump_result(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return orjson.dumps(value, option=orjson.OPT_INDENT_2).decode("utf-8")


def normalize_tool_result(value: Any) -> types.CallToolResult:
    """Wrap structured tool output in ``CallToolResult``.

    Text content carries a ``text`` member verbatim when the output has one,
    otherwise the JSON rendering of the structured output.
    """
    if isinstance(value, types.CallToolResult):
        return value

    structured = to_result_object(value)
    text = structured["text"] if isinstance(structured.get("text"), str) else _as_text(structured)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


def normalize_resource_payload(uri: str, declared_mime: str | None, payload: Any) -> types.ReadResourceResult:
    """Coerce resource handler output into ``ReadResourceResult``."""
    if isinstance(payload, types.ReadResourceResult):
        return payload

    if isinstance(payload, types.TextResourceContents):
        return types.ReadResourceResult(contents=[payload])

    text = _as_text(to_jsonable(payload))
    mime = declared_mime or ("text/plain" if isinstance(payload, str) else "application/json")
    return types.ReadResourceResult(contents=[types.TextResourceContents(uri=uri, mimeType=mime, text=text)])


def normalize_prompt_result(value: Any, *, description: str | None = None) -> types.GetPromptResult:
    """Coerce prompt handler output into ``GetPromptResult``."""
    if isinstance(value, types.GetPromptResult):
        return value

    if isinstance(value, str):
        messages = [_user_message(value)]
    elif isinstance(value, types.PromptMessage):
        messages = [value]
    elif isinstance(value, Mapping) and "messages" in value:
        return types.GetPromptResult.model_validate({"description": description, **value})
    elif isinstance(value, Iterable):
        messages = [_coerce_message(item) for item in value]
    else:
        raise TypeError(f"Unsupported prompt result type: {type(value)!r}")

    return types.GetPromptResult(description=description, messages=messages)


def _user_message(text: str) -> types.PromptMessage:
    return types.PromptMessage(role="user", content=types.TextContent(type="text", text=text))


def _coerce_message(item: Any) -> types.PromptMessage:
    if isinstance(item, types.PromptMessage):
        return item
    if isinstance(item, str):
        return _user_message(item)
    if isinstance(item, Mapping):
        return types.PromptMessage.model_validate(item)
    raise TypeError(f"Unsupported prompt message type: {type(item)!r}")
