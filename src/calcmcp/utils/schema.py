# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Parameter and result shapes backed by Pydantic.

Every registered operation has a *shape*: either an explicit
:class:`pydantic.BaseModel` subclass or one synthesised from the handler's
signature.  This module turns shapes into validators and advertised JSON
Schema, and renders validation failures into caller-safe messages.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from functools import lru_cache
import inspect
from typing import Any, get_type_hints

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, create_model


__all__ = [
    "SchemaError",
    "adapter_for",
    "describe_validation_error",
    "json_schema_for",
    "signature_model",
    "validate_params",
]


class SchemaError(RuntimeError):
    """Raised when a shape cannot be derived from a handler."""


_OPEN_PARAMS = dict[str, Any]


def signature_model(fn: Callable[..., Any]) -> type[BaseModel] | type[dict[str, Any]]:
    """Build a params model from *fn*'s keyword-compatible parameters.

    Handlers taking ``*args`` or ``**kwargs`` get an open mapping instead.
    """
    signature = inspect.signature(fn)
    try:
        hints = get_type_hints(fn)
    except Exception as exc:
        raise SchemaError(f"Unable to resolve annotations for {fn!r}") from exc

    fields: dict[str, Any] = {}
    for name, param in signature.parameters.items():
        if param.kind not in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY):
            return _OPEN_PARAMS
        annotation = hints.get(name, Any)
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[name] = (annotation, default)

    model_name = "".join(part.title() for part in getattr(fn, "__name__", "handler").split("_")) + "Params"
    return create_model(model_name, __config__=ConfigDict(extra="forbid"), **fields)


@lru_cache(maxsize=None)
def adapter_for(shape: Any) -> TypeAdapter[Any]:
    return TypeAdapter(shape)


def validate_params(shape: Any, params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate *params* against *shape* and return handler keyword arguments.

    Raises:
        ValidationError: When the params do not match the declared shape.
    """
    validated = adapter_for(shape).validate_python(dict(params or {}))
    if isinstance(validated, BaseModel):
        # Shallow: nested models stay models for the handler.
        return {name: getattr(validated, name) for name in type(validated).model_fields}
    return dict(validated)


def json_schema_for(shape: Any) -> dict[str, Any]:
    """Return the advertised JSON Schema for *shape*, titles pruned."""
    try:
        schema = adapter_for(shape).json_schema()
    except Exception as exc:  # pragma: no cover - surface the original failure
        raise SchemaError(f"Unable to derive JSON schema for {shape!r}") from exc
    schema.setdefault("type", "object")
    _prune_titles(schema)
    return schema


def describe_validation_error(exc: ValidationError, *, prefix: str = "Invalid params") -> str:
    """Summarise *exc* by location and message only; input values are omitted."""
    parts = []
    for error in exc.errors(include_url=False, include_input=False):
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return f"{prefix}: {'; '.join(parts)}" if parts else prefix


def _prune_titles(schema: Any) -> None:
    if isinstance(schema, dict):
        schema.pop("title", None)
        for key, value in schema.items():
            if key != "properties":
                _prune_titles(value)
            elif isinstance(value, dict):
                for prop in value.values():
                    _prune_titles(prop)
    elif isinstance(schema, list):
        for item in schema:
            _prune_titles(item)
