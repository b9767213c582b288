# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Completion capability service."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from ... import types
from ...completion import CompletionSpec, extract_completion_spec, target_of
from ...errors import DuplicateRegistrationError
from ...utils import get_logger, maybe_await_with_args


MAX_COMPLETION_VALUES = 100

_logger = get_logger("calcmcp.completions")


class CompletionService:
    """Holds completion providers keyed by target, key and argument name."""

    def __init__(self) -> None:
        self._specs: dict[tuple[str, str, str | None], CompletionSpec] = {}

    def register(self, target: CompletionSpec | Callable[..., Any]) -> CompletionSpec:
        spec = target if isinstance(target, CompletionSpec) else extract_completion_spec(target)
        if spec is None:
            raise TypeError("register_completion expects a CompletionSpec or a function decorated with @completion")
        if spec.slot in self._specs:
            raise DuplicateRegistrationError("completion", spec.describe())
        self._specs[spec.slot] = spec
        _logger.debug("Registered completion provider for %s", spec.describe())
        return spec

    def provider_for(
        self, ref: types.PromptReference | types.ResourceTemplateReference, argument_name: str
    ) -> CompletionSpec | None:
        """Scoped provider for *argument_name* first, then the target's catch-all."""
        target, key = target_of(ref)
        return self._specs.get((target, key, argument_name)) or self._specs.get((target, key, None))

    async def execute(
        self,
        ref: types.PromptReference | types.ResourceTemplateReference,
        argument: types.CompletionArgument,
        context: types.CompletionContext | None = None,
    ) -> types.Completion:
        spec = self.provider_for(ref, argument.name)
        if spec is None:
            return types.Completion(values=[])
        result = await maybe_await_with_args(spec.fn, argument, context)
        return _to_completion(result)


def _to_completion(result: Any) -> types.Completion:
    if result is None:
        return types.Completion(values=[])
    if isinstance(result, types.Completion):
        values, total, has_more = list(result.values), result.total, result.hasMore
    elif isinstance(result, Iterable) and not isinstance(result, (str, bytes)):
        values, total, has_more = [str(value) for value in result], None, None
    else:
        raise TypeError(f"Unsupported completion result type: {type(result)!r}")

    if len(values) > MAX_COMPLETION_VALUES:
        total = total if total is not None else len(values)
        values, has_more = values[:MAX_COMPLETION_VALUES], True
    return types.Completion(values=values, total=total, hasMore=has_more)


__all__ = ["MAX_COMPLETION_VALUES", "CompletionService"]
