# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Helpers for calling handlers that may be sync or async."""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Resolve *value*: call it if callable, then await the outcome if needed."""
    if callable(value) and not inspect.isawaitable(value):
        value = value()
    if inspect.isawaitable(value):
        return await value
    return value


async def maybe_await_with_args(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *target* with the given arguments and await the result if needed.

    Awaitables and plain values pass through; the arguments are ignored for them.
    """
    if callable(target) and not inspect.isawaitable(target):
        target = target(*args, **kwargs)
    if inspect.isawaitable(target):
        return await target
    return target


__all__ = ["maybe_await", "maybe_await_with_args"]
