# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Batch coordinator.

The batch's *shape* is validated up front by the caller's parameter model, so
a malformed or oversized batch fails as a whole before any item runs.  Once
the batch is accepted, every item runs independently: an item that fails a
business rule becomes a failed :class:`BatchItemOutcome` and the batch still
completes.  Outcomes always come back in input order.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import anyio


MAX_BATCH_SIZE = 100

ItemT = TypeVar("ItemT")


@dataclass(frozen=True, slots=True)
class BatchItemOutcome:
    """Result of one batch item; never persisted beyond its response."""

    success: bool
    expression: str
    value: float | None = None
    calculation_id: str | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, expression: str, value: float, calculation_id: str) -> BatchItemOutcome:
        return cls(success=True, expression=expression, value=value, calculation_id=calculation_id)

    @classmethod
    def failed(cls, expression: str, error: str) -> BatchItemOutcome:
        return cls(success=False, expression=expression, error=error)

    def to_payload(self) -> dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "expression": self.expression,
                "value": self.value,
                "calculationId": self.calculation_id,
            }
        return {"success": False, "expression": self.expression, "error": self.error}


def check_batch_size(items: Sequence[Any], *, limit: int = MAX_BATCH_SIZE) -> None:
    """Raise ``ValueError`` for an empty batch or one larger than *limit*."""
    if not items:
        raise ValueError("Batch must contain at least one item")
    if len(items) > limit:
        raise ValueError(f"Batch too large: {len(items)} items exceeds the maximum of {limit}")


async def run_batch(
    items: Sequence[ItemT],
    run_item: Callable[[ItemT], Awaitable[BatchItemOutcome]],
    *,
    concurrency: int | None = None,
) -> list[BatchItemOutcome]:
    """Run *run_item* for every item and return outcomes in input order.

    Items run one after another unless *concurrency* allows more than one at a
    time, in which case a capacity limiter bounds the number in flight.
    Exceptions raised by *run_item* are faults, not item failures, and
    propagate.
    """
    if concurrency is None or concurrency <= 1:
        return [await run_item(item) for item in items]

    slots: list[BatchItemOutcome | None] = [None] * len(items)
    limiter = anyio.CapacityLimiter(concurrency)

    async def run_slot(index: int, item: ItemT) -> None:
        async with limiter:
            slots[index] = await run_item(item)

    async with anyio.create_task_group() as tg:
        for index, item in enumerate(items):
            tg.start_soon(run_slot, index, item)

    return [outcome for outcome in slots if outcome is not None]


__all__ = ["MAX_BATCH_SIZE", "BatchItemOutcome", "check_batch_size", "run_batch"]
