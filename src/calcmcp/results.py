# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Typed outcomes for business rules.

Handlers return :class:`Failure` for expected, caller-actionable problems
(division by zero, unknown history id, ...).  Raised exceptions are reserved
for genuine faults, which the dispatcher reports as opaque internal errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from . import types


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Failure:
    """An expected failure with a stable error code and caller-safe message."""

    message: str
    code: int = types.INVALID_PARAMS

    def to_error(self) -> types.ErrorData:
        return types.ErrorData(code=self.code, message=self.message)


Outcome = Success[T] | Failure


def not_found(message: str) -> Failure:
    return Failure(message, code=types.RESOURCE_NOT_FOUND)


def is_failure(value: Any) -> bool:
    return isinstance(value, Failure)


__all__ = ["Success", "Failure", "Outcome", "not_found", "is_failure"]
