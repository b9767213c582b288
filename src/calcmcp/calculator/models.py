# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Parameter and result shapes for the calculator operations."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .operations import AdvancedOperation, BasicOperation
from ..server.batch import MAX_BATCH_SIZE, check_batch_size


class _Params(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# ---------------------------------------------------------------------------
# Tool inputs
# ---------------------------------------------------------------------------


class CalculateInput(_Params):
    a: float = Field(description="First operand")
    b: float = Field(description="Second operand")
    op: BasicOperation = Field(description="Operation to perform")
    stream: bool = Field(False, description="If true, emit progress notifications")


class CalculationItem(_Params):
    a: float
    b: float
    op: BasicOperation


class BatchCalculateInput(_Params):
    calculations: list[CalculationItem] = Field(min_length=1, max_length=MAX_BATCH_SIZE)

    @field_validator("calculations", mode="before")
    @classmethod
    def reject_oversized(cls, value: Any) -> Any:
        # Reject oversized batches before any item is looked at.
        if isinstance(value, (list, tuple)):
            check_batch_size(value)
        return value


class AdvancedCalculateInput(_Params):
    operation: AdvancedOperation
    n: float = Field(description="Primary input")
    k: float | None = Field(None, description="Secondary input for combinations/permutations")
    base: float | None = Field(None, description="Base for logarithm (default: e)")


class SolveMathProblemInput(_Params):
    problem: str = Field(description="The math problem to solve")
    show_steps: bool = Field(False, alias="showSteps", description="Show step-by-step solution")


class ExplainFormulaInput(_Params):
    formula: str = Field(description="The formula to explain")
    examples: bool = Field(False, description="Include examples")


class CalculatorAssistantInput(_Params):
    query: str = Field(description="The user query or question")
    context: str | None = Field(None, description="Additional context")


# ---------------------------------------------------------------------------
# Tool results
# ---------------------------------------------------------------------------


class CalculationMeta(BaseModel):
    calculationId: str
    timestamp: str


class CalculateResult(BaseModel):
    value: float
    meta: CalculationMeta


class AdvancedCalculateResult(BaseModel):
    value: float
    expression: str
    calculationId: str


# ---------------------------------------------------------------------------
# Prompt arguments
# ---------------------------------------------------------------------------


class ExplainCalculationArgs(_Params):
    expression: str = Field(description="The calculation to explain")
    level: Literal["elementary", "intermediate", "advanced"] = "intermediate"


class GenerateProblemsArgs(_Params):
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    count: int = Field(5, ge=1, le=10)
    operations: list[BasicOperation] | None = None

    @field_validator("operations", mode="before")
    @classmethod
    def split_operations(cls, value: Any) -> Any:
        # Prompt arguments arrive as strings over the protocol surface.
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


class CalculatorTutorArgs(_Params):
    topic: str = Field(description="The mathematical topic to tutor")
    level: Literal["beginner", "intermediate", "advanced"] = "beginner"


__all__ = [
    "AdvancedCalculateInput",
    "AdvancedCalculateResult",
    "BatchCalculateInput",
    "CalculateInput",
    "CalculateResult",
    "CalculationItem",
    "CalculationMeta",
    "CalculatorAssistantInput",
    "CalculatorTutorArgs",
    "ExplainCalculationArgs",
    "ExplainFormulaInput",
    "GenerateProblemsArgs",
    "SolveMathProblemInput",
]
