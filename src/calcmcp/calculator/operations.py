# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Pure arithmetic for the calculator tools.

Every function returns :class:`~calcmcp.results.Success` carrying a finite
``float`` or a :class:`~calcmcp.results.Failure` with a caller-safe message.
Nothing here raises for bad input and nothing here touches shared state.
"""

from __future__ import annotations

import math
from typing import Literal

from ..results import Failure, Outcome, Success


BasicOperation = Literal["add", "subtract", "multiply", "divide"]
AdvancedOperation = Literal["factorial", "log", "combinations", "permutations"]

MAX_FACTORIAL_INPUT = 170

_SYMBOLS: dict[str, str] = {"add": "+", "subtract": "-", "multiply": "×", "divide": "÷"}


def _finite(value: int | float) -> Outcome[float]:
    # Results are floats on the wire; ints beyond double range are overflow.
    try:
        result = float(value)
    except OverflowError:
        return Failure("Result overflow: value exceeds the representable range")
    if not math.isfinite(result):
        return Failure("Result overflow: result is not a finite number")
    return Success(result)


def _is_integral(value: float) -> bool:
    return math.isfinite(value) and float(value).is_integer()


def basic(op: BasicOperation, a: float, b: float) -> Outcome[float]:
    if op == "add":
        raw = a + b
    elif op == "subtract":
        raw = a - b
    elif op == "multiply":
        raw = a * b
    elif op == "divide":
        if b == 0:
            return Failure("Division by zero")
        raw = a / b
    else:
        return Failure(f"Unknown operation: {op}")
    return _finite(raw)


def factorial(n: float) -> Outcome[float]:
    if n < 0:
        return Failure("Factorial is not defined for negative numbers")
    if not _is_integral(n):
        return Failure("Factorial is only defined for integers")
    if n > MAX_FACTORIAL_INPUT:
        return Failure("Factorial too large")
    return _finite(math.factorial(int(n)))


def logarithm(n: float, base: float | None = None) -> Outcome[float]:
    """Natural log of *n*, or log to *base* when one is given."""
    if n <= 0:
        return Failure("Logarithm is only defined for positive numbers")
    if base is None:
        return _finite(math.log(n))
    if base <= 0 or base == 1:
        return Failure("Logarithm base must be positive and not equal to 1")
    return _finite(math.log(n) / math.log(base))


def _counting_inputs(name: str, n: float, k: float | None) -> tuple[int, int] | Failure:
    if k is None:
        return Failure(f"k is required for {name}")
    if n < 0 or k < 0 or not (_is_integral(n) and _is_integral(k)):
        return Failure(f"{name.capitalize()} require non-negative integers")
    return int(n), int(k)


def combinations(n: float, k: float | None) -> Outcome[float]:
    checked = _counting_inputs("combinations", n, k)
    if isinstance(checked, Failure):
        return checked
    total, chosen = checked
    if chosen > total:
        return Success(0.0)
    if total > MAX_FACTORIAL_INPUT:
        return Failure("Factorial too large")
    return _finite(math.comb(total, chosen))


def permutations(n: float, k: float | None) -> Outcome[float]:
    checked = _counting_inputs("permutations", n, k)
    if isinstance(checked, Failure):
        return checked
    total, chosen = checked
    if chosen > total:
        return Success(0.0)
    if total > MAX_FACTORIAL_INPUT:
        return Failure("Factorial too large")
    return _finite(math.perm(total, chosen))


def advanced(
    operation: AdvancedOperation,
    n: float,
    k: float | None = None,
    base: float | None = None,
) -> Outcome[float]:
    if operation == "factorial":
        return factorial(n)
    if operation == "log":
        return logarithm(n, base)
    if operation == "combinations":
        return combinations(n, k)
    if operation == "permutations":
        return permutations(n, k)
    return Failure(f"Unknown operation: {operation}")


def format_number(value: float | int | None) -> str:
    """Render like a calculator display: ``8`` rather than ``8.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and _is_integral(value) and abs(value) < 1e21:
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def format_expression(operation: str, a: float, b: float | None, result: float) -> str:
    """Human-readable form stored on history entries (``6 × 7 = 42``)."""
    lhs, rhs, value = format_number(a), format_number(b), format_number(result)
    symbol = _SYMBOLS.get(operation)
    if symbol is not None:
        return f"{lhs} {symbol} {rhs} = {value}"
    if operation == "factorial":
        return f"{lhs}! = {value}"
    if operation == "log":
        return f"log{rhs}({lhs}) = {value}" if b else f"ln({lhs}) = {value}"
    if operation == "combinations":
        return f"C({lhs}, {rhs}) = {value}"
    if operation == "permutations":
        return f"P({lhs}, {rhs}) = {value}"
    args = lhs if b is None else f"{lhs}, {rhs}"
    return f"{operation}({args}) = {value}"


def describe_request(op: str, a: float, b: float) -> str:
    """Expression shown for a batch item that failed (``10 divide 0``)."""
    return f"{format_number(a)} {op} {format_number(b)}"


__all__ = [
    "AdvancedOperation",
    "BasicOperation",
    "MAX_FACTORIAL_INPUT",
    "advanced",
    "basic",
    "combinations",
    "describe_request",
    "factorial",
    "format_expression",
    "format_number",
    "logarithm",
    "permutations",
]
