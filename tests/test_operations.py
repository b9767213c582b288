# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import math

import pytest

from calcmcp import Failure, Success
from calcmcp.calculator import operations


@pytest.mark.parametrize(
    ("op", "a", "b", "expected"),
    [("add", 5, 3, 8.0), ("subtract", 5, 3, 2.0), ("multiply", 6, 7, 42.0), ("divide", 10, 4, 2.5)],
)
def test_basic_operations(op: str, a: float, b: float, expected: float) -> None:
    assert operations.basic(op, a, b) == Success(expected)  # type: ignore[arg-type]


def test_division_by_zero() -> None:
    assert operations.basic("divide", 10, 0) == Failure("Division by zero")


def test_overflow_is_a_failure() -> None:
    outcome = operations.basic("multiply", 1e308, 10)
    assert isinstance(outcome, Failure)
    assert outcome.message.startswith("Result overflow")


class TestAdvanced:
    def test_factorial(self) -> None:
        assert operations.factorial(5) == Success(120.0)
        assert operations.factorial(0) == Success(1.0)
        assert operations.factorial(170).value > 1e306  # type: ignore[union-attr]

    @pytest.mark.parametrize(
        ("n", "message"),
        [
            (-1, "Factorial is not defined for negative numbers"),
            (2.5, "Factorial is only defined for integers"),
            (171, "Factorial too large"),
        ],
    )
    def test_factorial_failures(self, n: float, message: str) -> None:
        assert operations.factorial(n) == Failure(message)

    def test_logarithm(self) -> None:
        assert operations.logarithm(100, 10) == Success(pytest.approx(2.0))
        assert operations.logarithm(math.e) == Success(pytest.approx(1.0))

    def test_logarithm_failures(self) -> None:
        assert operations.logarithm(0) == Failure("Logarithm is only defined for positive numbers")
        assert operations.logarithm(-4, 2) == Failure("Logarithm is only defined for positive numbers")
        assert operations.logarithm(8, 1) == Failure("Logarithm base must be positive and not equal to 1")
        assert operations.logarithm(8, -2) == Failure("Logarithm base must be positive and not equal to 1")

    def test_counting(self) -> None:
        assert operations.combinations(5, 2) == Success(10.0)
        assert operations.permutations(5, 2) == Success(20.0)
        assert operations.combinations(3, 5) == Success(0.0)
        assert operations.permutations(3, 5) == Success(0.0)

    def test_counting_failures(self) -> None:
        assert operations.combinations(5, None) == Failure("k is required for combinations")
        assert operations.permutations(5, 1.5) == Failure("Permutations require non-negative integers")
        assert operations.combinations(-5, 2) == Failure("Combinations require non-negative integers")
        assert operations.permutations(200, 3) == Failure("Factorial too large")

    def test_dispatch(self) -> None:
        assert operations.advanced("factorial", 4) == Success(24.0)
        assert operations.advanced("log", 8, base=2) == Success(pytest.approx(3.0))
        assert operations.advanced("combinations", 4, k=2) == Success(6.0)


@pytest.mark.parametrize(
    ("operation", "a", "b", "result", "expected"),
    [
        ("add", 5, 3, 8.0, "5 + 3 = 8"),
        ("multiply", 6, 7, 42.0, "6 × 7 = 42"),
        ("divide", 10, 4, 2.5, "10 ÷ 4 = 2.5"),
        ("factorial", 5, None, 120.0, "5! = 120"),
        ("log", 100, 10, 2.0, "log10(100) = 2"),
        ("log", 1, None, 0.0, "ln(1) = 0"),
        ("combinations", 5, 2, 10.0, "C(5, 2) = 10"),
        ("permutations", 5, 2, 20.0, "P(5, 2) = 20"),
    ],
)
def test_format_expression(operation: str, a: float, b: float | None, result: float, expected: str) -> None:
    assert operations.format_expression(operation, a, b, result) == expected


def test_format_number() -> None:
    assert operations.format_number(8.0) == "8"
    assert operations.format_number(-0.5) == "-0.5"
    assert operations.format_number(1e300) == "1e+300"
    assert operations.format_number(None) == ""


def test_describe_request() -> None:
    assert operations.describe_request("divide", 10, 0) == "10 divide 0"
