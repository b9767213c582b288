"""Static data served by the calculator resources."""

from __future__ import annotations

import math
from typing import Any, Final


SERVER_NAME: Final[str] = "calculator-learning-demo-stdio"
SERVER_VERSION: Final[str] = "1.0.0"
SERVER_DESCRIPTION: Final[str] = "Learning-edition calculator server demonstrating STDIO transport"

MATH_CONSTANTS: Final[dict[str, float]] = {
    "pi": math.pi,
    "e": math.e,
    "phi": (1 + math.sqrt(5)) / 2,
    "sqrt2": math.sqrt(2),
    "ln2": math.log(2),
    "ln10": math.log(10),
}

FORMULAS_LIBRARY: Final[list[dict[str, Any]]] = [
    {
        "name": "Quadratic Formula",
        "formula": "x = (-b ± √(b² - 4ac)) / 2a",
        "description": "Solves quadratic equations of the form ax² + bx + c = 0",
    },
    {
        "name": "Pythagorean Theorem",
        "formula": "a² + b² = c²",
        "description": "Relates the sides of a right triangle",
    },
    {
        "name": "Area of Circle",
        "formula": "A = πr²",
        "description": "Calculates the area of a circle given its radius",
    },
    {
        "name": "Compound Interest",
        "formula": "A = P(1 + r/n)^(nt)",
        "description": "Calculates compound interest over time",
    },
    {
        "name": "Distance Formula",
        "formula": "d = √((x₂-x₁)² + (y₂-y₁)²)",
        "description": "Calculates distance between two points",
    },
]

INSTRUCTIONS: Final[str] = f"""{SERVER_DESCRIPTION}

This server provides:
1. Tools: calculate, batch_calculate, advanced_calculate, demo_progress, solve_math_problem, explain_formula, calculator_assistant
2. Resources: calculator://constants, calculator://stats, calculator://history, calculator://history/{{calculationId}}, formulas://library
3. Prompts: explain-calculation, generate-problems, calculator-tutor"""


__all__ = [
    "FORMULAS_LIBRARY",
    "INSTRUCTIONS",
    "MATH_CONSTANTS",
    "SERVER_DESCRIPTION",
    "SERVER_NAME",
    "SERVER_VERSION",
]
