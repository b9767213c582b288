"""Prompt and guidance texts for the calculator."""

from __future__ import annotations

from collections.abc import Sequence


DEFAULT_OPERATIONS = ("add", "subtract", "multiply", "divide")


def explain_calculation_text(expression: str, level: str = "intermediate") -> str:
    return f"""Please explain the calculation "{expression}" at an {level} level.

Include:
- What the operation means
- Step-by-step breakdown
- Why this calculation might be useful
- Common mistakes to avoid

Make the explanation clear and educational."""


def generate_problems_text(
    difficulty: str = "medium",
    count: int = 5,
    operations: Sequence[str] | None = None,
) -> str:
    ops = ", ".join(operations or DEFAULT_OPERATIONS)
    return f"""Generate {count} math practice problems at {difficulty} difficulty level.

Use these operations: {ops}

For each problem:
1. Provide the problem statement
2. Leave space for the student to work
3. Include the answer (marked clearly)

Make the problems progressively challenging and educational."""


def calculator_tutor_text(topic: str, level: str = "beginner") -> str:
    return f"""Act as a friendly and patient math tutor helping a {level} student with "{topic}".

Your approach should:
- Start by assessing what the student already knows
- Break down complex concepts into simple steps
- Use relatable examples and analogies
- Encourage the student with positive reinforcement
- Provide practice problems appropriate to their level

Begin the tutoring session by introducing yourself and the topic."""


def solve_problem_text(problem: str, show_steps: bool = False) -> str:
    steps = (
        "\n### Steps:\n"
        "1. Analyze the problem\n"
        "2. Identify key values\n"
        "3. Apply appropriate formula\n"
        "4. Calculate result\n"
        if show_steps
        else ""
    )
    return (
        f"## Solving: {problem}\n\n"
        "This is a demonstration of the solve_math_problem tool.\n"
        f"{steps}\n"
        "**Note**: A full implementation could ask the user for clarification before solving."
    )


def explain_formula_text(formula: str, examples: bool = False) -> str:
    example_block = (
        "\n### Examples:\n"
        "- Example calculations would be shown here\n"
        "- Visual representations might be included\n"
        if examples
        else ""
    )
    return (
        f"## Formula Explanation: {formula}\n\n"
        "This tool provides interactive explanations of mathematical formulas.\n"
        f"{example_block}\n"
        "**Note**: A full implementation could walk through the formula interactively."
    )


def assistant_text(query: str, context: str | None = None) -> str:
    context_line = f"**Context**: {context}\n" if context else ""
    return (
        "## Calculator Assistant\n\n"
        f"**Query**: {query}\n"
        f"{context_line}\n"
        "I can help you with:\n"
        "- Basic arithmetic operations\n"
        "- Advanced calculations (factorials, logarithms, etc.)\n"
        "- Formula explanations\n"
        "- Step-by-step problem solving\n\n"
        "**Note**: A full implementation could ask follow-up questions for clarification."
    )


__all__ = [
    "DEFAULT_OPERATIONS",
    "assistant_text",
    "calculator_tutor_text",
    "explain_calculation_text",
    "explain_formula_text",
    "generate_problems_text",
    "solve_problem_text",
]
