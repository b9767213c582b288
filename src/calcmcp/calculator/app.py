# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Calculator server: tools, resources and prompts on one :class:`EnvelopeServer`.

Quick start::

    $ python -m calcmcp
    {"jsonrpc":"2.0","id":1,"method":"calculate","params":{"a":5,"b":3,"op":"add"}}
    {"jsonrpc":"2.0","id":1,"result":{"value":8.0,"meta":{...}}}
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import anyio

from . import operations, prompts
from .constants import FORMULAS_LIBRARY, INSTRUCTIONS, MATH_CONSTANTS, SERVER_NAME, SERVER_VERSION
from .models import (
    AdvancedCalculateInput,
    AdvancedCalculateResult,
    BatchCalculateInput,
    CalculateInput,
    CalculateResult,
    CalculationItem,
    CalculationMeta,
    CalculatorAssistantInput,
    CalculatorTutorArgs,
    ExplainCalculationArgs,
    ExplainFormulaInput,
    GenerateProblemsArgs,
    SolveMathProblemInput,
)
from .operations import AdvancedOperation, BasicOperation
from .. import types
from ..completion import completion
from ..context import get_context
from ..prompt import prompt
from ..resource import resource
from ..resource_template import resource_template
from ..results import Failure, not_found
from ..server import DispatchConfig, EnvelopeServer, ServerState
from ..server.batch import BatchItemOutcome, run_batch
from ..server.history import HistoryEntry
from ..tool import tool
from ..utils import get_logger


HISTORY_TEMPLATE = "calculator://history/{calculationId}"

_logger = get_logger("calcmcp.calculator")


@dataclass(slots=True)
class CalculatorSettings:
    """Pacing and display knobs for the calculator tools.

    Attributes:
        stream_step_delay: Pause after each of the three progress updates
            emitted by ``calculate`` with ``stream: true``.
        progress_step_delay: Pause before each of the five ``demo_progress``
            updates.
        history_display_limit: Entries shown by the history listing.
    """

    stream_step_delay: float = 0.1
    progress_step_delay: float = 0.5
    history_display_limit: int = 50


async def _report(percent: int, message: str | None = None) -> None:
    # In-process calls have no request context; progress has nowhere to go.
    try:
        ctx = get_context()
    except LookupError:
        return
    await ctx.report_progress(percent, message)


def create_calculator_server(
    settings: CalculatorSettings | None = None,
    *,
    config: DispatchConfig | None = None,
    state: ServerState | None = None,
) -> EnvelopeServer:
    """Build a calculator server with its own history and counters."""
    settings = settings or CalculatorSettings()
    server = EnvelopeServer(
        SERVER_NAME,
        version=SERVER_VERSION,
        instructions=INSTRUCTIONS,
        state=state,
        config=config,
    )
    history = server.state.history

    async def record(operation: str, a: float, b: float | None, result: float) -> HistoryEntry:
        expression = operations.format_expression(operation, a, b, result)
        return await history.record(operation, a, b, result, expression)

    with server.binding():
        # ------------------------------------------------------------------
        # Tools
        # ------------------------------------------------------------------

        @tool(
            title="Calculate",
            description="Perform a basic arithmetic calculation",
            input_model=CalculateInput,
            output_model=CalculateResult,
        )
        async def calculate(a: float, b: float, op: BasicOperation, stream: bool = False) -> CalculateResult | Failure:
            _logger.info("Executing calculate: %s %s %s", a, op, b)
            if stream:
                for percent, message in ((10, "Starting calculation"), (50, "Computing"), (90, "Recording result")):
                    await _report(percent, message)
                    await anyio.sleep(settings.stream_step_delay)

            outcome = operations.basic(op, a, b)
            if isinstance(outcome, Failure):
                return outcome
            entry = await record(op, a, b, outcome.value)
            return CalculateResult(
                value=entry.result,
                meta=CalculationMeta(calculationId=entry.id, timestamp=entry.timestamp),
            )

        @tool(
            title="Batch Calculate",
            description="Perform multiple calculations in a single request",
            input_model=BatchCalculateInput,
        )
        async def batch_calculate(calculations: list[CalculationItem]) -> dict[str, Any]:
            _logger.info("Executing batch calculations: %d operations", len(calculations))

            async def run_item(item: CalculationItem) -> BatchItemOutcome:
                outcome = operations.basic(item.op, item.a, item.b)
                if isinstance(outcome, Failure):
                    expression = operations.describe_request(item.op, item.a, item.b)
                    return BatchItemOutcome.failed(expression, outcome.message)
                entry = await record(item.op, item.a, item.b, outcome.value)
                return BatchItemOutcome.succeeded(entry.expression, entry.result, entry.id)

            results = await run_batch(calculations, run_item, concurrency=server.config.batch_concurrency)
            return {"results": [result.to_payload() for result in results]}

        @tool(
            title="Advanced Calculate",
            description="Perform advanced mathematical operations (factorial, log, combinations, permutations)",
            input_model=AdvancedCalculateInput,
            output_model=AdvancedCalculateResult,
        )
        async def advanced_calculate(
            operation: AdvancedOperation,
            n: float,
            k: float | None = None,
            base: float | None = None,
        ) -> AdvancedCalculateResult | Failure:
            _logger.info("Executing advanced calculation: %s", operation)
            outcome = operations.advanced(operation, n, k=k, base=base)
            if isinstance(outcome, Failure):
                return outcome
            second = base if operation == "log" else k
            entry = await record(operation, n, second, outcome.value)
            return AdvancedCalculateResult(value=entry.result, expression=entry.expression, calculationId=entry.id)

        @tool(title="Demo Progress", description="Demonstrate progress notifications with 5 updates")
        async def demo_progress() -> dict[str, Any]:
            steps = [20, 40, 60, 80, 100]
            for index, percent in enumerate(steps, start=1):
                await anyio.sleep(settings.progress_step_delay)
                await _report(percent, f"Step {index} of {len(steps)}")
            return {"message": "Progress demonstration completed", "progressSteps": steps}

        @tool(
            title="Solve Math Problem",
            description="Solve a word problem or mathematical expression",
            input_model=SolveMathProblemInput,
        )
        def solve_math_problem(problem: str, show_steps: bool = False) -> dict[str, str]:
            return {"text": prompts.solve_problem_text(problem, show_steps)}

        @tool(
            title="Explain Formula",
            description="Explain a mathematical formula",
            input_model=ExplainFormulaInput,
        )
        def explain_formula(formula: str, examples: bool = False) -> dict[str, str]:
            return {"text": prompts.explain_formula_text(formula, examples)}

        @tool(
            title="Calculator Assistant",
            description="Calculator assistance with context-aware help",
            input_model=CalculatorAssistantInput,
        )
        def calculator_assistant(query: str, context: str | None = None) -> dict[str, str]:
            return {"text": prompts.assistant_text(query, context)}

        # ------------------------------------------------------------------
        # Resources
        # ------------------------------------------------------------------

        @resource(
            "calculator://constants",
            name="math-constants",
            description="Common mathematical constants with high precision",
        )
        def constants() -> dict[str, float]:
            return dict(MATH_CONSTANTS)

        @resource("calculator://stats", name="calculator-stats", description="Server uptime and request count")
        def stats() -> dict[str, Any]:
            return server.state.stats.snapshot()

        @resource(
            "formulas://library",
            name="formulas-library",
            description="Collection of common mathematical formulas",
        )
        def formulas() -> dict[str, Any]:
            return {"formulas": [dict(item) for item in FORMULAS_LIBRARY]}

        @resource(
            "calculator://history",
            name="calculation-history-log",
            description="Most recent calculations, newest first",
        )
        def history_log() -> dict[str, Any]:
            return {"entries": [entry.to_payload() for entry in history.list(settings.history_display_limit)]}

        def list_history() -> list[dict[str, str]]:
            return [
                {
                    "uri": f"calculator://history/{entry.id}",
                    "name": entry.expression,
                    "description": f"Calculation performed at {entry.timestamp}",
                }
                for entry in history.list(settings.history_display_limit)
            ]

        @resource_template(
            HISTORY_TEMPLATE,
            name="calculation-history",
            description=f"Access the last {history.capacity} calculations by ID",
            lister=list_history,
        )
        def history_entry(calculationId: str) -> dict[str, Any] | Failure:
            entry = history.get(calculationId)
            if entry is None:
                return not_found(f"Calculation {calculationId} not found")
            return entry.to_payload()

        @completion(resource=HISTORY_TEMPLATE)
        def complete_calculation_id(
            argument: types.CompletionArgument, context: types.CompletionContext | None
        ) -> list[str]:
            return [entry_id for entry_id in history.ids() if entry_id.startswith(argument.value)]

        # ------------------------------------------------------------------
        # Prompts
        # ------------------------------------------------------------------

        @prompt(
            "explain-calculation",
            title="Explain Calculation",
            description="Generate detailed explanations of mathematical calculations",
            input_model=ExplainCalculationArgs,
        )
        def explain_calculation(expression: str, level: str = "intermediate") -> str:
            return prompts.explain_calculation_text(expression, level)

        @prompt(
            "generate-problems",
            title="Generate Problems",
            description="Create practice math problems",
            input_model=GenerateProblemsArgs,
        )
        def generate_problems(
            difficulty: str = "medium",
            count: int = 5,
            operations: list[str] | None = None,
        ) -> str:
            return prompts.generate_problems_text(difficulty, count, operations)

        @prompt(
            "calculator-tutor",
            title="Calculator Tutor",
            description="Interactive mathematics tutoring",
            input_model=CalculatorTutorArgs,
        )
        def calculator_tutor(topic: str, level: str = "beginner") -> str:
            return prompts.calculator_tutor_text(topic, level)

    server.register_completion(
        _option_completer("explain-calculation", "level", ("elementary", "intermediate", "advanced"))
    )
    server.register_completion(_option_completer("calculator-tutor", "level", ("beginner", "intermediate", "advanced")))
    server.register_completion(_option_completer("generate-problems", "difficulty", ("easy", "medium", "hard")))

    _logger.debug("Calculator server built with %d tools", len(server.tool_names))
    return server


def _option_completer(prompt_name: str, argument: str, options: Sequence[str]):
    """Completion provider offering fixed *options* for one prompt argument."""

    @completion(prompt=prompt_name, argument=argument)
    def complete(arg: types.CompletionArgument, context: types.CompletionContext | None) -> list[str]:
        return [option for option in options if option.startswith(arg.value)]

    return complete


__all__ = ["CalculatorSettings", "HISTORY_TEMPLATE", "create_calculator_server"]
