"""Tests for completion providers and the completion service."""

from __future__ import annotations

import pytest

from calcmcp import completion, types
from calcmcp.errors import DuplicateRegistrationError
from calcmcp.server import EnvelopeServer


@pytest.mark.anyio
async def test_prompt_completion_registration() -> None:
    server = EnvelopeServer("comp")

    with server.binding():

        @completion(prompt="explain-calculation")
        def level(argument: types.CompletionArgument, context: types.CompletionContext | None):
            assert argument.name == "level"
            return [option for option in ("elementary", "intermediate") if option.startswith(argument.value)]

    ref = types.PromptReference(type="ref/prompt", name="explain-calculation")
    result = await server.completions.execute(ref, types.CompletionArgument(name="level", value="e"))
    assert result.values == ["elementary"]
    assert result.hasMore is None


@pytest.mark.anyio
async def test_resource_completion_limit_enforced() -> None:
    server = EnvelopeServer("comp-limit")
    ids = [f"calc-{i}" for i in range(150)]

    with server.binding():

        @completion(resource="calculator://history/{calculationId}")
        async def calculation_ids(argument: types.CompletionArgument, context: types.CompletionContext | None):
            return ids

    ref = types.ResourceTemplateReference(type="ref/resource", uri="calculator://history/{calculationId}")
    result = await server.completions.execute(ref, types.CompletionArgument(name="calculationId", value=""))

    assert len(result.values) == 100
    assert result.values[-1] == "calc-99"
    assert result.total == 150
    assert result.hasMore is True


@pytest.mark.anyio
async def test_completion_object_passes_through() -> None:
    server = EnvelopeServer("comp-result")

    @completion(prompt="generate-problems", argument="difficulty")
    def difficulty(argument: types.CompletionArgument, context: types.CompletionContext | None):
        return types.Completion(values=["easy"], total=3, hasMore=True)

    server.register_completion(difficulty)

    ref = types.PromptReference(type="ref/prompt", name="generate-problems")
    result = await server.completions.execute(ref, types.CompletionArgument(name="difficulty", value="e"))
    assert result.values == ["easy"]
    assert result.total == 3
    assert result.hasMore is True


@pytest.mark.anyio
async def test_scoped_provider_wins_over_catch_all() -> None:
    server = EnvelopeServer("comp-scoped")

    with server.binding():

        @completion(prompt="calculator-tutor", argument="level")
        def level(argument: types.CompletionArgument, context: types.CompletionContext | None):
            return ["beginner"]

        @completion(prompt="calculator-tutor")
        def anything(argument: types.CompletionArgument, context: types.CompletionContext | None):
            return [f"{argument.name}?"]

    ref = types.PromptReference(type="ref/prompt", name="calculator-tutor")
    scoped = await server.completions.execute(ref, types.CompletionArgument(name="level", value=""))
    fallback = await server.completions.execute(ref, types.CompletionArgument(name="topic", value=""))

    assert scoped.values == ["beginner"]
    assert fallback.values == ["topic?"]


def test_duplicate_completion_fails_at_registration() -> None:
    server = EnvelopeServer("comp-dupes")

    @completion(prompt="explain-calculation", argument="level")
    def first(argument: types.CompletionArgument, context: types.CompletionContext | None):
        return []

    @completion(prompt="explain-calculation", argument="level")
    def second(argument: types.CompletionArgument, context: types.CompletionContext | None):
        return []

    server.register_completion(first)
    with pytest.raises(DuplicateRegistrationError, match="explain-calculation argument level"):
        server.register_completion(second)


def test_other_argument_of_same_prompt_is_a_separate_slot() -> None:
    server = EnvelopeServer("comp-slots")

    with server.binding():

        @completion(prompt="generate-problems", argument="difficulty")
        def difficulty(argument: types.CompletionArgument, context: types.CompletionContext | None):
            return []

        @completion(prompt="generate-problems", argument="operations")
        def operations(argument: types.CompletionArgument, context: types.CompletionContext | None):
            return []

    ref = types.PromptReference(type="ref/prompt", name="generate-problems")
    assert server.completions.provider_for(ref, "difficulty").fn is difficulty  # type: ignore[union-attr]
    assert server.completions.provider_for(ref, "operations").fn is operations  # type: ignore[union-attr]


@pytest.mark.anyio
async def test_unsupported_provider_result_raises() -> None:
    server = EnvelopeServer("comp-bad")

    @completion(resource="calculator://history/{calculationId}")
    def bad(argument: types.CompletionArgument, context: types.CompletionContext | None):
        return "calc-1"

    server.register_completion(bad)
    ref = types.ResourceTemplateReference(type="ref/resource", uri="calculator://history/{calculationId}")
    with pytest.raises(TypeError):
        await server.completions.execute(ref, types.CompletionArgument(name="calculationId", value=""))


@pytest.mark.anyio
async def test_unknown_reference_completes_to_nothing() -> None:
    server = EnvelopeServer("comp-empty")
    ref = types.PromptReference(type="ref/prompt", name="missing")
    result = await server.completions.execute(ref, types.CompletionArgument(name="x", value=""))
    assert result.values == []


def test_completion_requires_exactly_one_target() -> None:
    with pytest.raises(ValueError):
        completion()
    with pytest.raises(ValueError):
        completion(prompt="a", resource="b")
