# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import logging
from typing import Any

import anyio
from mcp.shared.exceptions import McpError
from pydantic import BaseModel
import pytest

from calcmcp import Failure, get_context, prompt, resource, tool, types
from calcmcp.errors import EnvelopeDecodeError
from calcmcp.server import DispatchConfig, EnvelopeServer, ServerState
from calcmcp.server.codec import EnvelopeWriter, decode_envelope
from calcmcp.server.dispatcher import INTERNAL_ERROR_MESSAGE, Dispatcher
from tests.helpers import RecordingOutput, call, envelope, feed, notification, serve_lines


class Point(BaseModel):
    x: int


def build_server(config: DispatchConfig | None = None) -> EnvelopeServer:
    server = EnvelopeServer("dispatch-test", version="0.0.1", config=config, state=ServerState())

    with server.binding():

        @tool(description="Adds two numbers")
        def add(a: float, b: float) -> float:
            return a + b

        @tool()
        def divide(a: float, b: float) -> float | Failure:
            if b == 0:
                return Failure("Division by zero")
            return a / b

        @tool()
        def explode() -> None:
            raise RuntimeError("secret token 1234")

        @tool()
        def guarded() -> None:
            raise McpError(types.ErrorData(code=types.RESOURCE_NOT_FOUND, message="Nothing here"))

        @tool(output_model=Point)
        def bad_shape() -> dict[str, Any]:
            return {"x": "not a number"}

        @tool(output_model=Point)
        def good_shape() -> dict[str, Any]:
            return {"x": 3}

        @tool()
        async def steps() -> dict[str, Any]:
            ctx = get_context()
            for percent in (10, 50, 90):
                await ctx.report_progress(percent, f"at {percent}")
            return {"done": True}

        @tool()
        async def slow(delay: float) -> float:
            await anyio.sleep(delay)
            return delay

        @resource("test://info", description="Static info")
        def info() -> dict[str, Any]:
            return {"ok": True}

        @prompt("greet")
        def greet(name: str) -> str:
            return f"Hello {name}"

    return server


# ---------------------------------------------------------------------------
# Terminal states
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_completed_request_returns_result() -> None:
    response = await call(build_server(), "add", {"a": 5, "b": 3})
    assert response["result"] == {"result": 8.0}
    assert "error" not in response


@pytest.mark.anyio
async def test_unknown_method_fails_and_connection_continues() -> None:
    server = build_server()
    output = await serve_lines(
        server,
        envelope("no_such_method", {}, request_id=1),
        envelope("add", {"a": 1, "b": 1}, request_id=2),
    )

    assert output.response_for(1)["error"]["code"] == types.METHOD_NOT_FOUND
    assert output.response_for(2)["result"] == {"result": 2.0}


@pytest.mark.anyio
async def test_invalid_params_do_not_echo_input() -> None:
    response = await call(build_server(), "add", {"a": "secret-value", "b": 1})

    error = response["error"]
    assert error["code"] == types.INVALID_PARAMS
    assert error["message"].startswith("Invalid params: a:")
    assert "secret-value" not in error["message"]


@pytest.mark.anyio
async def test_missing_and_extra_params_are_invalid() -> None:
    server = build_server()

    missing = await call(server, "add", {"a": 1})
    assert missing["error"]["code"] == types.INVALID_PARAMS
    assert "b:" in missing["error"]["message"]

    extra = await call(server, "add", {"a": 1, "b": 2, "c": 3})
    assert extra["error"]["code"] == types.INVALID_PARAMS
    assert "c:" in extra["error"]["message"]


@pytest.mark.anyio
async def test_business_failure_is_reported_with_its_code() -> None:
    response = await call(build_server(), "divide", {"a": 10, "b": 0})
    assert response["error"] == {"code": types.INVALID_PARAMS, "message": "Division by zero"}


@pytest.mark.anyio
async def test_raised_mcp_error_is_a_structured_failure() -> None:
    response = await call(build_server(), "guarded")
    assert response["error"] == {"code": types.RESOURCE_NOT_FOUND, "message": "Nothing here"}


@pytest.mark.anyio
async def test_crash_is_opaque_on_the_wire_and_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        response = await call(build_server(), "explode")

    assert response["error"] == {"code": types.INTERNAL_ERROR, "message": INTERNAL_ERROR_MESSAGE}
    assert "secret token" not in str(response)
    assert "secret token 1234" in caplog.text


@pytest.mark.anyio
async def test_output_shape_mismatch_is_a_crash() -> None:
    server = build_server()

    bad = await call(server, "bad_shape")
    assert bad["error"]["code"] == types.INTERNAL_ERROR

    good = await call(server, "good_shape")
    assert good["result"] == {"x": 3}


@pytest.mark.anyio
async def test_every_request_is_counted_including_failures() -> None:
    server = build_server()
    await serve_lines(
        server,
        envelope("add", {"a": 1, "b": 2}),
        envelope("divide", {"a": 1, "b": 0}),
        envelope("missing"),
        notification("notifications/initialized"),
    )
    assert server.state.stats.request_count == 3


# ---------------------------------------------------------------------------
# Progress and concurrency
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_progress_precedes_the_response() -> None:
    output = await serve_lines(build_server(), envelope("steps", request_id="job-1"))

    messages = output.messages
    assert [message.get("method") for message in messages] == ["progress", "progress", "progress", None]
    assert output.progress_for("job-1") == [
        {"relatedRequestId": "job-1", "percent": 10, "message": "at 10"},
        {"relatedRequestId": "job-1", "percent": 50, "message": "at 50"},
        {"relatedRequestId": "job-1", "percent": 90, "message": "at 90"},
    ]
    assert messages[-1] == {"jsonrpc": "2.0", "id": "job-1", "result": {"done": True}}


@pytest.mark.anyio
async def test_each_request_gets_exactly_one_response() -> None:
    lines = [envelope("steps", request_id=index) for index in range(10)]
    lines += [envelope("add", {"a": index, "b": 1}, request_id=100 + index) for index in range(10)]
    output = await serve_lines(build_server(), *lines)

    response_ids = [message["id"] for message in output.responses()]
    assert sorted(response_ids) == sorted([*range(10), *range(100, 110)])

    messages = output.messages
    for request_id in range(10):
        final = next(i for i, m in enumerate(messages) if m.get("id") == request_id and "method" not in m)
        notes = [
            i
            for i, m in enumerate(messages)
            if m.get("method") == "progress" and m["params"]["relatedRequestId"] == request_id
        ]
        assert len(notes) == 3
        assert all(i < final for i in notes)


@pytest.mark.anyio
async def test_slow_handler_does_not_block_others() -> None:
    output = await serve_lines(
        build_server(),
        envelope("slow", {"delay": 0.2}, request_id="slow"),
        envelope("slow", {"delay": 0}, request_id="fast"),
    )
    assert [message["id"] for message in output.responses()] == ["fast", "slow"]


@pytest.mark.anyio
async def test_timeout_answers_once_and_discards_late_result() -> None:
    server = build_server(DispatchConfig(request_timeout=0.05))
    output = await serve_lines(server, envelope("slow", {"delay": 5}, request_id=1))

    assert len(output.responses()) == 1
    error = output.response_for(1)["error"]
    assert error["code"] == types.REQUEST_TIMEOUT


@pytest.mark.anyio
async def test_duplicate_in_flight_id_is_dropped() -> None:
    server = build_server()
    release = anyio.Event()
    calls: list[str] = []

    @tool()
    async def hold(tag: str) -> str:
        calls.append(tag)
        await release.wait()
        return tag

    server.register_tool(hold)
    output = RecordingOutput()
    dispatcher = Dispatcher(server, EnvelopeWriter(output.send))

    first = decode_envelope(envelope("hold", {"tag": "first"}, request_id=7)).request
    second = decode_envelope(envelope("hold", {"tag": "second"}, request_id=7)).request
    assert first is not None and second is not None

    async with anyio.create_task_group() as tg:
        tg.start_soon(dispatcher.handle_request, first)
        await anyio.wait_all_tasks_blocked()
        assert 7 in dispatcher.in_flight
        await dispatcher.handle_request(second)
        release.set()

    assert calls == ["first"]
    assert output.response_for(7)["result"] == {"result": "first"}
    assert dispatcher.in_flight == frozenset()


@pytest.mark.anyio
async def test_id_can_be_reused_after_completion() -> None:
    output = await serve_lines(build_server(), envelope("add", {"a": 1, "b": 1}, request_id=1))
    output_again = await serve_lines(build_server(), envelope("add", {"a": 2, "b": 2}, request_id=1))
    assert output.response_for(1)["result"] == {"result": 2.0}
    assert output_again.response_for(1)["result"] == {"result": 4.0}


# ---------------------------------------------------------------------------
# Decode policy
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_malformed_line_is_fatal_by_default() -> None:
    server = build_server()
    output = RecordingOutput()

    with pytest.raises(EnvelopeDecodeError):
        await server.serve_connection(
            feed([envelope("slow", {"delay": 5}, request_id=1), b"{not json\n", envelope("add", {"a": 1, "b": 1})]),
            output.send,
        )

    # The in-flight handler was cancelled and nothing after the bad line ran.
    assert output.writes == []


@pytest.mark.anyio
async def test_lenient_mode_rejects_and_continues() -> None:
    server = build_server(DispatchConfig(fatal_decode_errors=False))
    output = await serve_lines(
        server,
        b"{not json\n",
        b'{"id": 5, "method": "ping"}\n',
        envelope("add", {"a": 2, "b": 2}, request_id=6),
    )

    parse_error, invalid, result = output.messages
    assert parse_error["id"] is None
    assert parse_error["error"]["code"] == types.PARSE_ERROR
    assert invalid["id"] == 5
    assert invalid["error"]["code"] == types.INVALID_REQUEST
    assert result == {"jsonrpc": "2.0", "id": 6, "result": {"result": 4.0}}


@pytest.mark.anyio
async def test_lenient_mode_drops_malformed_line_reusing_in_flight_id(caplog: pytest.LogCaptureFixture) -> None:
    server = build_server(DispatchConfig(fatal_decode_errors=False))
    with caplog.at_level(logging.WARNING):
        output = await serve_lines(
            server,
            envelope("slow", {"delay": 0.05}, request_id=5),
            b'{"jsonrpc":"2.0","id":5,"params":{}}\n',
            envelope("add", {"a": 1, "b": 2}, request_id=6),
        )

    assert output.response_for(5)["result"] == {"result": 0.05}
    assert output.response_for(6)["result"] == {"result": 3.0}
    assert len(output.responses()) == 2
    assert "already in flight" in caplog.text


@pytest.mark.anyio
async def test_notifications_and_peer_responses_produce_no_output() -> None:
    output = await serve_lines(
        build_server(),
        notification("notifications/initialized"),
        b'{"jsonrpc":"2.0","id":99,"result":{}}\n',
    )
    assert output.writes == []


# ---------------------------------------------------------------------------
# Method surface
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_initialize_and_ping() -> None:
    server = build_server()

    init = await call(server, "initialize", {"protocolVersion": types.LATEST_PROTOCOL_VERSION})
    assert init["result"]["serverInfo"] == {"name": "dispatch-test", "version": "0.0.1"}
    assert set(init["result"]["capabilities"]) >= {"tools", "resources", "prompts"}

    pong = await call(server, "ping")
    assert pong["result"] == {}


@pytest.mark.anyio
async def test_tools_list_and_call() -> None:
    server = build_server()

    listed = await call(server, "tools/list")
    names = [entry["name"] for entry in listed["result"]["tools"]]
    assert "add" in names
    add = next(entry for entry in listed["result"]["tools"] if entry["name"] == "add")
    assert add["inputSchema"]["required"] == ["a", "b"]

    called = await call(server, "tools/call", {"name": "add", "arguments": {"a": 2, "b": 3}})
    assert called["result"]["structuredContent"] == {"result": 5.0}
    assert called["result"]["content"][0]["type"] == "text"


@pytest.mark.anyio
async def test_tools_call_failures() -> None:
    server = build_server()

    unknown = await call(server, "tools/call", {"name": "nope"})
    assert unknown["error"]["code"] == types.METHOD_NOT_FOUND

    nameless = await call(server, "tools/call", {"arguments": {}})
    assert nameless["error"]["code"] == types.INVALID_PARAMS

    failed = await call(server, "tools/call", {"name": "divide", "arguments": {"a": 1, "b": 0}})
    assert failed["error"]["message"] == "Division by zero"


@pytest.mark.anyio
async def test_resource_reads() -> None:
    server = build_server()

    direct = await call(server, "read_resource", {"uri": "test://info"})
    assert direct["result"] == {"ok": True}

    protocol = await call(server, "resources/read", {"uri": "test://info"})
    contents = protocol["result"]["contents"]
    assert contents[0]["mimeType"] == "application/json"
    assert '"ok": true' in contents[0]["text"]

    missing = await call(server, "read_resource", {"uri": "test://missing"})
    assert missing["error"]["code"] == types.RESOURCE_NOT_FOUND


@pytest.mark.anyio
async def test_prompt_direct_and_protocol_style() -> None:
    server = build_server()

    direct = await call(server, "greet", {"name": "Ada"})
    assert direct["result"]["messages"] == [{"role": "user", "content": {"type": "text", "text": "Hello Ada"}}]

    protocol = await call(server, "prompts/get", {"name": "greet", "arguments": {"name": "Lin"}})
    assert protocol["result"]["messages"][0]["content"]["text"] == "Hello Lin"

    listed = await call(server, "prompts/list")
    assert listed["result"]["prompts"][0]["arguments"] == [{"name": "name", "required": True}]
