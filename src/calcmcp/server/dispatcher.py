# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Request dispatcher.

Every request walks ``Received -> Validating -> Executing`` and ends in
exactly one of ``Completed``, ``Failed`` or ``Crashed``:

* unknown method or resource address: ``Failed`` straight from ``Received``;
* parameters that do not fit the declared shape: ``Failed`` with
  ``INVALID_PARAMS``, describing the violation but never echoing input;
* a handler returning :class:`~calcmcp.results.Failure` or raising
  ``McpError``: ``Failed`` with the handler's code and message;
* any other exception, including output that breaks a declared result shape:
  ``Crashed``.  The traceback goes to the log and the peer sees only
  ``INTERNAL_ERROR`` / ``"Internal error"``.

Handlers run concurrently in one task group.  Progress notifications and
final responses share a single :class:`~calcmcp.server.codec.EnvelopeWriter`,
so envelopes interleave between requests but never within one.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any

import anyio
from anyio.abc import TaskGroup
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, ConfigDict, ValidationError

from .adapters import dump_result, normalize_tool_result, to_result_object
from .codec import DecodedEnvelope, EnvelopeKind, EnvelopeWriter, decode_envelope, encode_error, encode_result
from .. import types
from ..context import Context, ProgressSink, context_scope
from ..errors import EnvelopeDecodeError
from ..results import Failure
from ..utils import get_logger
from ..utils.schema import describe_validation_error


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .core import EnvelopeServer


INTERNAL_ERROR_MESSAGE = "Internal error"


@dataclass(slots=True)
class DispatchConfig:
    """Dispatcher policy knobs.

    Attributes:
        request_timeout: Seconds before a handler is cancelled and answered
            with ``REQUEST_TIMEOUT``.  ``None`` disables the timeout.
        fatal_decode_errors: Stop the connection on the first malformed line.
            When ``False`` the line is answered with an error and skipped.
        batch_concurrency: Items a batch may run at once; ``None`` runs them
            one after another.
    """

    request_timeout: float | None = None
    fatal_decode_errors: bool = True
    batch_concurrency: int | None = None


class RequestPhase(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    CRASHED = "crashed"


@dataclass(slots=True)
class Invocation:
    """One routed request, split along the dispatcher's phases.

    ``bind`` validates parameters, ``execute`` runs the handler on the bound
    value, and ``render`` turns the handler output into the response result.
    """

    bind: Callable[[], Any]
    execute: Callable[[Any], Awaitable[Any]]
    render: Callable[[Any], dict[str, Any]] = to_result_object


# ---------------------------------------------------------------------------
# Protocol-style params
# ---------------------------------------------------------------------------


class _NamedCallParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    arguments: dict[str, Any] | None = None


class _ReadParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uri: str


class Dispatcher:
    """Routes decoded requests to the server's capability services."""

    def __init__(
        self,
        server: EnvelopeServer,
        writer: EnvelopeWriter,
        *,
        config: DispatchConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._server = server
        self._writer = writer
        self._config = config or DispatchConfig()
        self._logger = logger or get_logger("calcmcp.dispatcher")
        self._in_flight: set[types.RequestId] = set()
        self._methods: dict[str, Callable[[dict[str, Any]], Invocation]] = {
            "initialize": self._plan_initialize,
            "ping": self._plan_ping,
            "tools/list": self._plan_list_tools,
            "tools/call": self._plan_call_tool,
            "resources/list": self._plan_list_resources,
            "resources/templates/list": self._plan_list_templates,
            "resources/read": self._plan_read_resource,
            "read_resource": self._plan_read_resource_direct,
            "prompts/list": self._plan_list_prompts,
            "prompts/get": self._plan_get_prompt,
            "completion/complete": self._plan_complete,
        }

    @property
    def in_flight(self) -> frozenset[types.RequestId]:
        return frozenset(self._in_flight)

    # ------------------------------------------------------------------
    # Connection loop
    # ------------------------------------------------------------------

    async def run(self, lines: AsyncIterable[str]) -> None:
        """Dispatch every line until the input ends, then drain in-flight handlers.

        Raises:
            EnvelopeDecodeError: On a malformed line when decode errors are
                fatal.  In-flight handlers are cancelled first.
        """
        fatal: EnvelopeDecodeError | None = None
        async with anyio.create_task_group() as tg:
            async for line in lines:
                try:
                    envelope = decode_envelope(line)
                except EnvelopeDecodeError as exc:
                    if self._config.fatal_decode_errors:
                        self._logger.error("Malformed envelope, closing connection: %s", exc)
                        fatal = exc
                        tg.cancel_scope.cancel()
                        break
                    await self._reject(exc)
                    continue
                self._route(envelope, tg)
        if fatal is not None:
            raise fatal

    async def _reject(self, exc: EnvelopeDecodeError) -> None:
        if exc.request_id is not None and exc.request_id in self._in_flight:
            # The in-flight request owns the only response for this id.
            self._logger.warning("Dropping malformed envelope: id %r is already in flight", exc.request_id)
            return
        self._logger.warning("Rejecting malformed envelope: %s", exc)
        message = "Parse error" if exc.code == types.PARSE_ERROR else "Invalid request"
        await self._writer.send_error(exc.request_id, types.ErrorData(code=exc.code, message=message))

    def _route(self, envelope: DecodedEnvelope, tg: TaskGroup) -> None:
        if envelope.kind is EnvelopeKind.REQUEST and envelope.request is not None:
            if self.admit(envelope.request):
                tg.start_soon(self._serve_admitted, envelope.request, name=f"request {envelope.request.id!r}")
        elif envelope.kind is EnvelopeKind.NOTIFICATION:
            self._logger.debug("Notification %s received; no handler", envelope.method)
        else:
            raw = envelope.raw or {}
            self._logger.debug("Ignoring response envelope for id %r", raw.get("id"))

    # ------------------------------------------------------------------
    # Single request
    # ------------------------------------------------------------------

    def admit(self, request: types.JSONRPCRequest) -> bool:
        """Reserve the request id; a duplicate of an in-flight id is dropped."""
        if request.id in self._in_flight:
            self._logger.warning("Dropping request %r: id is already in flight", request.id)
            return False
        self._in_flight.add(request.id)
        return True

    async def handle_request(self, request: types.JSONRPCRequest) -> None:
        """Process one request and write its single response."""
        if self.admit(request):
            await self._serve_admitted(request)

    async def _serve_admitted(self, request: types.JSONRPCRequest) -> None:
        try:
            await self._server.state.stats.record_request()
            payload = await self._respond(request)
            await self._writer.write(payload)
        finally:
            self._in_flight.discard(request.id)

    async def _respond(self, request: types.JSONRPCRequest) -> bytes:
        timeout = self._config.request_timeout
        if timeout is None:
            return await self._process(request)

        with anyio.move_on_after(timeout):
            return await self._process(request)
        self._logger.warning("Request %r (%s) timed out after %gs", request.id, request.method, timeout)
        return encode_error(
            request.id,
            types.ErrorData(code=types.REQUEST_TIMEOUT, message=f"Request timed out after {timeout:g}s"),
        )

    async def _process(self, request: types.JSONRPCRequest) -> bytes:
        request_id, method = request.id, request.method
        params = dict(request.params or {})
        params.pop("_meta", None)

        phase = RequestPhase.RECEIVED
        self._trace(request_id, method, phase)
        try:
            invocation = self._plan(method, params)

            phase = RequestPhase.VALIDATING
            self._trace(request_id, method, phase)
            bound = invocation.bind()

            phase = RequestPhase.EXECUTING
            self._trace(request_id, method, phase)
            context = Context(request_id=request_id, method=method, _sink=self._progress_sink(request_id))
            with context_scope(context):
                outcome = await invocation.execute(bound)

            if isinstance(outcome, Failure):
                return self._failed(request_id, method, outcome.to_error())
            payload = encode_result(request_id, invocation.render(outcome))
        except McpError as exc:
            return self._failed(request_id, method, exc.error)
        except ValidationError as exc:
            if phase is RequestPhase.EXECUTING:
                return self._crashed(request_id, method)
            error = types.ErrorData(code=types.INVALID_PARAMS, message=describe_validation_error(exc))
            return self._failed(request_id, method, error)
        except Exception:
            return self._crashed(request_id, method)

        self._trace(request_id, method, RequestPhase.COMPLETED)
        return payload

    def _failed(self, request_id: types.RequestId, method: str, error: types.ErrorData) -> bytes:
        self._trace(request_id, method, RequestPhase.FAILED, error.message)
        return encode_error(request_id, error)

    def _crashed(self, request_id: types.RequestId, method: str) -> bytes:
        self._logger.exception("Handler for %s (id=%r) crashed", method, request_id)
        self._trace(request_id, method, RequestPhase.CRASHED)
        return encode_error(request_id, types.ErrorData(code=types.INTERNAL_ERROR, message=INTERNAL_ERROR_MESSAGE))

    def _trace(self, request_id: types.RequestId, method: str, phase: RequestPhase, detail: str | None = None) -> None:
        if detail is None:
            self._logger.debug("request %r %s: %s", request_id, method, phase.value)
        else:
            self._logger.debug("request %r %s: %s (%s)", request_id, method, phase.value, detail)

    def _progress_sink(self, request_id: types.RequestId) -> ProgressSink:
        async def sink(percent: int, message: str | None) -> None:
            await self._writer.send_progress(request_id, percent, message)

        return sink

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _plan(self, method: str, params: dict[str, Any]) -> Invocation:
        planner = self._methods.get(method)
        if planner is not None:
            return planner(params)

        tools = self._server.tools
        tool_spec = tools.get(method)
        if tool_spec is not None:
            return Invocation(
                bind=lambda: tools.bind(tool_spec, params),
                execute=lambda kwargs: tools.execute(tool_spec, kwargs),
            )

        prompts = self._server.prompts
        prompt_spec = prompts.get(method)
        if prompt_spec is not None:
            return Invocation(
                bind=lambda: prompts.bind(prompt_spec, params),
                execute=lambda kwargs: prompts.render(prompt_spec, kwargs),
                render=dump_result,
            )

        raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Method not found: {method}"))

    def _plan_initialize(self, params: dict[str, Any]) -> Invocation:
        async def execute(_: Any) -> types.InitializeResult:
            return self._server.initialize_result()

        return Invocation(bind=lambda: params, execute=execute, render=dump_result)

    def _plan_ping(self, params: dict[str, Any]) -> Invocation:
        async def execute(_: Any) -> dict[str, Any]:
            return {}

        return Invocation(bind=lambda: params, execute=execute)

    def _plan_list_tools(self, params: dict[str, Any]) -> Invocation:
        return Invocation(bind=lambda: params, execute=lambda _: self._server.tools.list_tools(), render=dump_result)

    def _plan_call_tool(self, params: dict[str, Any]) -> Invocation:
        tools = self._server.tools
        call = _NamedCallParams.model_validate(params)
        spec = tools.require(call.name)
        return Invocation(
            bind=lambda: tools.bind(spec, call.arguments),
            execute=lambda kwargs: tools.execute(spec, kwargs),
            render=lambda value: dump_result(normalize_tool_result(value)),
        )

    def _plan_list_resources(self, params: dict[str, Any]) -> Invocation:
        return Invocation(
            bind=lambda: params, execute=lambda _: self._server.resources.list_resources(), render=dump_result
        )

    def _plan_list_templates(self, params: dict[str, Any]) -> Invocation:
        return Invocation(
            bind=lambda: params, execute=lambda _: self._server.resources.list_templates(), render=dump_result
        )

    def _plan_read_resource(self, params: dict[str, Any]) -> Invocation:
        resources = self._server.resources
        resolved = resources.resolve(_ReadParams.model_validate(params).uri)
        return Invocation(
            bind=lambda: resolved,
            execute=resources.read_payload,
            render=lambda payload: dump_result(resources.render(resolved, payload)),
        )

    def _plan_read_resource_direct(self, params: dict[str, Any]) -> Invocation:
        resources = self._server.resources
        resolved = resources.resolve(_ReadParams.model_validate(params).uri)
        return Invocation(bind=lambda: resolved, execute=resources.read_payload)

    def _plan_list_prompts(self, params: dict[str, Any]) -> Invocation:
        return Invocation(
            bind=lambda: params, execute=lambda _: self._server.prompts.list_prompts(), render=dump_result
        )

    def _plan_get_prompt(self, params: dict[str, Any]) -> Invocation:
        prompts = self._server.prompts
        call = _NamedCallParams.model_validate(params)
        spec = prompts.require(call.name)
        return Invocation(
            bind=lambda: prompts.bind(spec, call.arguments),
            execute=lambda kwargs: prompts.render(spec, kwargs),
            render=dump_result,
        )

    def _plan_complete(self, params: dict[str, Any]) -> Invocation:
        async def execute(request: types.CompleteRequestParams) -> types.CompleteResult:
            completion = await self._server.completions.execute(request.ref, request.argument, request.context)
            return types.CompleteResult(completion=completion)

        return Invocation(
            bind=lambda: types.CompleteRequestParams.model_validate(params),
            execute=execute,
            render=dump_result,
        )


__all__ = ["DispatchConfig", "Dispatcher", "INTERNAL_ERROR_MESSAGE", "Invocation", "RequestPhase"]
