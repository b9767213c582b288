# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import anyio
import orjson
import pytest

from calcmcp import types
from calcmcp.errors import EnvelopeDecodeError
from calcmcp.server.codec import (
    EnvelopeKind,
    EnvelopeWriter,
    decode_envelope,
    encode_error,
    encode_progress,
    encode_result,
)


class TestDecode:
    def test_request_with_id_and_method(self) -> None:
        decoded = decode_envelope('{"jsonrpc":"2.0","id":7,"method":"calculate","params":{"a":1}}')

        assert decoded.kind is EnvelopeKind.REQUEST
        assert decoded.request is not None
        assert decoded.request.id == 7
        assert decoded.method == "calculate"
        assert decoded.request.params == {"a": 1}

    def test_string_ids_are_preserved(self) -> None:
        decoded = decode_envelope(b'{"jsonrpc":"2.0","id":"abc","method":"ping"}')
        assert decoded.request is not None
        assert decoded.request.id == "abc"

    def test_notification_has_no_id(self) -> None:
        decoded = decode_envelope('{"jsonrpc":"2.0","method":"notifications/initialized"}')

        assert decoded.kind is EnvelopeKind.NOTIFICATION
        assert decoded.notification is not None
        assert decoded.method == "notifications/initialized"

    def test_peer_response_is_classified(self) -> None:
        decoded = decode_envelope('{"jsonrpc":"2.0","id":3,"result":{}}')
        assert decoded.kind is EnvelopeKind.RESPONSE
        assert decoded.method is None

    def test_invalid_json_is_a_parse_error(self) -> None:
        with pytest.raises(EnvelopeDecodeError) as excinfo:
            decode_envelope('{"jsonrpc":"2.0",')

        assert excinfo.value.code == types.PARSE_ERROR
        assert excinfo.value.request_id is None

    @pytest.mark.parametrize("line", ["[1, 2]", '"text"', "42", "null"])
    def test_non_object_is_rejected(self, line: str) -> None:
        with pytest.raises(EnvelopeDecodeError) as excinfo:
            decode_envelope(line)
        assert excinfo.value.code == types.INVALID_REQUEST

    def test_missing_version_tag_keeps_request_id(self) -> None:
        with pytest.raises(EnvelopeDecodeError) as excinfo:
            decode_envelope('{"id":4,"method":"ping"}')

        assert excinfo.value.code == types.INVALID_REQUEST
        assert excinfo.value.request_id == 4

    def test_missing_discriminants_is_malformed(self) -> None:
        with pytest.raises(EnvelopeDecodeError):
            decode_envelope('{"jsonrpc":"2.0","id":1}')

    def test_non_object_params_is_malformed(self) -> None:
        with pytest.raises(EnvelopeDecodeError) as excinfo:
            decode_envelope('{"jsonrpc":"2.0","id":"x","method":"ping","params":[1]}')
        assert excinfo.value.request_id == "x"


class TestEncode:
    def test_result_is_one_terminated_line(self) -> None:
        payload = encode_result(1, {"value": 8})

        assert payload.endswith(b"\n")
        assert payload.count(b"\n") == 1
        assert orjson.loads(payload) == {"jsonrpc": "2.0", "id": 1, "result": {"value": 8}}

    def test_result_keeps_null_members(self) -> None:
        message = orjson.loads(encode_result("r", {"value": None}))
        assert message["result"] == {"value": None}

    def test_error_envelope(self) -> None:
        error = types.ErrorData(code=types.INVALID_PARAMS, message="Division by zero")
        message = orjson.loads(encode_error(2, error))

        assert message == {
            "jsonrpc": "2.0",
            "id": 2,
            "error": {"code": types.INVALID_PARAMS, "message": "Division by zero"},
        }

    def test_error_without_id_encodes_null(self) -> None:
        error = types.ErrorData(code=types.PARSE_ERROR, message="Parse error")
        assert orjson.loads(encode_error(None, error))["id"] is None

    def test_progress_notification_has_no_id(self) -> None:
        message = orjson.loads(encode_progress(9, 50, "halfway"))

        assert "id" not in message
        assert message["method"] == "progress"
        assert message["params"] == {"relatedRequestId": 9, "percent": 50, "message": "halfway"}

    def test_progress_message_is_optional(self) -> None:
        message = orjson.loads(encode_progress("job", 100))
        assert message["params"] == {"relatedRequestId": "job", "percent": 100}

    def test_multiline_text_stays_on_one_line(self) -> None:
        payload = encode_result(1, {"text": "line one\nline two"})
        assert payload.count(b"\n") == 1


@pytest.mark.anyio
async def test_writer_never_interleaves_envelopes() -> None:
    stream = bytearray()

    async def slow_send(payload: bytes) -> None:
        # Yield between halves so an unguarded writer would interleave.
        half = len(payload) // 2
        stream.extend(payload[:half])
        await anyio.sleep(0)
        stream.extend(payload[half:])

    writer = EnvelopeWriter(slow_send)

    async with anyio.create_task_group() as tg:
        for request_id in range(20):
            tg.start_soon(writer.send_result, request_id, {"value": request_id})
            tg.start_soon(writer.send_progress, request_id, 50)

    lines = bytes(stream).splitlines()
    assert len(lines) == 40
    assert writer.sent == 40
    for line in lines:
        orjson.loads(line)


@pytest.mark.anyio
async def test_writer_finishes_a_write_when_cancelled() -> None:
    written: list[bytes] = []
    started = anyio.Event()

    async def send(payload: bytes) -> None:
        started.set()
        await anyio.sleep(0.05)
        written.append(payload)

    writer = EnvelopeWriter(send)

    async with anyio.create_task_group() as tg:
        tg.start_soon(writer.send_result, 1, {})
        await started.wait()
        tg.cancel_scope.cancel()

    assert len(written) == 1
