"""Unit tests for daemon protocol module."""

import io
import json
import socket
from unittest.mock import MagicMock

import pytest

from vigil.adapters.daemon.protocol import (
    INITIALIZING,
    MAX_LINE_BYTES,
    ProtocolError,
    Request,
    Response,
    read_message,
    send_message,
)


class TestRequest:
    """Tests for Request class."""

    def test_init_sets_method_params_and_id(self) -> None:
        request = Request(method="hello", params={"version": "1"}, request_id=42)

        assert request.method == "hello"
        assert request.params == {"version": "1"}
        assert request.id == 42

    def test_defaults(self) -> None:
        request = Request(method="ping")

        assert request.params == {}
        assert request.id == 1

    def test_to_json_is_one_line(self) -> None:
        result = Request(method="ping", request_id=5).to_json()

        assert result.endswith("\n")
        assert result.count("\n") == 1
        assert json.loads(result) == {"method": "ping", "params": {}, "id": 5}

    def test_from_json_accepts_bytes(self) -> None:
        request = Request.from_json(b'{"method": "status", "id": 3}\n')

        assert request.method == "status"
        assert request.params == {}
        assert request.id == 3

    @pytest.mark.parametrize(
        "line",
        [
            "not json",
            "[1, 2]",
            '{"params": {}}',
            '{"method": 7}',
            '{"method": "ping", "params": [1]}',
        ],
    )
    def test_from_json_rejects_malformed(self, line: str) -> None:
        with pytest.raises(ProtocolError):
            Request.from_json(line)


class TestResponse:
    """Tests for Response class."""

    def test_success(self) -> None:
        response = Response.success("pong", request_id=2)

        assert not response.is_error()
        assert response.result == "pong"
        assert response.error_code is None
        assert response.error_message == ""

    def test_failure(self) -> None:
        response = Response.failure(INITIALIZING, "warming up", request_id=9)

        assert response.is_error()
        assert response.error_code == INITIALIZING
        assert response.error_message == "warming up"
        assert response.id == 9

    def test_json_keeps_error_fields(self) -> None:
        line = Response.failure(404, "Unknown method: nope").to_json()

        response = Response.from_json(line)

        assert response.error == {"code": 404, "message": "Unknown method: nope"}
        assert response.result is None

    def test_from_json_rejects_non_object_error(self) -> None:
        with pytest.raises(ProtocolError):
            Response.from_json('{"result": null, "error": "bad"}')

    def test_error_without_message(self) -> None:
        response = Response(error={"code": 500})

        assert response.error_message == "Unknown error"


class TestSendMessage:
    def test_sends_encoded_json(self) -> None:
        sock = MagicMock()

        send_message(sock, Request(method="ping"))

        sock.sendall.assert_called_once()
        assert sock.sendall.call_args[0][0].endswith(b"\n")

    def test_os_error_becomes_protocol_error(self) -> None:
        sock = MagicMock()
        sock.sendall.side_effect = BrokenPipeError("pipe")

        with pytest.raises(ProtocolError) as exc_info:
            send_message(sock, Request(method="ping"))

        assert isinstance(exc_info.value.__cause__, BrokenPipeError)


class TestReadMessage:
    def test_reads_one_message(self) -> None:
        reader = io.BytesIO(b'{"result": "pong", "error": null, "id": 2}\n')

        response = read_message(reader, Response)

        assert response.result == "pong"
        assert response.id == 2

    def test_reads_messages_in_order(self) -> None:
        reader = io.BytesIO(
            Request(method="hello").to_json().encode()
            + Request(method="ping", request_id=2).to_json().encode()
        )

        assert read_message(reader, Request).method == "hello"
        assert read_message(reader, Request).method == "ping"
        assert read_message(reader, Request) is None

    def test_clean_eof_returns_none(self) -> None:
        assert read_message(io.BytesIO(b""), Response) is None

    def test_truncated_message_raises(self) -> None:
        with pytest.raises(ProtocolError, match="mid-message"):
            read_message(io.BytesIO(b'{"result": '), Response)

    def test_oversized_message_raises(self) -> None:
        reader = io.BytesIO(b"x" * (MAX_LINE_BYTES + 10) + b"\n")

        with pytest.raises(ProtocolError, match="exceeds"):
            read_message(reader, Response)

    def test_timeout_propagates(self) -> None:
        reader = MagicMock()
        reader.readline.side_effect = socket.timeout("timed out")

        with pytest.raises(TimeoutError):
            read_message(reader, Response)

    def test_os_error_becomes_protocol_error(self) -> None:
        reader = MagicMock()
        reader.readline.side_effect = ConnectionResetError("reset")

        with pytest.raises(ProtocolError):
            read_message(reader, Response)

    def test_over_socket_pair(self) -> None:
        left, right = socket.socketpair()
        try:
            send_message(left, Response.success({"pid": 1}))
            with right.makefile("rb") as reader:
                response = read_message(reader, Response)
        finally:
            left.close()
            right.close()

        assert response.result == {"pid": 1}
