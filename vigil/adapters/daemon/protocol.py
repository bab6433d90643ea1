"""JSON line protocol for client/server communication.

JSON-RPC-style messages over a Unix socket, one JSON object per line. A
connection opens with a "hello" handshake; after a successful handshake the
client may send further requests on the same connection.
"""

import json
import logging
from typing import Any, BinaryIO

logger = logging.getLogger(__name__)

# Error codes carried in Response.error["code"]
INITIALIZING = 1
OUT_OF_DATE = 2
BAD_REQUEST = 400
UNKNOWN_METHOD = 404
INTERNAL_ERROR = 500

MAX_LINE_BYTES = 1024 * 1024


class ProtocolError(Exception):
    """Base exception for protocol errors."""

    pass


def _decode_object(line: str | bytes, kind: str) -> dict[str, Any]:
    try:
        data = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError(f"{kind} must be a JSON object")
    return data


class Request:
    """JSON-RPC request message."""

    def __init__(
        self, method: str, params: dict[str, Any] | None = None, request_id: int = 1
    ):
        """Create a request.

        Args:
            method: Method name (e.g., "hello", "ping")
            params: Method parameters
            request_id: Request ID for matching responses
        """
        self.method = method
        self.params = params or {}
        self.id = request_id

    def to_json(self) -> str:
        """Serialize to JSON string with newline."""
        data = {"method": self.method, "params": self.params, "id": self.id}
        return json.dumps(data) + "\n"

    @classmethod
    def from_json(cls, line: str | bytes) -> "Request":
        """Deserialize from JSON string.

        Raises:
            ProtocolError: If JSON is invalid or missing required fields
        """
        data = _decode_object(line, "Request")
        if not isinstance(data.get("method"), str):
            raise ProtocolError("Request missing 'method' field")
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise ProtocolError("Request 'params' must be an object")

        return cls(method=data["method"], params=params, request_id=data.get("id", 1))


class Response:
    """JSON-RPC response message."""

    def __init__(
        self,
        result: Any = None,
        error: dict[str, Any] | None = None,
        request_id: int = 1,
    ):
        """Create a response.

        Args:
            result: Result value (if success)
            error: Error dict with 'code' and 'message' (if failure)
            request_id: Request ID for matching requests
        """
        self.result = result
        self.error = error
        self.id = request_id

    def to_json(self) -> str:
        """Serialize to JSON string with newline."""
        data = {"result": self.result, "error": self.error, "id": self.id}
        return json.dumps(data) + "\n"

    @classmethod
    def from_json(cls, line: str | bytes) -> "Response":
        """Deserialize from JSON string.

        Raises:
            ProtocolError: If JSON is invalid or the error field is malformed
        """
        data = _decode_object(line, "Response")
        error = data.get("error")
        if error is not None and not isinstance(error, dict):
            raise ProtocolError("Response 'error' must be an object")

        return cls(
            result=data.get("result"),
            error=error,
            request_id=data.get("id", 1),
        )

    @classmethod
    def success(cls, result: Any, request_id: int = 1) -> "Response":
        """Create a success response."""
        return cls(result=result, error=None, request_id=request_id)

    @classmethod
    def failure(cls, code: int, message: str, request_id: int = 1) -> "Response":
        """Create an error response."""
        return cls(result=None, error={"code": code, "message": message}, request_id=request_id)

    def is_error(self) -> bool:
        """Check if this response is an error."""
        return self.error is not None

    @property
    def error_code(self) -> int | None:
        return self.error.get("code") if self.error else None

    @property
    def error_message(self) -> str:
        if not self.error:
            return ""
        return str(self.error.get("message", "Unknown error"))


def send_message(sock, message: Request | Response) -> None:
    """Send a message over a socket.

    Raises:
        ProtocolError: If send fails
    """
    try:
        sock.sendall(message.to_json().encode("utf-8"))
    except OSError as e:
        raise ProtocolError(f"Failed to send message: {e}") from e


def read_message(
    reader: BinaryIO, message_type: type[Request] | type[Response]
) -> Request | Response | None:
    """Read one newline-delimited message from a buffered socket reader.

    Args:
        reader: Binary file object from socket.makefile("rb")
        message_type: Type of message to expect (Request or Response)

    Returns:
        Parsed message, or None if the peer closed the connection cleanly
        between messages.

    Raises:
        TimeoutError: If the socket timeout expires before a full line arrives
        ProtocolError: If the message is truncated, too long or invalid
    """
    try:
        line = reader.readline(MAX_LINE_BYTES + 1)
    except TimeoutError:
        raise
    except OSError as e:
        raise ProtocolError(f"Failed to receive message: {e}") from e

    if not line:
        return None
    if not line.endswith(b"\n"):
        if len(line) > MAX_LINE_BYTES:
            raise ProtocolError(f"Message exceeds {MAX_LINE_BYTES} bytes")
        raise ProtocolError("Connection closed mid-message")

    return message_type.from_json(line)
