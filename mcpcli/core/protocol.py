"""JSON-RPC envelope codec shared by the engine stdio transport and the daemon socket.

One JSON object per line, UTF-8 encoded.

Request:
    {"jsonrpc": "2.0", "id": 1, "method": "tools/call",
     "params": {"name": "...", "arguments": {...}}}

Notification (never answered):
    {"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}

Response:
    {"jsonrpc": "2.0", "id": 1, "result": ...}
    {"jsonrpc": "2.0", "id": 1, "error": {"message": "...", "kind": "tool"}}

The daemon adds a "kind" member to its error objects so the caller can tell a
tool failure from a protocol failure from a daemon-side problem.
"""

import json
from typing import Any, Dict, Optional

from mcpcli.core.errors import ProtocolError, ToolError

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2025-06-18"
CLIENT_INFO = {"name": "mcp-cli", "version": "1.0.0"}

# Upper bound for one request line on the daemon socket
MAX_REQUEST_BYTES = 1024 * 1024

ERROR_KIND_TOOL = "tool"
ERROR_KIND_PROTOCOL = "protocol"
ERROR_KIND_DAEMON = "daemon"

DEFAULT_TOOL_ERROR = "Tool execution failed"


def make_request(
    method: str, params: Optional[Dict[str, Any]], request_id: int
) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": method,
        "params": params if params is not None else {},
    }


def make_notification(method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "params": params if params is not None else {},
    }


def make_result(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error(
    request_id: Any, message: str, kind: Optional[str] = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"message": message}
    if kind:
        error["kind"] = kind
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def encode(envelope: Dict[str, Any]) -> bytes:
    """Serialize an envelope to one newline-terminated line."""
    return json.dumps(envelope, separators=(",", ":")).encode("utf-8") + b"\n"


def decode(line: bytes) -> Dict[str, Any]:
    """
    Parse one line into an envelope.

    Raises:
        ProtocolError: If the line is not a JSON object
    """
    try:
        envelope = json.loads(line.decode("utf-8").strip())
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"Failed to parse JSON-RPC message: {e}") from e

    if not isinstance(envelope, dict):
        raise ProtocolError("JSON-RPC message must be an object")
    return envelope


def error_message(error: Any) -> str:
    """Human-readable text for an ``error`` member."""
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return json.dumps(error)


def unwrap_result(response: Dict[str, Any]) -> Any:
    """
    Return the ``result`` member of a response.

    Raises:
        ProtocolError: If the response carries an ``error`` member
    """
    if "error" in response:
        error = response["error"]
        raise ProtocolError(f"MCP error: {error_message(error)}", error=error)
    return response.get("result")


def check_tool_result(result: Any) -> Any:
    """
    Convert an embedded ``isError`` marker into a ToolError.

    The message comes from the first content item's text; a generic message
    is used when there is none.
    """
    if not isinstance(result, dict) or result.get("isError") is not True:
        return result

    message = DEFAULT_TOOL_ERROR
    content = result.get("content")
    if isinstance(content, list) and content:
        first = content[0]
        if isinstance(first, dict) and isinstance(first.get("text"), str):
            message = first["text"]
    raise ToolError(f"Tool error: {message}")
