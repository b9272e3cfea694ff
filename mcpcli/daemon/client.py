"""Lightweight client for daemon communication.

Connects to a running daemon's Unix socket and performs one timed round
trip per request using the same JSON-RPC envelopes as the stdio transport.

Usage:
    client = DaemonClient("playwright")
    result = client.call_tool("browser_navigate", {"url": "https://example.com"})
"""

import socket
from pathlib import Path
from typing import Any, Dict, Optional

from mcpcli.core.configs import Settings, get_settings
from mcpcli.core.errors import DaemonLifecycleError, IpcError, ProtocolError, ToolError
from mcpcli.core.protocol import (
    ERROR_KIND_PROTOCOL,
    ERROR_KIND_TOOL,
    decode,
    encode,
    error_message,
    make_request,
)
from mcpcli.daemon.state import DaemonState

# The daemon serves one request per connection
REQUEST_ID = 1


class DaemonClient:
    """One-shot request/response client for a server's daemon."""

    def __init__(
        self,
        server_name: str,
        settings: Optional[Settings] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = settings or get_settings()
        self.server_name = server_name
        self.state = DaemonState(server_name, self.settings)
        self.timeout = timeout if timeout is not None else self.settings.ipc_timeout

    def resolve_socket_path(self) -> Path:
        """
        Socket path of the live daemon.

        Raises:
            IpcError: If no daemon is running
        """
        try:
            self.state.clear_if_stale()
            running = self.state.is_running()
            path = self.state.socket_path() if running else None
        except DaemonLifecycleError as e:
            raise IpcError(f"Failed to get socket path: {e}") from e
        if path is None:
            raise IpcError(
                f"Failed to get socket path (daemon for '{self.server_name}' not started?)"
            )
        return path

    def call_tool(self, name: str, arguments: Any) -> Any:
        return self.request("tools/call", {"name": name, "arguments": arguments})

    def list_tools(self) -> Any:
        return self.request("tools/list", {})

    def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send one request to the daemon and return its result.

        Raises:
            IpcError: Connection, timeout or transport failure
            ToolError: The tool reported a failure
            ProtocolError: The MCP server answered with an error
        """
        response = self._round_trip(make_request(method, params, REQUEST_ID))

        if "error" not in response:
            return response.get("result")

        error = response["error"]
        message = error_message(error)
        kind = error.get("kind") if isinstance(error, dict) else None
        if kind == ERROR_KIND_TOOL:
            raise ToolError(message)
        if kind == ERROR_KIND_PROTOCOL:
            raise ProtocolError(message, error=error)
        raise IpcError(f"Daemon error: {message}")

    def _round_trip(self, envelope: Dict[str, Any]) -> Dict[str, Any]:
        socket_path = self.resolve_socket_path()

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            try:
                sock.connect(str(socket_path))
            except socket.timeout as e:
                raise IpcError(f"Timed out connecting to daemon at {socket_path}") from e
            except OSError as e:
                raise IpcError(
                    f"Failed to connect to daemon (is it running?): {e}"
                ) from e

            try:
                sock.sendall(encode(envelope))
                with sock.makefile("rb") as reader:
                    line = reader.readline()
            except socket.timeout as e:
                raise IpcError(
                    f"Timed out after {self.timeout:.0f}s waiting for daemon"
                ) from e
            except OSError as e:
                raise IpcError(f"Daemon connection failed: {e}") from e
        finally:
            sock.close()

        if not line:
            raise IpcError("Daemon closed the connection without responding")
        try:
            return decode(line)
        except ProtocolError as e:
            raise IpcError(f"Invalid JSON-RPC response from daemon: {e}") from e
