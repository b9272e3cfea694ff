"""Unix socket server for the mcp-cli daemon.

This module implements the long-running daemon process that:
1. Starts one MCP server session and keeps it alive
2. Listens on <socket_dir>/<server>-<pid>.sock (owner-only)
3. Proxies tools/call and tools/list requests to the session

Connections are served one at a time, each to completion, because the
session can only have one request in flight.

Usage:
    python -m mcpcli.daemon.server --server NAME [--server-args JSON]

    Or use the CLI:
    mcp-cli --server NAME start-daemon
"""

import argparse
import json
import logging
import os
import signal
import socket
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from mcpcli.core.configs import EngineProfile, Settings, get_profile, get_settings
from mcpcli.core.errors import (
    EngineTerminatedError,
    McpCliError,
    ProtocolError,
    ToolError,
)
from mcpcli.core.protocol import (
    ERROR_KIND_DAEMON,
    ERROR_KIND_PROTOCOL,
    ERROR_KIND_TOOL,
    MAX_REQUEST_BYTES,
    decode,
    encode,
    make_error,
    make_result,
)
from mcpcli.core.session import McpSession
from mcpcli.daemon.state import DaemonState

logger = logging.getLogger(__name__)


def error_kind(exc: BaseException) -> str:
    """Classify an exception for the ``kind`` member of an error envelope."""
    if isinstance(exc, ToolError):
        return ERROR_KIND_TOOL
    if isinstance(exc, EngineTerminatedError):
        return ERROR_KIND_DAEMON
    if isinstance(exc, ProtocolError):
        return ERROR_KIND_PROTOCOL
    return ERROR_KIND_DAEMON


class DaemonServer:
    """
    Blocking Unix socket server owning one McpSession.

    A single misbehaving client only ever gets an error envelope back; it
    cannot stop the accept loop.
    """

    def __init__(
        self,
        server_name: str,
        profile: EngineProfile,
        server_args: Optional[List[str]] = None,
        settings: Optional[Settings] = None,
    ):
        self.server_name = server_name
        self.profile = profile
        self.server_args = server_args
        self.settings = settings or get_settings()
        self.state = DaemonState(server_name, self.settings)
        self.socket_path: Path = self.state.socket_path_for(os.getpid())

        self.session: Optional[McpSession] = None
        self.listener: Optional[socket.socket] = None
        self._stopping = False

    def start(self) -> None:
        """Start the MCP session, then bind the socket."""
        logger.info(f"Starting mcp-cli daemon for '{self.server_name}'...")
        self.session = McpSession.start(
            self.server_name, self.profile, self.server_args, self.settings
        )
        self._bind()
        logger.info(f"Daemon listening on {self.socket_path}")

    def _bind(self) -> None:
        socket_dir = self.socket_path.parent
        if not socket_dir.exists():
            socket_dir.mkdir(mode=0o700, parents=True, exist_ok=True)

        # Leftover from a previous process with the same PID
        self.socket_path.unlink(missing_ok=True)

        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            listener.bind(str(self.socket_path))
            os.chmod(self.socket_path, 0o600)
            listener.listen()
        except OSError:
            listener.close()
            raise
        self.listener = listener

    def serve_forever(self) -> None:
        """Accept and serve connections until stopped."""
        while not self._stopping:
            try:
                conn, _ = self.listener.accept()
            except OSError as e:
                if self._stopping:
                    break
                logger.warning(f"Connection error: {e}")
                continue

            with conn:
                self.handle_connection(conn)

    def handle_connection(self, conn: socket.socket) -> None:
        """Read one request line, write one response line."""
        try:
            with conn.makefile("rb") as reader:
                line = reader.readline(MAX_REQUEST_BYTES + 1)
            if not line:
                return
            response = self.process_line(line)
            conn.sendall(encode(response))
        except OSError as e:
            logger.warning(f"Client error: {e}")

    def process_line(self, line: bytes) -> Dict[str, Any]:
        if len(line) > MAX_REQUEST_BYTES:
            logger.warning(f"Rejected request of {len(line)}+ bytes")
            return make_error(
                None,
                f"Request too large (limit {MAX_REQUEST_BYTES} bytes)",
                ERROR_KIND_DAEMON,
            )

        try:
            request = decode(line)
        except ProtocolError as e:
            return make_error(None, f"Invalid JSON-RPC request: {e}", ERROR_KIND_DAEMON)

        return self.dispatch(request)

    def dispatch(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Route a request envelope to the session."""
        request_id = request.get("id")
        method = request.get("method")
        if not isinstance(method, str):
            return make_error(request_id, "Missing method", ERROR_KIND_DAEMON)

        handler: Callable[[], Any]
        if method == "tools/call":
            params = request.get("params")
            if not isinstance(params, dict) or not isinstance(params.get("name"), str):
                return make_error(request_id, "Missing tool name", ERROR_KIND_DAEMON)
            tool = params["name"]
            arguments = params.get("arguments", {})
            handler = lambda: self.session.call_tool(tool, arguments)
        elif method == "tools/list":
            handler = self.session.list_tools
        else:
            return make_error(request_id, f"Unknown method: {method}", ERROR_KIND_DAEMON)

        try:
            return make_result(request_id, handler())
        except EngineTerminatedError as e:
            logger.error(f"MCP server is gone, shutting down: {e}")
            self._stopping = True
            return make_error(request_id, str(e), ERROR_KIND_DAEMON)
        except McpCliError as e:
            logger.info(f"{method} failed: {e}")
            return make_error(request_id, str(e), error_kind(e))
        except Exception as e:
            logger.exception(f"Error handling {method}: {e}")
            return make_error(request_id, str(e), ERROR_KIND_DAEMON)

    def _signal_handler(self, signum, frame) -> None:
        """Handle SIGTERM/SIGINT for graceful shutdown."""
        logger.info(f"Received signal {signum}, shutting down")
        self._stopping = True
        raise SystemExit(0)

    def shutdown(self) -> None:
        """Close the socket, remove our files and kill the MCP server."""
        logger.info("Cleaning up...")

        if self.listener:
            self.listener.close()
            self.listener = None
        self.socket_path.unlink(missing_ok=True)

        # Only remove the PID file if it still names this process
        try:
            if self.state.read_pid() == os.getpid():
                self.state.pid_path.unlink(missing_ok=True)
        except McpCliError:
            pass

        if self.session:
            self.session.close()
            self.session = None

        logger.info("Daemon stopped")

    def run(self) -> None:
        """Start, serve until signalled, then clean up."""
        for sig in (signal.SIGTERM, signal.SIGINT):
            signal.signal(sig, self._signal_handler)
        try:
            self.start()
            self.serve_forever()
        finally:
            self.shutdown()


def run_daemon(server_name: str, server_args: Optional[List[str]] = None) -> None:
    """
    Run the daemon for one configured server in the foreground.

    Raises:
        ConfigError: If the server is not configured
    """
    settings = get_settings()
    profile = get_profile(server_name, settings.config_path)
    DaemonServer(server_name, profile, server_args, settings).run()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="mcp-cli daemon server")
    parser.add_argument("--server", required=True, help="Server name from config")
    parser.add_argument(
        "--server-args",
        help="Server arguments as a JSON array (overrides default_args)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    server_args = None
    if args.server_args is not None:
        try:
            server_args = json.loads(args.server_args)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in --server-args: {e}")
            return 1
        if not isinstance(server_args, list) or not all(
            isinstance(a, str) for a in server_args
        ):
            logger.error("--server-args must be a JSON array of strings")
            return 1

    try:
        run_daemon(args.server, server_args)
    except McpCliError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
