"""Protocol session with one engine over its standard streams.

McpSession owns exactly one child process. The conversation is strictly
synchronous: one request line out, one response line back, so request ids
only need to increase, not be matched against a pending set.

Usage:
    with McpSession.start("playwright", profile) as session:
        result = session.call_tool("browser_navigate", {"url": "https://example.com"})
"""

import logging
import subprocess
from typing import Any, Dict, List, Optional

from mcpcli.core.configs import EngineProfile, Settings, get_settings
from mcpcli.core.errors import EngineTerminatedError, McpCliError
from mcpcli.core.process import spawn
from mcpcli.core.protocol import (
    CLIENT_INFO,
    PROTOCOL_VERSION,
    check_tool_result,
    decode,
    encode,
    make_notification,
    make_request,
    unwrap_result,
)
from mcpcli.core.templates import expand_args

logger = logging.getLogger(__name__)


class McpSession:
    """
    One live, handshake-initialized conversation with an engine.

    Closing the session (explicitly, via ``with``, or on garbage
    collection) kills the engine process.
    """

    def __init__(self, process: subprocess.Popen):
        self.process = process
        self.request_id = 0
        self.closed = False

    @classmethod
    def start(
        cls,
        name: str,
        profile: EngineProfile,
        server_args: Optional[List[str]] = None,
        settings: Optional[Settings] = None,
    ) -> "McpSession":
        """
        Spawn the engine and run the initialize handshake.

        ``server_args``, when given (even empty), replaces the profile's
        default_args. Both are template-expanded.

        Raises:
            SpawnError: If the engine cannot be launched
            ProtocolError: If the handshake fails
        """
        settings = settings or get_settings()
        args = server_args if server_args is not None else list(profile.default_args)
        argv = list(profile.command) + expand_args(args, name, settings.profile_root)

        logger.info(f"Starting MCP server: {argv}")
        process = spawn(argv, env=profile.resolved_env())

        session = cls(process)
        try:
            session.initialize()
        except BaseException:
            session.close()
            raise

        logger.info("MCP server ready")
        return session

    def initialize(self) -> Any:
        """Send initialize, await its reply, then send notifications/initialized."""
        result = self.call(
            "initialize",
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": dict(CLIENT_INFO),
            },
        )
        self.notify("notifications/initialized", {})
        return result

    def next_id(self) -> int:
        self.request_id += 1
        return self.request_id

    def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send one request and read exactly one response line.

        Raises:
            ProtocolError: Malformed response or an ``error`` member
            EngineTerminatedError: The engine closed its streams
        """
        self._write(make_request(method, params, self.next_id()))
        return unwrap_result(self._read())

    def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Send a notification. Nothing is read back."""
        self._write(make_notification(method, params))

    def call_tool(self, name: str, arguments: Any) -> Any:
        """
        Call a tool and return its result.

        Raises:
            ProtocolError: The engine answered with an ``error`` member
            ToolError: The result is marked ``isError``
        """
        result = self.call("tools/call", {"name": name, "arguments": arguments})
        return check_tool_result(result)

    def list_tools(self) -> Any:
        return self.call("tools/list", {})

    def _write(self, envelope: Dict[str, Any]) -> None:
        if self.closed:
            raise McpCliError("Session is closed")
        try:
            self.process.stdin.write(encode(envelope))
            self.process.stdin.flush()
        except (BrokenPipeError, ValueError, OSError) as e:
            raise EngineTerminatedError(f"MCP server stopped accepting input: {e}") from e

    def _read(self) -> Dict[str, Any]:
        try:
            line = self.process.stdout.readline()
        except (ValueError, OSError) as e:
            raise EngineTerminatedError(f"Failed to read from MCP server: {e}") from e
        if not line:
            raise EngineTerminatedError("MCP server closed its output before responding")
        return decode(line)

    def close(self) -> None:
        """Kill the engine process. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True

        if self.process.poll() is None:
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
        self.process.wait()

        for stream in (self.process.stdin, self.process.stdout):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError:
                pass

    def __enter__(self) -> "McpSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        try:
            self.close()
        except Exception:
            pass
