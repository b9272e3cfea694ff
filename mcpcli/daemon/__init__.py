"""Daemon architecture for mcp-cli.

A detached background process keeps one MCP server session alive so that
repeated calls skip the server's startup and handshake.

Architecture:
- DaemonState: PID file and socket path bookkeeping
- DaemonManager: start/stop/status of the detached process
- DaemonServer: blocking Unix socket server proxying to the session
- DaemonClient: one-shot socket client used by the CLI
"""

from mcpcli.daemon.client import DaemonClient
from mcpcli.daemon.manager import DaemonManager, DaemonStatus, StopOutcome
from mcpcli.daemon.state import DaemonState

__all__ = [
    "DaemonClient",
    "DaemonManager",
    "DaemonState",
    "DaemonStatus",
    "StopOutcome",
]
