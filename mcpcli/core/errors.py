"""Exception hierarchy for mcp-cli.

Every error carries a human-readable message; the CLI layer prints it and
exits non-zero. Underlying causes are chained with ``raise ... from``.
"""

from typing import Any, Optional


class McpCliError(Exception):
    """Base class for all reportable mcp-cli failures."""


class ConfigError(McpCliError):
    """Profile registry missing, unreadable or malformed, or unknown server."""


class SpawnError(McpCliError):
    """Engine command not found or failed to launch."""


class ProtocolError(McpCliError):
    """Malformed envelope, or an ``error`` member in a response."""

    def __init__(self, message: str, error: Optional[Any] = None):
        super().__init__(message)
        self.error = error


class EngineTerminatedError(ProtocolError):
    """The engine closed its streams before answering."""


class ToolError(McpCliError):
    """Tool-level failure reported inside an otherwise successful response."""


class DaemonLifecycleError(McpCliError):
    """Daemon start/stop/status failure."""


class IpcError(McpCliError):
    """Socket transport failure between the caller and the daemon."""
