"""Routing of tool calls: daemon when available, fresh STDIO session otherwise.

If a daemon is running for a server that supports it, the request goes over
its socket. Transport failures (IpcError) fall back to a freshly spawned
session with a warning. Failures reported by the MCP server itself
(ToolError, ProtocolError) are returned as-is, so a tool is never run twice.
"""

import logging
from typing import Any, Callable, List, Optional

from mcpcli.core.configs import EngineProfile, Settings, get_settings
from mcpcli.core.errors import DaemonLifecycleError, IpcError
from mcpcli.core.session import McpSession
from mcpcli.daemon.client import DaemonClient
from mcpcli.daemon.state import DaemonState

logger = logging.getLogger(__name__)


def daemon_available(
    server_name: str, profile: EngineProfile, settings: Optional[Settings] = None
) -> bool:
    """True if the profile supports daemon mode and its daemon is alive."""
    if not profile.supports_daemon:
        return False
    state = DaemonState(server_name, settings)
    try:
        if state.clear_if_stale():
            return False
        return state.is_running()
    except DaemonLifecycleError as e:
        logger.debug(f"Ignoring unreadable daemon state: {e}")
        return False


def _dispatch(
    server_name: str,
    profile: EngineProfile,
    via_daemon: Callable[[DaemonClient], Any],
    via_session: Callable[[McpSession], Any],
    server_args: Optional[List[str]],
    settings: Optional[Settings],
) -> Any:
    settings = settings or get_settings()

    if daemon_available(server_name, profile, settings):
        try:
            return via_daemon(DaemonClient(server_name, settings))
        except IpcError as e:
            logger.warning(f"Daemon call failed, falling back to STDIO: {e}")

    with McpSession.start(server_name, profile, server_args, settings) as session:
        return via_session(session)


def call_tool(
    server_name: str,
    profile: EngineProfile,
    tool: str,
    arguments: Any,
    server_args: Optional[List[str]] = None,
    settings: Optional[Settings] = None,
) -> Any:
    """Call one tool, through the daemon if possible."""
    return _dispatch(
        server_name,
        profile,
        lambda client: client.call_tool(tool, arguments),
        lambda session: session.call_tool(tool, arguments),
        server_args,
        settings,
    )


def list_tools(
    server_name: str,
    profile: EngineProfile,
    server_args: Optional[List[str]] = None,
    settings: Optional[Settings] = None,
) -> Any:
    """List the server's tools, through the daemon if possible."""
    return _dispatch(
        server_name,
        profile,
        lambda client: client.list_tools(),
        lambda session: session.list_tools(),
        server_args,
        settings,
    )
