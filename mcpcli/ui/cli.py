"""Main CLI entry point - generic MCP protocol client."""

import json
import logging
import sys
from typing import Any, List, NoReturn, Optional, Tuple

import typer

from mcpcli.core import dispatch
from mcpcli.core.configs import EngineProfile, get_profile, get_settings, load_profiles
from mcpcli.core.errors import McpCliError
from mcpcli.ui.output import UIManager

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Unified MCP CLI - Generic MCP Protocol Client.",
)

ui = UIManager()


# ============================================================================
# Shared helpers
# ============================================================================

def _fail(message: str) -> NoReturn:
    ui.error(f"Error: {message}")
    raise typer.Exit(1)


def _require_server(ctx: typer.Context) -> str:
    server = ctx.obj.get("server")
    if not server:
        _fail("--server required. Use 'list-servers' to see available servers.")
    return server


def _parse_server_args(raw: Optional[str]) -> Optional[List[str]]:
    """--server-args is a JSON array of strings; when given it replaces default_args."""
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON in --server-args (expected array of strings): {e}")
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        _fail("Invalid --server-args (expected array of strings)")
    return value


def _load(ctx: typer.Context) -> Tuple[str, EngineProfile, Optional[List[str]]]:
    server = _require_server(ctx)
    server_args = _parse_server_args(ctx.obj.get("server_args"))
    try:
        profile = get_profile(server, get_settings().config_path)
    except McpCliError as e:
        _fail(str(e))
    return server, profile, server_args


def _read_tool_args(raw: str) -> Any:
    """Parse tool arguments; "-" reads the JSON from stdin."""
    if raw == "-":
        try:
            raw = sys.stdin.read()
        except OSError as e:
            _fail(f"Failed to read JSON from stdin: {e}")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON arguments: {e}")


@app.callback()
def main(
    ctx: typer.Context,
    server: Optional[str] = typer.Option(
        None, "--server", "-s", help="Server name from config (e.g., playwright)"
    ),
    server_args: Optional[str] = typer.Option(
        None,
        "--server-args",
        help="Server arguments as a JSON array, e.g. '[\"--gui\"]' (overrides default_args)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress messages"),
) -> None:
    """Call tools on any MCP server configured in ~/.config/mcpcli/mcp-servers.json."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.obj = {"server": server, "server_args": server_args}


# ============================================================================
# Commands
# ============================================================================

@app.command("list-servers")
def list_servers() -> None:
    """List all configured servers."""
    from mcpcli.ui.output import render_servers

    try:
        profiles = load_profiles(get_settings().config_path)
    except McpCliError as e:
        _fail(str(e))
    render_servers(profiles)


@app.command()
def call(
    ctx: typer.Context,
    tool: str = typer.Argument(..., help="Tool name (e.g., browser_navigate)"),
    args: str = typer.Option("{}", "--args", "-a", help="Arguments as JSON ('-' reads stdin)"),
) -> None:
    """
    Call any MCP tool. Uses the daemon when one is running.

    Example: mcp-cli -s playwright call browser_navigate -a '{"url":"https://example.com"}'
    """
    server, profile, server_args = _load(ctx)
    arguments = _read_tool_args(args)

    try:
        result = dispatch.call_tool(server, profile, tool, arguments, server_args)
    except McpCliError as e:
        _fail(str(e))
    ui.json(result)


@app.command("list-tools")
def list_tools(ctx: typer.Context) -> None:
    """List all available tools from the server."""
    server, profile, server_args = _load(ctx)
    try:
        result = dispatch.list_tools(server, profile, server_args)
    except McpCliError as e:
        _fail(str(e))
    ui.json(result)


@app.command()
def shell(ctx: typer.Context) -> None:
    """Interactive shell mode."""
    from mcpcli.core.session import McpSession
    from mcpcli.modes.shell_mode import ShellMode

    server, profile, server_args = _load(ctx)
    try:
        session = McpSession.start(server, profile, server_args)
    except McpCliError as e:
        _fail(str(e))

    with session:
        ShellMode(server, session, ui).start()


@app.command("start-daemon")
def start_daemon(ctx: typer.Context) -> None:
    """Start background daemon (requires supports_daemon: true)."""
    from mcpcli.daemon.manager import DaemonManager

    server, profile, server_args = _load(ctx)
    try:
        manager = DaemonManager(server)
        pid = manager.start(profile, server_args)
    except McpCliError as e:
        _fail(str(e))

    ui.success(f"Daemon started (PID: {pid})")
    ui.dim(f"Socket: {manager.state.socket_path_for(pid)}")


@app.command("stop-daemon")
def stop_daemon(ctx: typer.Context) -> None:
    """Stop background daemon."""
    from mcpcli.daemon.manager import DaemonManager, StopOutcome

    server = _require_server(ctx)
    try:
        outcome = DaemonManager(server).stop()
    except McpCliError as e:
        _fail(str(e))

    if outcome is StopOutcome.FORCED:
        ui.warning("Daemon stopped (forced)")
    else:
        ui.success("Daemon stopped")


@app.command("daemon-status")
def daemon_status(ctx: typer.Context) -> None:
    """Check daemon status."""
    from mcpcli.daemon.manager import DaemonManager

    server = _require_server(ctx)
    try:
        status = DaemonManager(server).status()
    except McpCliError as e:
        _fail(str(e))

    ui.plain(f"Server: {status.server_name}")
    ui.plain(f"Profile: {status.profile_dir}")
    if status.running:
        ui.success("Daemon is running")
        ui.plain(f"  PID: {status.pid}")
        ui.plain(f"  Socket: {status.socket_path}")
    else:
        ui.plain("Daemon is not running")


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()
