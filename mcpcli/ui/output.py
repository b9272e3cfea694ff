"""
UI output management: color-coded status lines, JSON results and the
server table.
"""

import json
import sys
from typing import Any, Dict, Optional, TextIO

from rich.console import Console
from rich.table import Table

from mcpcli.core.configs import EngineProfile


TEXT_COLOR_MAPPING = {
    "blue": "36;1",
    "yellow": "33;1",
    "green": "32;1",
    "red": "31;1",
    "gray": "90",
}


def get_colored_text(text: str, color: str) -> str:
    """
    Get colored text.

    Raises:
        ValueError: If the specified color is not supported
    """
    if color not in TEXT_COLOR_MAPPING:
        raise ValueError(
            f"Unsupported color: {color}. Available colors: {', '.join(TEXT_COLOR_MAPPING.keys())}"
        )
    return f"\u001b[{TEXT_COLOR_MAPPING[color]}m{text}\u001b[0m"


def format_json(value: Any) -> str:
    """Pretty-print a JSON value the way results are shown to the user."""
    return json.dumps(value, indent=2, ensure_ascii=False)


class UIManager:
    """Colored terminal output. Colors are dropped when not writing to a TTY."""

    def __init__(self, file: Optional[TextIO] = None):
        self.file = file

    def success(self, message: str) -> None:
        self._print_colored(message, "green")

    def error(self, message: str) -> None:
        self._print_colored(message, "red", file=sys.stderr)

    def warning(self, message: str) -> None:
        self._print_colored(message, "yellow", file=sys.stderr)

    def info(self, message: str) -> None:
        self._print_colored(message, "blue")

    def dim(self, text: str) -> None:
        self._print_colored(text, "gray")

    def plain(self, text: str) -> None:
        print(text, file=self.file or sys.stdout)

    def json(self, value: Any) -> None:
        self.plain(format_json(value))

    def _print_colored(self, text: str, color: str, file: Optional[TextIO] = None) -> None:
        target = file or self.file or sys.stdout
        if hasattr(target, "isatty") and target.isatty():
            text = get_colored_text(text, color)
        print(text, file=target)
        target.flush()


def render_servers(profiles: Dict[str, EngineProfile], console: Optional[Console] = None) -> None:
    """Print the configured servers as a table."""
    console = console or Console()

    if not profiles:
        console.print("[yellow]No MCP servers configured.[/yellow]")
        return

    table = Table(title="Configured MCP servers")
    table.add_column("Server", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Command")
    table.add_column("Default args")
    table.add_column("Daemon", justify="center")

    for name in sorted(profiles):
        profile = profiles[name]
        table.add_row(
            name,
            profile.description or "No description",
            " ".join(profile.command),
            " ".join(profile.default_args),
            "yes" if profile.supports_daemon else "",
        )

    console.print(table)
