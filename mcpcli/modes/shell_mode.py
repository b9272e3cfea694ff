"""Interactive shell over one MCP session."""

import json
from typing import Optional

from prompt_toolkit import prompt
from prompt_toolkit.history import InMemoryHistory

from mcpcli.core.errors import McpCliError
from mcpcli.core.session import McpSession
from mcpcli.ui.output import UIManager

USAGE = "Usage: call <tool_name> [json_args] | list-tools | exit"


class ShellMode:
    """
    Read-eval loop: ``call <tool> [json]``, ``list-tools``, ``exit``.

    Errors from a command are printed and the loop continues.
    """

    def __init__(self, server_name: str, session: McpSession, ui: Optional[UIManager] = None):
        self.server_name = server_name
        self.session = session
        self.ui = ui or UIManager()
        self.history = InMemoryHistory()

    def get_input(self, message: str) -> str:
        return prompt(message, history=self.history).strip()

    def start(self) -> None:
        self.ui.success(f"MCP Shell ({self.server_name})")
        self.ui.dim("Commands: call <tool> [json], list-tools, exit")

        while True:
            try:
                line = self.get_input("mcp> ")
            except (KeyboardInterrupt, EOFError):
                break

            if not self._process_input(line):
                break

        self.ui.plain("Goodbye!")

    def _process_input(self, line: str) -> bool:
        """Handle one input line. Returns False when the loop should end."""
        if not line:
            return True

        if line in ("exit", "quit"):
            return False

        if line == "list-tools":
            self._run(self.session.list_tools)
            return True

        if line.startswith("call "):
            parts = line[len("call "):].strip().split(" ", 1)
            tool = parts[0]
            if not tool:
                self.ui.error("Usage: call <tool_name> [json_args]")
                return True
            raw_args = parts[1] if len(parts) > 1 else "{}"
            try:
                arguments = json.loads(raw_args)
            except json.JSONDecodeError as e:
                self.ui.error(f"Invalid JSON args: {e}")
                return True
            self._run(lambda: self.session.call_tool(tool, arguments))
            return True

        self.ui.error(USAGE)
        return True

    def _run(self, action) -> None:
        try:
            self.ui.json(action())
        except McpCliError as e:
            self.ui.error(f"Error: {e}")
