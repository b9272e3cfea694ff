"""
Modes module for mcp-cli.
Contains interactive operation modes.
"""

from .shell_mode import ShellMode

__all__ = ["ShellMode"]
