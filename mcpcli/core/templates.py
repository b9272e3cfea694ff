"""Identifier sanitizing and argument template expansion.

Supported placeholders:
- {profile_dir}: <profile_root>/<sanitized server name>
- {pid}: current process id
- {cwd}: current working directory
"""

import os
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union

DEFAULT_PROFILE_ROOT = Path(".mcp-profile")

_PLACEHOLDER = re.compile(r"\{(profile_dir|pid|cwd)\}")


def sanitize(identifier: str) -> str:
    """Keep only ASCII letters, digits, hyphens and underscores."""
    return "".join(
        c for c in identifier if (c.isascii() and c.isalnum()) or c in "-_"
    )


def profile_dir_for(
    identifier: str, profile_root: Optional[Union[str, Path]] = None
) -> Path:
    root = Path(profile_root) if profile_root is not None else DEFAULT_PROFILE_ROOT
    return root / sanitize(identifier)


def _current_dir() -> str:
    try:
        return os.getcwd()
    except OSError:
        return "."


def expand(
    template: str,
    identifier: str,
    profile_root: Optional[Union[str, Path]] = None,
) -> str:
    """
    Substitute known placeholders in a single pass.

    Substituted values are not scanned again, so a cwd that happens to
    contain "{pid}" is left as-is. Unknown placeholders stay verbatim.
    """
    values = {
        "profile_dir": str(profile_dir_for(identifier, profile_root)),
        "pid": str(os.getpid()),
        "cwd": _current_dir(),
    }
    return _PLACEHOLDER.sub(lambda m: values[m.group(1)], template)


def expand_args(
    args: Sequence[str],
    identifier: str,
    profile_root: Optional[Union[str, Path]] = None,
) -> List[str]:
    return [expand(arg, identifier, profile_root) for arg in args]
