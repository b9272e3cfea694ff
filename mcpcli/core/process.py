"""Process spawning and liveness probing.

``spawn`` is the one place where child processes are created. Attached
children get piped stdin/stdout for the JSON-RPC conversation; detached
children start a new session, drop their standard streams and write
diagnostics to a log file.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Optional, Sequence

from mcpcli.core.errors import SpawnError

logger = logging.getLogger(__name__)


def spawn(
    argv: Sequence[str],
    env: Optional[Dict[str, str]] = None,
    detach: bool = False,
    log_path: Optional[Path] = None,
) -> subprocess.Popen:
    """
    Launch a child process.

    Args:
        argv: Program and arguments
        env: Extra environment variables layered over os.environ
        detach: Start a new session with null stdin/stdout
        log_path: Where a detached child's stderr goes (truncated)

    Raises:
        SpawnError: If the program cannot be launched
    """
    if not argv:
        raise SpawnError("Server profile has empty command")

    child_env = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)

    try:
        if detach:
            log_file = open(log_path, "wb") if log_path else None
            try:
                return subprocess.Popen(
                    list(argv),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=log_file if log_file else subprocess.DEVNULL,
                    env=child_env,
                    start_new_session=True,
                )
            finally:
                # The child holds its own copy of the descriptor
                if log_file:
                    log_file.close()

        return subprocess.Popen(
            list(argv),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=None,
            env=child_env,
        )
    except OSError as e:
        raise SpawnError(f"Failed to spawn {list(argv)}: {e}") from e


def _reap(pid: int) -> bool:
    """Collect our own exited child. Returns True if it was reaped."""
    try:
        reaped, _ = os.waitpid(pid, os.WNOHANG)
    except ChildProcessError:
        return False
    except OSError:
        return False
    return reaped == pid


def probe_pid(pid: int) -> bool:
    """
    Check whether a process exists without signalling it.

    - No such process: not running
    - Exists but owned by someone else (EPERM): running
    - Any other error: not running
    """
    if pid <= 0:
        return False

    if _reap(pid):
        return False

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError as e:
        logger.debug(f"Liveness probe for {pid} failed: {e}")
        return False
    return True
