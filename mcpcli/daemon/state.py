"""Filesystem-resident daemon state.

A daemon is described by two files that live and die together:

- <profile_root>/<server>/daemon.pid   decimal PID of the daemon
- <socket_dir>/<server>-<pid>.sock     the daemon's listening socket

The socket path is derived from the PID, so nothing else has to be
recorded. Any reader that finds one of them without a live process
removes both.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from mcpcli.core.configs import Settings, get_settings
from mcpcli.core.errors import DaemonLifecycleError
from mcpcli.core.process import probe_pid
from mcpcli.core.templates import profile_dir_for, sanitize

logger = logging.getLogger(__name__)


class DaemonState:
    """PID-file and socket-path bookkeeping for one server name."""

    def __init__(self, server_name: str, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.server_name = server_name
        self.safe_name = sanitize(server_name)
        self.profile_dir = profile_dir_for(server_name, self.settings.profile_root)
        self.pid_path = self.profile_dir / "daemon.pid"
        self.log_path = self.profile_dir / "daemon.log"
        self.socket_dir = self.settings.socket_dir

    def ensure_profile_dir(self) -> Path:
        """Create the profile directory, owner-only."""
        self.profile_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        os.chmod(self.profile_dir, 0o700)
        return self.profile_dir

    def socket_path_for(self, pid: int) -> Path:
        return self.socket_dir / f"{self.safe_name}-{pid}.sock"

    def read_pid(self) -> Optional[int]:
        """
        Read the PID file.

        Returns None if there is no PID file.

        Raises:
            DaemonLifecycleError: If the file exists but does not hold a PID
        """
        try:
            text = self.pid_path.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise DaemonLifecycleError(f"Failed to read PID file {self.pid_path}: {e}") from e

        try:
            pid = int(text.strip())
        except ValueError as e:
            raise DaemonLifecycleError(f"Invalid PID in file: '{text.strip()}'") from e
        if pid <= 0:
            raise DaemonLifecycleError(f"Invalid PID in file: '{text.strip()}'")
        return pid

    def write_pid(self, pid: int) -> None:
        self.ensure_profile_dir()
        self.pid_path.write_text(str(pid))

    def socket_path(self) -> Optional[Path]:
        """Socket path derived from the recorded PID, or None without a PID file."""
        pid = self.read_pid()
        if pid is None:
            return None
        return self.socket_path_for(pid)

    def is_running(self) -> bool:
        """PID file present and the process it names still exists."""
        pid = self.read_pid()
        if pid is None:
            return False
        return probe_pid(pid)

    def clear_if_stale(self) -> bool:
        """
        Remove a PID file whose process is gone, together with its socket.

        Returns True if stale state was removed.

        Raises:
            DaemonLifecycleError: If the PID file does not hold a PID
        """
        pid = self.read_pid()
        if pid is None or probe_pid(pid):
            return False
        logger.warning("Stale PID file found, cleaning up...")
        self.clear(pid)
        return True

    def clear(self, pid: Optional[int] = None) -> None:
        """
        Remove the PID file and the socket that belongs to it.

        ``pid`` is used to locate the socket when the PID file is already
        gone or cannot be parsed.
        """
        if pid is None:
            try:
                pid = self.read_pid()
            except DaemonLifecycleError:
                pid = None

        self.pid_path.unlink(missing_ok=True)
        if pid is not None:
            self.socket_path_for(pid).unlink(missing_ok=True)
