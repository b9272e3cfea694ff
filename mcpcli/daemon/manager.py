"""Daemon lifecycle: start, stop and status for one server.

The daemon is ``python -m mcpcli.daemon.server`` launched detached. Its
readiness signal is the appearance of its socket file, whose path is
derived from the PID written by the parent right after spawning.

Note: nothing guards the PID file against two near-simultaneous start()
calls. The liveness check right before spawning is the only protection.
"""

import enum
import json
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from mcpcli.core.configs import EngineProfile, Settings
from mcpcli.core.errors import DaemonLifecycleError, SpawnError
from mcpcli.core.process import probe_pid, spawn
from mcpcli.daemon.state import DaemonState

logger = logging.getLogger(__name__)

STARTUP_TIMEOUT = 5.0
STARTUP_POLL_INTERVAL = 0.1
# Point in the startup wait where we check the child is still alive
STARTUP_LIVENESS_CHECK = 2.0

STOP_TIMEOUT = 5.0
STOP_POLL_INTERVAL = 0.5


class StopOutcome(enum.Enum):
    GRACEFUL = "stopped"
    FORCED = "stopped (forced)"


@dataclass
class DaemonStatus:
    server_name: str
    profile_dir: Path
    running: bool
    pid: Optional[int] = None
    socket_path: Optional[Path] = None
    stale_cleaned: bool = False


class DaemonManager:
    """Start/stop/status for the daemon serving one server name."""

    def __init__(self, server_name: str, settings: Optional[Settings] = None):
        self.server_name = server_name
        self.state = DaemonState(server_name, settings)

    @property
    def profile_dir(self) -> Path:
        return self.state.profile_dir

    def is_running(self) -> bool:
        return self.state.is_running()

    def socket_path(self) -> Optional[Path]:
        return self.state.socket_path()

    def _daemon_argv(self, server_args: Optional[List[str]]) -> List[str]:
        argv = [sys.executable, "-m", "mcpcli.daemon.server", "--server", self.server_name]
        if server_args is not None:
            argv += ["--server-args", json.dumps(server_args)]
        return argv

    def start(
        self,
        profile: EngineProfile,
        server_args: Optional[List[str]] = None,
    ) -> int:
        """
        Spawn the daemon and wait for its socket.

        Returns:
            The daemon's PID

        Raises:
            DaemonLifecycleError: Unsupported profile, already running,
                spawn failure, early exit or startup timeout
        """
        if not profile.supports_daemon:
            raise DaemonLifecycleError(
                f"Server '{self.server_name}' does not support daemon mode "
                "(supports_daemon: false)"
            )

        if self.state.is_running():
            raise DaemonLifecycleError(f"Daemon already running for '{self.server_name}'")
        self.state.clear_if_stale()

        self.state.ensure_profile_dir()
        logger.info(f"Profile: {self.profile_dir}")
        logger.info(f"Starting MCP daemon for '{self.server_name}'...")

        try:
            child = spawn(
                self._daemon_argv(server_args),
                detach=True,
                log_path=self.state.log_path,
            )
        except SpawnError as e:
            raise DaemonLifecycleError(f"Failed to spawn daemon process: {e}") from e

        pid = child.pid
        self.state.write_pid(pid)
        expected_socket = self.state.socket_path_for(pid)

        deadline = time.monotonic() + STARTUP_TIMEOUT
        liveness_at = time.monotonic() + STARTUP_LIVENESS_CHECK
        liveness_checked = False

        while time.monotonic() < deadline:
            if expected_socket.exists():
                logger.info(f"Daemon started (PID: {pid})")
                logger.info(f"Socket: {expected_socket}")
                return pid
            time.sleep(STARTUP_POLL_INTERVAL)

            if not liveness_checked and time.monotonic() >= liveness_at:
                liveness_checked = True
                if not probe_pid(pid):
                    self.state.clear(pid)
                    raise DaemonLifecycleError(
                        "Daemon process exited unexpectedly. "
                        f"Check {self.state.log_path}"
                    )

        # Timed out: don't leave a daemon behind without its PID file
        self.state.clear(pid)
        try:
            os.kill(pid, signal.SIGTERM)
        except OSError:
            pass
        raise DaemonLifecycleError(
            "Daemon failed to start - socket file not created within "
            f"{STARTUP_TIMEOUT:.0f} seconds. Check {self.state.log_path}"
        )

    def stop(self) -> StopOutcome:
        """
        Stop the daemon: SIGTERM, wait, then SIGKILL.

        Raises:
            DaemonLifecycleError: If the daemon is not running
        """
        self.state.clear_if_stale()
        pid = self.state.read_pid()
        if pid is None or not probe_pid(pid):
            raise DaemonLifecycleError(f"Daemon not running for '{self.server_name}'")

        logger.info(f"Stopping daemon (PID: {pid})...")

        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            pass
        except OSError as e:
            raise DaemonLifecycleError(f"Failed to send SIGTERM to {pid}: {e}") from e

        deadline = time.monotonic() + STOP_TIMEOUT
        while time.monotonic() < deadline:
            if not probe_pid(pid):
                self.state.clear(pid)
                logger.info("Daemon stopped")
                return StopOutcome.GRACEFUL
            time.sleep(STOP_POLL_INTERVAL)

        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except OSError as e:
            raise DaemonLifecycleError(f"Failed to send SIGKILL to {pid}: {e}") from e

        self.state.clear(pid)
        logger.info("Daemon stopped (forced)")
        return StopOutcome.FORCED

    def status(self) -> DaemonStatus:
        """
        Report whether the daemon is alive.

        A PID file without a live process is stale: it is removed together
        with its socket.
        """
        status = DaemonStatus(
            server_name=self.server_name,
            profile_dir=self.profile_dir,
            running=False,
        )

        if self.state.is_running():
            status.running = True
            status.pid = self.state.read_pid()
            status.socket_path = self.state.socket_path_for(status.pid)
            return status

        status.stale_cleaned = self.state.clear_if_stale()
        return status
