"""Tests for the PID file, socket path pairing and liveness probe."""

import errno
import os
import unittest
from unittest import mock

from mcpcli.core.errors import DaemonLifecycleError
from mcpcli.core.process import probe_pid
from mcpcli.daemon.state import DaemonState
from tests.helpers import TempWorkspace


class TestProbePid(unittest.TestCase):
    """Liveness semantics of the signal-0 probe."""

    def test_own_process_is_alive(self):
        self.assertTrue(probe_pid(os.getpid()))

    def test_non_positive(self):
        self.assertFalse(probe_pid(0))
        self.assertFalse(probe_pid(-1))

    @mock.patch("mcpcli.core.process._reap", return_value=False)
    def test_no_such_process(self, _):
        with mock.patch("os.kill", side_effect=ProcessLookupError()):
            self.assertFalse(probe_pid(4242))

    @mock.patch("mcpcli.core.process._reap", return_value=False)
    def test_permission_denied_means_alive(self, _):
        with mock.patch("os.kill", side_effect=PermissionError()):
            self.assertTrue(probe_pid(4242))

    @mock.patch("mcpcli.core.process._reap", return_value=False)
    def test_other_errors_mean_not_alive(self, _):
        with mock.patch("os.kill", side_effect=OSError(errno.EINVAL, "bad")):
            self.assertFalse(probe_pid(4242))

    @mock.patch("mcpcli.core.process._reap", return_value=True)
    def test_reaped_child_is_not_alive(self, _):
        with mock.patch("os.kill") as kill:
            self.assertFalse(probe_pid(4242))
        kill.assert_not_called()


class TestDaemonState(unittest.TestCase):
    def setUp(self):
        self.workspace = TempWorkspace()
        self.state = DaemonState("play/wright", self.workspace.settings)

    def tearDown(self):
        self.workspace.cleanup()

    def test_paths(self):
        root = self.workspace.settings.profile_root
        self.assertEqual(self.state.profile_dir, root / "playwright")
        self.assertEqual(self.state.pid_path, root / "playwright" / "daemon.pid")
        self.assertEqual(self.state.log_path, root / "playwright" / "daemon.log")
        self.assertEqual(
            self.state.socket_path_for(123),
            self.workspace.settings.socket_dir / "playwright-123.sock",
        )

    def test_profile_dir_is_owner_only(self):
        path = self.state.ensure_profile_dir()
        self.assertEqual(path.stat().st_mode & 0o777, 0o700)

    def test_no_pid_file(self):
        self.assertIsNone(self.state.read_pid())
        self.assertIsNone(self.state.socket_path())
        self.assertFalse(self.state.is_running())

    def test_pid_round_trip(self):
        self.state.write_pid(os.getpid())
        self.assertEqual(self.state.read_pid(), os.getpid())
        self.assertEqual(self.state.socket_path(), self.state.socket_path_for(os.getpid()))
        self.assertTrue(self.state.is_running())

    def test_pid_with_whitespace(self):
        self.state.ensure_profile_dir()
        self.state.pid_path.write_text(" 77\n")
        self.assertEqual(self.state.read_pid(), 77)

    def test_unparsable_pid(self):
        self.state.ensure_profile_dir()
        for content in ("abc", "", "-5", "0"):
            self.state.pid_path.write_text(content)
            with self.assertRaises(DaemonLifecycleError) as cm:
                self.state.read_pid()
            self.assertIn("Invalid PID", str(cm.exception))

    def test_clear_removes_pair(self):
        self.state.write_pid(555)
        socket_path = self.state.socket_path_for(555)
        socket_path.parent.mkdir(parents=True)
        socket_path.touch()

        self.state.clear()

        self.assertFalse(self.state.pid_path.exists())
        self.assertFalse(socket_path.exists())

    def test_clear_with_explicit_pid(self):
        socket_path = self.state.socket_path_for(556)
        socket_path.parent.mkdir(parents=True)
        socket_path.touch()
        self.state.ensure_profile_dir()
        self.state.pid_path.write_text("garbage")

        self.state.clear(556)

        self.assertFalse(self.state.pid_path.exists())
        self.assertFalse(socket_path.exists())

    def test_clear_when_nothing_exists(self):
        self.state.clear()
        self.assertFalse(self.state.pid_path.exists())


if __name__ == "__main__":
    unittest.main()
