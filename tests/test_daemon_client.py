"""Tests for DaemonClient: socket resolution, transport failures, error kinds."""

import os
import socket
import threading
import unittest
from unittest import mock

from mcpcli.core.errors import IpcError, ProtocolError, ToolError
from mcpcli.core.protocol import encode
from mcpcli.daemon.client import DaemonClient
from tests.helpers import TempWorkspace


class ScriptedDaemon:
    """Accepts one connection and answers with a fixed payload."""

    def __init__(self, path, payload: bytes):
        self.path = path
        self.payload = payload
        self.received = None
        path.parent.mkdir(parents=True, exist_ok=True)
        self.sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.sock.bind(str(path))
        self.sock.listen()
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    def _serve(self):
        conn, _ = self.sock.accept()
        with conn:
            with conn.makefile("rb") as reader:
                self.received = reader.readline()
            if self.payload:
                conn.sendall(self.payload)

    def close(self):
        self.thread.join(timeout=5)
        self.sock.close()


class TestDaemonClient(unittest.TestCase):
    def setUp(self):
        self.workspace = TempWorkspace()
        self.client = DaemonClient("fake", self.workspace.settings, timeout=5)

    def tearDown(self):
        self.workspace.cleanup()

    def _serve(self, payload: bytes) -> ScriptedDaemon:
        self.client.state.write_pid(os.getpid())
        daemon = ScriptedDaemon(self.client.state.socket_path_for(os.getpid()), payload)
        self.addCleanup(daemon.close)
        return daemon

    def test_timeout_from_settings(self):
        client = DaemonClient("fake", self.workspace.settings)
        self.assertEqual(client.timeout, 10.0)

    def test_not_running(self):
        with self.assertRaises(IpcError) as cm:
            self.client.call_tool("echo", {})
        self.assertIn("not started", str(cm.exception))

    def test_stale_state_is_cleaned(self):
        """Test that a dead daemon's PID file and socket are removed on lookup."""
        self.client.state.write_pid(999999)
        socket_path = self.client.state.socket_path_for(999999)
        socket_path.parent.mkdir(parents=True)
        socket_path.touch()

        with mock.patch("mcpcli.daemon.state.probe_pid", return_value=False):
            with self.assertRaises(IpcError):
                self.client.resolve_socket_path()
        self.assertFalse(self.client.state.pid_path.exists())
        self.assertFalse(socket_path.exists())

    def test_unreadable_pid_file(self):
        self.client.state.ensure_profile_dir()
        self.client.state.pid_path.write_text("nonsense")
        with self.assertRaises(IpcError):
            self.client.resolve_socket_path()

    def test_live_pid_without_socket(self):
        self.client.state.write_pid(os.getpid())
        with self.assertRaises(IpcError) as cm:
            self.client.call_tool("echo", {})
        self.assertIn("Failed to connect", str(cm.exception))

    def test_result(self):
        daemon = self._serve(encode({"jsonrpc": "2.0", "id": 1, "result": {"ok": True}}))
        self.assertEqual(self.client.call_tool("echo", {"a": 1}), {"ok": True})
        daemon.close()
        self.assertIn(b'"method":"tools/call"', daemon.received)
        self.assertIn(b'"arguments":{"a":1}', daemon.received)

    def test_tool_error_kind(self):
        self._serve(encode({"jsonrpc": "2.0", "id": 1, "error": {"message": "Tool error: boom", "kind": "tool"}}))
        with self.assertRaises(ToolError) as cm:
            self.client.call_tool("fail", {})
        self.assertEqual(str(cm.exception), "Tool error: boom")

    def test_protocol_error_kind(self):
        self._serve(encode({"jsonrpc": "2.0", "id": 1, "error": {"message": "MCP error: x", "kind": "protocol"}}))
        with self.assertRaises(ProtocolError) as cm:
            self.client.list_tools()
        self.assertNotIsInstance(cm.exception, ToolError)

    def test_daemon_error_kind(self):
        self._serve(encode({"jsonrpc": "2.0", "id": 1, "error": {"message": "Unknown method: x", "kind": "daemon"}}))
        with self.assertRaises(IpcError) as cm:
            self.client.request("x")
        self.assertIn("Unknown method", str(cm.exception))

    def test_error_without_kind(self):
        self._serve(encode({"jsonrpc": "2.0", "id": 1, "error": {"message": "odd"}}))
        with self.assertRaises(IpcError):
            self.client.list_tools()

    def test_empty_reply(self):
        self._serve(b"")
        with self.assertRaises(IpcError) as cm:
            self.client.list_tools()
        self.assertIn("without responding", str(cm.exception))

    def test_garbage_reply(self):
        self._serve(b"not json\n")
        with self.assertRaises(IpcError) as cm:
            self.client.list_tools()
        self.assertIn("Invalid JSON-RPC response", str(cm.exception))

    def test_read_timeout(self):
        self.client.timeout = 0.1
        self.client.state.write_pid(os.getpid())
        path = self.client.state.socket_path_for(os.getpid())
        path.parent.mkdir(parents=True)
        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.addCleanup(listener.close)
        listener.bind(str(path))
        listener.listen()

        with self.assertRaises(IpcError) as cm:
            self.client.list_tools()
        self.assertIn("Timed out", str(cm.exception))

    def test_connect_refused_is_ipc_error(self):
        self.client.state.write_pid(os.getpid())
        with mock.patch("socket.socket.connect", side_effect=ConnectionRefusedError()):
            with self.assertRaises(IpcError):
                self.client.list_tools()


if __name__ == "__main__":
    unittest.main()
