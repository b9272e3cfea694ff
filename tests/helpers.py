"""Shared fixtures for the test suite."""

import json
import os
import shutil
import sys
import tempfile
from pathlib import Path

from mcpcli.core.configs import EngineProfile, Settings

FAKE_ENGINE = Path(__file__).parent / "fake_engine.py"
REPO_ROOT = Path(__file__).resolve().parent.parent


def fake_profile(supports_daemon: bool = True, **overrides) -> EngineProfile:
    values = dict(
        command=(sys.executable, str(FAKE_ENGINE)),
        default_args=(),
        supports_daemon=supports_daemon,
        description="Scripted test engine",
        env={},
    )
    values.update(overrides)
    return EngineProfile(**values)


class TempWorkspace:
    """Temporary config file, profile root and socket dir."""

    def __init__(self):
        # Short base path: Unix socket paths are limited to ~100 bytes
        self.root = Path(tempfile.mkdtemp(prefix="mcp"))
        self.config_path = self.root / "mcp-servers.json"
        self.settings = Settings(
            config_path=self.config_path,
            profile_root=self.root / "p",
            socket_dir=self.root / "s",
            ipc_timeout=10.0,
        )

    def write_config(self, profiles: dict) -> Path:
        self.config_path.write_text(json.dumps(profiles))
        return self.config_path

    def environ(self) -> dict:
        """Environment that makes child processes use this workspace."""
        pythonpath = os.environ.get("PYTHONPATH", "")
        return {
            "MCPCLI_CONFIG": str(self.config_path),
            "MCPCLI_PROFILE_ROOT": str(self.settings.profile_root),
            "MCPCLI_SOCKET_DIR": str(self.settings.socket_dir),
            "PYTHONPATH": os.pathsep.join(p for p in (str(REPO_ROOT), pythonpath) if p),
        }

    def cleanup(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)


FAKE_CONFIG = {
    "fake": {
        "command": [sys.executable, str(FAKE_ENGINE)],
        "default_args": ["--profile", "{profile_dir}"],
        "supports_daemon": True,
        "description": "Scripted test engine",
        "env": {"FAKE_ENGINE_VAR": "from-config"},
    },
    "nodaemon": {
        "command": [sys.executable, str(FAKE_ENGINE)],
        "description": "",
    },
}
