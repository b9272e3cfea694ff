"""Configuration management for mcp-cli.

Loads server profiles from ~/.config/mcpcli/mcp-servers.json
Provides EngineProfile (how to launch one engine) and Settings (paths and
timeouts, overridable through environment variables).
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import dotenv_values

from mcpcli.core.errors import ConfigError
from mcpcli.core.templates import DEFAULT_PROFILE_ROOT

# Default location for the profile registry.
CONFIG_PATH = Path.home() / ".config" / "mcpcli" / "mcp-servers.json"

DEFAULT_IPC_TIMEOUT = 30.0


@dataclass(frozen=True)
class EngineProfile:
    command: Tuple[str, ...]
    default_args: Tuple[str, ...] = ()
    supports_daemon: bool = False
    description: str = ""
    env: Dict[str, str] = field(default_factory=dict)
    env_file: Optional[str] = None

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "EngineProfile":
        """
        Build a profile from its JSON form.

        Raises:
            ConfigError: If a field has the wrong shape
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Profile '{name}' must be a JSON object")

        command = data.get("command")
        if not _is_str_list(command) or not command:
            raise ConfigError(
                f"Profile '{name}': 'command' must be a non-empty list of strings"
            )

        default_args = data.get("default_args", [])
        if not _is_str_list(default_args):
            raise ConfigError(f"Profile '{name}': 'default_args' must be a list of strings")

        supports_daemon = data.get("supports_daemon", False)
        if not isinstance(supports_daemon, bool):
            raise ConfigError(f"Profile '{name}': 'supports_daemon' must be true or false")

        description = data.get("description", "")
        if not isinstance(description, str):
            raise ConfigError(f"Profile '{name}': 'description' must be a string")

        env = data.get("env", {})
        if not isinstance(env, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in env.items()
        ):
            raise ConfigError(f"Profile '{name}': 'env' must map strings to strings")

        env_file = data.get("env_file")
        if env_file is not None and not isinstance(env_file, str):
            raise ConfigError(f"Profile '{name}': 'env_file' must be a string")

        return cls(
            command=tuple(command),
            default_args=tuple(default_args),
            supports_daemon=supports_daemon,
            description=description,
            env=dict(env),
            env_file=env_file,
        )

    def resolved_env(self) -> Dict[str, str]:
        """
        Environment overrides for the engine process.

        Values from ``env_file`` are applied first, explicit ``env`` wins.
        """
        values: Dict[str, str] = {}
        if self.env_file:
            path = Path(self.env_file).expanduser()
            if not path.exists():
                raise ConfigError(f"env_file not found: {path}")
            values.update(
                {k: v for k, v in dotenv_values(path).items() if v is not None}
            )
        values.update(self.env)
        return values


@dataclass
class Settings:
    config_path: Path = CONFIG_PATH
    profile_root: Path = DEFAULT_PROFILE_ROOT
    socket_dir: Path = field(
        default_factory=lambda: Path(tempfile.gettempdir()) / ".mcp"
    )
    ipc_timeout: float = DEFAULT_IPC_TIMEOUT


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def get_settings() -> Settings:
    """
    Build Settings from the environment.

    MCPCLI_CONFIG, MCPCLI_PROFILE_ROOT, MCPCLI_SOCKET_DIR and
    MCPCLI_IPC_TIMEOUT_S override the defaults.
    """
    settings = Settings()

    config_env = os.environ.get("MCPCLI_CONFIG")
    if config_env:
        settings.config_path = Path(config_env).expanduser()

    root_env = os.environ.get("MCPCLI_PROFILE_ROOT")
    if root_env:
        settings.profile_root = Path(root_env).expanduser()

    socket_env = os.environ.get("MCPCLI_SOCKET_DIR")
    if socket_env:
        settings.socket_dir = Path(socket_env).expanduser()

    timeout_env = os.environ.get("MCPCLI_IPC_TIMEOUT_S")
    if timeout_env is not None and timeout_env.strip() != "":
        try:
            settings.ipc_timeout = float(timeout_env)
        except ValueError as e:
            raise ConfigError(f"Invalid MCPCLI_IPC_TIMEOUT_S: '{timeout_env}'") from e

    return settings


def load_profiles(path: Optional[Path] = None) -> Dict[str, EngineProfile]:
    """
    Load every profile from the registry file.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    path = path or get_settings().config_path

    if not path.exists():
        raise ConfigError(
            f"Configuration file not found: {path}\nCreate it with server profiles."
        )

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Failed to read config: {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config: {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a JSON object of server profiles: {path}")

    return {name: EngineProfile.from_dict(name, data) for name, data in raw.items()}


def get_profile(name: str, path: Optional[Path] = None) -> EngineProfile:
    """Look up one profile by server name."""
    profiles = load_profiles(path)
    if name not in profiles:
        raise ConfigError(f"Server '{name}' not found in config")
    return profiles[name]
