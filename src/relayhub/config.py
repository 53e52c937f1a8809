"""Configuration management for RelayHub."""

import json
import os
import socket
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any


def _default_config_dir() -> Path:
    """Get the default configuration directory."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        base = Path(xdg)
    else:
        base = Path.home() / ".config"
    return base / "relayhub"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 5001
    terminal_host: str = "*"
    terminal_port: int = 5555
    tls_enabled: bool = False
    cert_fingerprint: str = ""
    max_message_size: int = 1_048_576


@dataclass
class AgentConfig:
    server_url: str = "ws://localhost:5001"
    name: str = field(default_factory=socket.gethostname)
    terminal_path: str = ""
    profiles_dir: str = ""  # empty: <terminal dir>/../profiles
    restart_delay: float = 2.0  # seconds between stop and relaunch
    cert_fingerprint: str = ""

    def resolved_profiles_dir(self) -> Path:
        if self.profiles_dir:
            return Path(self.profiles_dir)
        return Path(self.terminal_path).parent / ".." / "profiles"


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)

    @classmethod
    def load(cls, config_dir: Path | None = None) -> "Config":
        """Load configuration from disk, or return defaults."""
        config_dir = config_dir or _default_config_dir()
        config_file = config_dir / "config.json"
        if not config_file.exists():
            return cls()
        data = json.loads(config_file.read_text())
        server_data = data.get("server", {})
        agent_data = data.get("agent", {})
        return cls(
            server=ServerConfig(**{
                k: v for k, v in server_data.items()
                if k in ServerConfig.__dataclass_fields__
            }),
            agent=AgentConfig(**{
                k: v for k, v in agent_data.items()
                if k in AgentConfig.__dataclass_fields__
            }),
        )

    def save(self, config_dir: Path | None = None) -> Path:
        """Save configuration to disk."""
        config_dir = config_dir or _default_config_dir()
        config_dir.mkdir(parents=True, exist_ok=True)
        config_file = config_dir / "config.json"
        data: dict[str, Any] = {
            "server": asdict(self.server),
            "agent": asdict(self.agent),
        }
        config_file.write_text(json.dumps(data, indent=2) + "\n")
        config_file.chmod(0o600)
        return config_file

    @staticmethod
    def config_dir(override: Path | None = None) -> Path:
        return override or _default_config_dir()

    @staticmethod
    def cert_path(config_dir: Path | None = None) -> Path:
        return (config_dir or _default_config_dir()) / "server.crt"

    @staticmethod
    def key_path(config_dir: Path | None = None) -> Path:
        return (config_dir or _default_config_dir()) / "server.key"
