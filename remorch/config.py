"""Configuration management for remorch-connect."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


DEFAULT_WEB_BASE = "https://koshikawa-masato.github.io/remorch-web/"


@dataclass
class ConnectionConfig:
    """What the companion app is told about this machine."""

    port: int = 22
    scheme: str = "remorch"  # custom URL scheme handled by the app
    web_base: str = DEFAULT_WEB_BASE


@dataclass
class NetworkConfig:
    """Address selection configuration."""

    overlay_cli: str = "tailscale"
    overlay_patterns: list[str] = field(
        default_factory=lambda: ["tailscale", "utun"]
    )
    timeout: float = 5.0


@dataclass
class TmuxConfig:
    """Tmux server configuration."""

    socket_name: Optional[str] = None  # None uses the default tmux server


@dataclass
class QrConfig:
    """QR code rendering options."""

    open_image: bool = True
    box_size: int = 10
    border: int = 2


@dataclass
class OutputConfig:
    """Terminal output options."""

    color: bool = True


@dataclass
class ShellConfig:
    """Alias installation options."""

    launcher: str = "remorch-connect"
    tools: list[str] = field(default_factory=lambda: ["claude", "gemini", "codex"])


@dataclass
class Config:
    """Main configuration container."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    tmux: TmuxConfig = field(default_factory=TmuxConfig)
    qr: QrConfig = field(default_factory=QrConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)


def get_config_path() -> Path:
    """Get the configuration file path."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config) / "remorch-connect" / "config.yaml"


def _section(data: dict, name: str) -> dict:
    """Return a config section, which must be a mapping if present."""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping, got {type(section).__name__}")
    return section


def _string_list(section: dict, key: str, name: str) -> list[str]:
    value = section.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"'{name}.{key}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, with defaults for missing values.

    Raises:
        ValueError: If the file doesn't have the expected shape
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping")

    config = Config()

    # Connection config
    conn_data = _section(data, "connection")
    config.connection.port = int(conn_data.get("port", config.connection.port))
    config.connection.scheme = conn_data.get("scheme", config.connection.scheme)
    config.connection.web_base = conn_data.get(
        "web_base", config.connection.web_base
    )

    # Network config
    net_data = _section(data, "network")
    config.network.overlay_cli = net_data.get(
        "overlay_cli", config.network.overlay_cli
    )
    if "overlay_patterns" in net_data:
        config.network.overlay_patterns = _string_list(net_data, "overlay_patterns", "network")
    config.network.timeout = float(
        net_data.get("timeout", config.network.timeout)
    )

    # Tmux config
    tmux_data = _section(data, "tmux")
    config.tmux.socket_name = tmux_data.get(
        "socket_name", config.tmux.socket_name
    )

    # QR config
    qr_data = _section(data, "qr")
    config.qr.open_image = qr_data.get("open_image", config.qr.open_image)
    config.qr.box_size = int(qr_data.get("box_size", config.qr.box_size))
    config.qr.border = int(qr_data.get("border", config.qr.border))

    # Output config
    out_data = _section(data, "output")
    config.output.color = out_data.get("color", config.output.color)

    # Shell config
    shell_data = _section(data, "shell")
    config.shell.launcher = shell_data.get("launcher", config.shell.launcher)
    if "tools" in shell_data:
        config.shell.tools = _string_list(shell_data, "tools", "shell")

    return config
