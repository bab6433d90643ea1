"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of VigilConfig to/from
TOML format. The project config lives in the .vigilconfig file that also
marks the project root.
"""

import os
import platform
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from vigil.domain.config import VigilConfig


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/vigil/config.toml or ~/.config/vigil/config.toml
    - Windows: %APPDATA%/vigil/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "vigil" / "config.toml"
        return Path.home() / ".config" / "vigil" / "config.toml"
    else:
        xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
        if xdg_config:
            return Path(xdg_config) / "vigil" / "config.toml"
        return Path.home() / ".config" / "vigil" / "config.toml"


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    An empty .vigilconfig is valid and yields an empty dict.

    Args:
        path: Path to the config file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def config_to_data(config: VigilConfig) -> dict[str, Any]:
    """Convert a VigilConfig to a plain dictionary of TOML sections."""
    return {
        "client": {
            "retries": config.client.retries,
            "retry_if_initializing": config.client.retry_if_initializing,
            "autostart": config.client.autostart,
            "timeout": config.client.timeout,
        },
        "server": {
            "idle_timeout": config.server.idle_timeout,
            "log_level": config.server.log_level,
        },
    }


def load_config(path: Path) -> VigilConfig:
    """Load configuration from a TOML file on top of the defaults.

    Args:
        path: Path to the config file

    Returns:
        Parsed VigilConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    data = load_config_data(path)
    return VigilConfig.from_partial(VigilConfig.default(), data)


def save_config(config: VigilConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: VigilConfig to save
        path: Destination path (usually <root>/.vigilconfig)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)
