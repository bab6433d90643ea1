"""Config domain models for vigil.

Configuration is stored in the project's .vigilconfig marker file (TOML) and
in an optional global config. This module defines the domain models that
represent validated configuration state.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for connecting to the vigil server.

    Attributes:
        retries: Transient connection failures tolerated before giving up
        retry_if_initializing: Keep waiting while the server is initializing
        autostart: Start the server when none is running for the root
        timeout: Maximum seconds to wait overall (0 = no limit)

    Raises:
        ValueError: If retries or timeout is negative, or a flag is not a bool.
    """

    retries: int = 3
    retry_if_initializing: bool = True
    autostart: bool = True
    timeout: int = 0

    def __post_init__(self) -> None:
        """Validate client config after initialization."""
        if self.retries < 0:
            raise ValueError(f"retries cannot be negative, got {self.retries}")
        if self.timeout < 0:
            raise ValueError(f"timeout cannot be negative, got {self.timeout}")
        for flag in ("retry_if_initializing", "autostart"):
            value = getattr(self, flag)
            if not isinstance(value, bool):
                raise ValueError(f"{flag} must be true or false, got {value!r}")


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the vigil server process.

    Attributes:
        idle_timeout: Seconds of inactivity before the server exits (0 = never)
        log_level: Log level written to the server log file

    Raises:
        ValueError: If idle_timeout is negative.
    """

    idle_timeout: int = 900  # 15 minutes
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def __post_init__(self) -> None:
        """Validate server config after initialization."""
        if self.idle_timeout < 0:
            raise ValueError(
                f"idle_timeout cannot be negative, got {self.idle_timeout}"
            )
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Invalid log_level: {self.log_level}")


@dataclass(frozen=True)
class VigilConfig:
    """Complete vigil configuration.

    Attributes:
        client: Connection and retry configuration
        server: Server process configuration
    """

    client: ClientConfig = field(default_factory=ClientConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @staticmethod
    def default() -> "VigilConfig":
        """Create a config with all default values."""
        return VigilConfig(client=ClientConfig(), server=ServerConfig())

    @staticmethod
    def from_partial(base: "VigilConfig", data: dict[str, Any]) -> "VigilConfig":
        """Overlay partial config data on top of an existing config.

        Only keys present in data replace values from base; unknown sections
        and keys are ignored. Validation runs on every merged section.

        Args:
            base: Config providing values for anything data leaves out
            data: Raw config dictionary (e.g., parsed TOML)

        Returns:
            New VigilConfig with data applied

        Raises:
            ValueError: If a merged section fails validation or a value has
                the wrong type.
        """
        sections = {}
        for section_field in fields(base):
            current = getattr(base, section_field.name)
            overrides = data.get(section_field.name, {})
            if not isinstance(overrides, dict):
                raise ValueError(
                    f"Section [{section_field.name}] must be a table, "
                    f"got {type(overrides).__name__}"
                )
            known = {f.name for f in fields(current)}
            updates = {k: v for k, v in overrides.items() if k in known}
            try:
                sections[section_field.name] = replace(current, **updates)
            except TypeError as e:
                raise ValueError(f"Invalid [{section_field.name}] section: {e}") from e
        return VigilConfig(**sections)
