"""Configuration provider port.

Defines the interface for loading and accessing application configuration.
"""

from pathlib import Path
from typing import Protocol

from vigil.domain.config import VigilConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, root: Path) -> VigilConfig:
        """Load configuration for a project root.

        Args:
            root: Project root containing .vigilconfig

        Returns:
            VigilConfig instance with loaded or default values

        Note:
            Implementations should gracefully fall back to defaults
            if config file is missing or invalid.
        """
        ...
