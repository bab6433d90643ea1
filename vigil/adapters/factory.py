"""Factories wiring adapters into core objects.

Keeps the CLI free of construction details and of eager imports.
"""

from pathlib import Path

from vigil.core.deadline import Deadline
from vigil.domain.config import ClientConfig, ServerConfig
from vigil.ports.config import ConfigProvider


class DaemonFactory:
    """Factory for creating server-related instances."""

    def create_daemon_lifecycle(
        self, root: Path, server_config: ServerConfig | None = None
    ):
        """Create a DaemonLifecycle instance for root.

        Args:
            root: Project root.
            server_config: Server settings (default: built-in defaults).

        Returns:
            DaemonLifecycle instance.
        """
        from vigil.adapters.daemon.lifecycle import DaemonLifecycle

        server_config = server_config or ServerConfig()
        return DaemonLifecycle(
            root=root,
            idle_timeout=server_config.idle_timeout,
            log_level=server_config.log_level,
        )

    def create_orchestrator(
        self,
        client_config: ClientConfig,
        deadline: Deadline,
        client_name: str = "",
        quiet: bool = False,
    ):
        """Create a ConnectionOrchestrator using the socket transport.

        Args:
            client_config: Retry, autostart and initializing settings.
            deadline: Deadline for the whole connection sequence.
            client_name: Name the client reports to the server.
            quiet: Suppress progress output.

        Returns:
            ConnectionOrchestrator instance.
        """
        from vigil.adapters.daemon.client import SocketTransport
        from vigil.adapters.daemon.launcher import ServerLauncher
        from vigil.core.connect import ConnectionOrchestrator
        from vigil.core.progress import ConsoleRetryReporter

        return ConnectionOrchestrator(
            transport=SocketTransport(client_name=client_name),
            launcher=ServerLauncher(deadline),
            deadline=deadline,
            reporter=ConsoleRetryReporter(quiet=quiet),
            autostart=client_config.autostart,
            retries=client_config.retries,
            retry_if_initializing=client_config.retry_if_initializing,
        )


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self) -> ConfigProvider:
        """Create a TomlConfigProvider instance."""
        from vigil.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()
