"""Tests for adapter factories."""

from pathlib import Path

from vigil.adapters.config.toml_config_provider import TomlConfigProvider
from vigil.adapters.daemon.client import SocketTransport
from vigil.adapters.daemon.launcher import ServerLauncher
from vigil.adapters.daemon.lifecycle import DaemonLifecycle
from vigil.adapters.factory import ConfigFactory, DaemonFactory
from vigil.core.connect import ConnectionOrchestrator
from vigil.core.deadline import Deadline
from vigil.core.progress import ConsoleRetryReporter
from vigil.domain.config import ClientConfig, ServerConfig


def test_lifecycle_uses_server_config(vigil_project: Path) -> None:
    config = ServerConfig(idle_timeout=42, log_level="DEBUG")

    lifecycle = DaemonFactory().create_daemon_lifecycle(vigil_project, config)

    assert isinstance(lifecycle, DaemonLifecycle)
    assert lifecycle.idle_timeout == 42
    assert lifecycle.log_level == "DEBUG"


def test_lifecycle_defaults(vigil_project: Path) -> None:
    lifecycle = DaemonFactory().create_daemon_lifecycle(vigil_project)

    assert lifecycle.idle_timeout == ServerConfig().idle_timeout


def test_orchestrator_wiring() -> None:
    deadline = Deadline()
    config = ClientConfig(retries=7, retry_if_initializing=False, autostart=False)

    orchestrator = DaemonFactory().create_orchestrator(
        config, deadline, client_name="editor", quiet=True
    )

    assert isinstance(orchestrator, ConnectionOrchestrator)
    assert orchestrator.retries == 7
    assert orchestrator.retry_if_initializing is False
    assert orchestrator.autostart is False
    assert orchestrator.deadline is deadline
    assert isinstance(orchestrator.transport, SocketTransport)
    assert orchestrator.transport.client_name == "editor"
    assert isinstance(orchestrator.launcher, ServerLauncher)
    assert orchestrator.launcher.deadline is deadline
    assert isinstance(orchestrator.reporter, ConsoleRetryReporter)
    assert orchestrator.reporter.quiet is True


def test_config_provider() -> None:
    assert isinstance(ConfigFactory().create_config_provider(), TomlConfigProvider)
