"""Port interfaces for talking to and starting the vigil server.

Defines the protocols the connection orchestrator depends on, so the retry
logic can be exercised without sockets or subprocesses.
"""

from pathlib import Path
from typing import Any, Protocol


class DaemonHandle(Protocol):
    """A live connection to the server for one project root."""

    root: Path

    @property
    def server_pid(self) -> int | None:
        """PID the server reported during the handshake."""
        ...

    def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a request and return its result."""
        ...

    def ping(self) -> bool:
        """Check the server still answers on this connection."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...

    def __enter__(self) -> "DaemonHandle": ...

    def __exit__(self, *exc_info) -> None: ...


class DaemonTransport(Protocol):
    """Protocol for opening connections to the server."""

    def connect(self, root: Path) -> DaemonHandle:
        """Connect to the server for root.

        Args:
            root: Project root the server is responsible for

        Returns:
            Connected handle

        Raises:
            DaemonConnectError: Or one of its subclasses, describing why the
                connection could not be established.
        """
        ...


class DaemonLauncher(Protocol):
    """Protocol for starting a server for a project root."""

    def start(self, root: Path) -> None:
        """Start a server for root and wait for the bootstrap to finish.

        Returns only if the bootstrap succeeded; any failure ends the
        invocation with ExitCode.SERVER_START_FAILED.
        """
        ...


class RetryReporter(Protocol):
    """Protocol for user feedback while the client waits for the server."""

    def on_initializing(self, message: str) -> None:
        """Called each time the server reports it is still initializing."""
        ...

    def on_retry(self, message: str) -> None:
        """Called before sleeping ahead of a retry that uses up budget."""
        ...
