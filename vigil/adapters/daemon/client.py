"""Client side of the vigil server transport.

Opens a Unix socket to the server responsible for a project root, performs
the hello handshake and turns every way that can fail into one of the
domain's DaemonConnectError subclasses. The connection orchestrator decides
what to do about each of them.
"""

import contextlib
import hashlib
import logging
import os
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vigil.adapters.daemon.protocol import (
    INITIALIZING,
    OUT_OF_DATE,
    ProtocolError,
    Request,
    Response,
    read_message,
    send_message,
)
from vigil.adapters.daemon.timeouts import DaemonTimeouts
from vigil.domain.exceptions import (
    DaemonConnectError,
    ServerBusy,
    ServerCantConnect,
    ServerInitializing,
    ServerMissing,
    ServerOutOfDate,
)
from vigil.version import __version__

logger = logging.getLogger(__name__)


# ============================================================================
# Per-root file layout
# ============================================================================


def state_dir() -> Path:
    """Directory holding server sockets, PID files and logs.

    Defaults to ~/.vigil; the VIGIL_HOME environment variable overrides it.
    """
    override = os.environ.get("VIGIL_HOME")
    return Path(override) if override else Path.home() / ".vigil"


@dataclass(frozen=True)
class DaemonPaths:
    """Socket, PID and log file locations for one project root.

    Files are named after a digest of the root so that any number of
    projects can have servers side by side and socket paths stay short.
    """

    socket_path: Path
    pid_file: Path
    log_file: Path

    @classmethod
    def for_root(cls, root: Path, base_dir: Path | None = None) -> "DaemonPaths":
        base = base_dir or state_dir()
        digest = hashlib.sha256(str(root).encode("utf-8")).hexdigest()[:16]
        return cls(
            socket_path=base / f"{digest}.sock",
            pid_file=base / f"{digest}.pid",
            log_file=base / f"{digest}.log",
        )


def read_pid_file(pid_file: Path) -> int | None:
    """Read a PID file.

    Returns:
        PID if the file exists and holds an integer, else None
    """
    try:
        return int(pid_file.read_text().strip())
    except (OSError, ValueError):
        return None


def process_alive(pid: int) -> bool:
    """Check whether a process exists (signal 0 probe)."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but belongs to someone else
        return True
    except OSError:
        return False
    return True


# ============================================================================
# Connection handle
# ============================================================================


class DaemonError(Exception):
    """A request on an established connection failed."""

    pass


class DaemonConnection:
    """Live, handshaken connection to the server for one project root.

    Usable as a context manager; closing it closes the socket.
    """

    def __init__(self, sock: socket.socket, root: Path, server_info: dict[str, Any]):
        self.root = root
        self.server_info = server_info
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._next_id = 2  # 1 was the handshake

    @property
    def server_pid(self) -> int | None:
        pid = self.server_info.get("pid")
        return pid if isinstance(pid, int) else None

    def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a request and wait for its result.

        Args:
            method: Method name
            params: Method parameters

        Returns:
            The response's result value

        Raises:
            DaemonError: If the request fails or the server reports an error
        """
        request = Request(method=method, params=params, request_id=self._next_id)
        self._next_id += 1
        self._sock.settimeout(DaemonTimeouts.SOCKET_OPERATION)
        try:
            send_message(self._sock, request)
            response = read_message(self._reader, Response)
        except (ProtocolError, OSError) as e:
            raise DaemonError(f"Server communication failed: {e}") from e

        if response is None:
            raise DaemonError("Server closed the connection")
        if response.is_error():
            raise DaemonError(f"Server error: {response.error_message}")
        return response.result

    def ping(self) -> bool:
        return self.request("ping") == "pong"

    def status(self) -> dict[str, Any]:
        return self.request("status")

    def close(self) -> None:
        with contextlib.suppress(OSError):
            self._reader.close()
        with contextlib.suppress(OSError):
            self._sock.close()

    def __enter__(self) -> "DaemonConnection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# ============================================================================
# Transport
# ============================================================================


class SocketTransport:
    """Connect primitive for the vigil server (implements DaemonTransport)."""

    def __init__(
        self,
        base_dir: Path | None = None,
        client_name: str = "",
        version: str = __version__,
    ) -> None:
        """Initialize the transport.

        Args:
            base_dir: Directory holding server sockets (default: state_dir())
            client_name: Identifies the caller to the server (e.g., an editor)
            version: Version the server must match
        """
        self.base_dir = base_dir
        self.client_name = client_name
        self.version = version

    def paths_for(self, root: Path) -> DaemonPaths:
        return DaemonPaths.for_root(root, self.base_dir)

    def connect(self, root: Path) -> DaemonConnection:
        """Connect and handshake with the server for root.

        Args:
            root: Project root

        Returns:
            Connected DaemonConnection

        Raises:
            ServerMissing: No server socket, or a stale one left by a dead server
            ServerCantConnect: Socket exists but the connection failed
            ServerBusy: Connected but the handshake went unanswered
            ServerInitializing: Server is still warming up
            ServerOutOfDate: Server runs a different version
            DaemonConnectError: Anything else
        """
        paths = self.paths_for(root)
        if not paths.socket_path.exists():
            raise ServerMissing(f"No server socket at {paths.socket_path}")

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(DaemonTimeouts.SOCKET_CONNECT)
            self._open(sock, paths)
            info = self._handshake(sock, root)
        except Exception:
            with contextlib.suppress(OSError):
                sock.close()
            raise

        logger.debug(f"Connected to server for {root} (PID {info.get('pid')})")
        return DaemonConnection(sock, root, info)

    def _open(self, sock: socket.socket, paths: DaemonPaths) -> None:
        try:
            sock.connect(str(paths.socket_path))
        except FileNotFoundError as e:
            raise ServerMissing(f"Server socket disappeared: {paths.socket_path}") from e
        except ConnectionRefusedError as e:
            pid = read_pid_file(paths.pid_file)
            if pid is None or not process_alive(pid):
                raise ServerMissing(
                    f"Stale server socket at {paths.socket_path}"
                ) from e
            raise ServerCantConnect(f"Server (PID {pid}) refused connection") from e
        except TimeoutError as e:
            raise ServerBusy("Timed out connecting to server") from e
        except OSError as e:
            raise ServerCantConnect(f"Could not connect to server: {e}") from e

    def _handshake(self, sock: socket.socket, root: Path) -> dict[str, Any]:
        sock.settimeout(DaemonTimeouts.SOCKET_HANDSHAKE)
        hello = Request(
            method="hello",
            params={"version": self.version, "client": self.client_name},
        )
        try:
            send_message(sock, hello)
            with sock.makefile("rb") as reader:
                response = read_message(reader, Response)
        except TimeoutError as e:
            raise ServerBusy("Server did not answer the handshake in time") from e
        except ProtocolError as e:
            if isinstance(e.__cause__, (BrokenPipeError, ConnectionResetError)):
                raise ServerCantConnect(f"Server dropped the connection: {e}") from e
            raise DaemonConnectError(f"Handshake failed: {e}") from e

        if response is None:
            raise ServerCantConnect("Server closed the connection during handshake")

        if response.is_error():
            code = response.error_code
            if code == INITIALIZING:
                raise ServerInitializing(response.error_message)
            if code == OUT_OF_DATE:
                raise ServerOutOfDate(response.error_message)
            raise DaemonConnectError(f"Handshake rejected: {response.error_message}")

        info = response.result
        if not isinstance(info, dict):
            raise DaemonConnectError("Malformed handshake reply")
        if info.get("version") != self.version:
            raise ServerOutOfDate(
                f"Server version {info.get('version')} does not match client {self.version}"
            )
        if info.get("root") not in (None, str(root)):
            raise ServerOutOfDate(f"Server is serving {info.get('root')}, not {root}")
        return info


def is_daemon_running(root: Path, base_dir: Path | None = None) -> bool:
    """Check whether a healthy, ready server is running for root.

    Args:
        root: Project root
        base_dir: Directory holding server sockets (default: state_dir())

    Returns:
        True if the server answered the handshake
    """
    try:
        with SocketTransport(base_dir=base_dir, client_name="status").connect(root):
            return True
    except DaemonConnectError:
        return False


def get_daemon_pid(root: Path, base_dir: Path | None = None) -> int | None:
    """Get the server PID from its handshake reply.

    This recovers the PID even if the PID file is missing.

    Returns:
        Server PID if running and ready, None otherwise
    """
    try:
        with SocketTransport(base_dir=base_dir, client_name="status").connect(root) as conn:
            return conn.server_pid
    except DaemonConnectError:
        return None
