"""Server lifecycle management (start/stop/status).

Handles spawning, stopping, and monitoring the server process for one
project root. Starting is a bootstrap: the server is spawned detached and
the caller returns as soon as it is clear the process did not die at once.
Whether the server actually became ready is for the next connection
attempt to find out.
"""

import contextlib
import logging
import os
import signal
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from vigil.adapters.daemon.client import (
    DaemonPaths,
    SocketTransport,
    get_daemon_pid,
    is_daemon_running,
    process_alive,
    read_pid_file,
)
from vigil.adapters.daemon.timeouts import DaemonTimeouts
from vigil.domain.exceptions import DaemonConnectError, ServerOutOfDate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerStatus:
    """Snapshot of the server for one root.

    Attributes:
        state: "running", "unresponsive", "stale" or "stopped"
        root: Project root
        pid: Server PID, if known
        paths: Socket, PID and log file locations
        message: One-line explanation of the state
    """

    state: str
    root: Path
    pid: int | None
    paths: DaemonPaths
    message: str

    @property
    def running(self) -> bool:
        return self.state == "running"


class DaemonLifecycle:
    """Server lifecycle manager for one project root."""

    def __init__(
        self,
        root: Path,
        base_dir: Path | None = None,
        idle_timeout: int = 900,
        log_level: str = "INFO",
    ):
        """Initialize lifecycle manager.

        Args:
            root: Project root the server is responsible for
            base_dir: Directory for socket, PID and log files (default: ~/.vigil)
            idle_timeout: Server idle timeout in seconds
            log_level: Server log level
        """
        self.root = root
        self.base_dir = base_dir
        self.paths = DaemonPaths.for_root(root, base_dir)
        self.socket_path = self.paths.socket_path
        self.pid_file = self.paths.pid_file
        self.log_file = self.paths.log_file
        self.idle_timeout = idle_timeout
        self.log_level = log_level

        self.socket_path.parent.mkdir(parents=True, exist_ok=True)

    def is_running(self) -> bool:
        """True if the server for this root answers the handshake."""
        return is_daemon_running(self.root, self.base_dir)

    def handshake_problem(self) -> DaemonConnectError | None:
        """Try the handshake once.

        Returns:
            None if a compatible server answered, else why it did not
        """
        transport = SocketTransport(base_dir=self.base_dir, client_name="lifecycle")
        try:
            with transport.connect(self.root):
                return None
        except DaemonConnectError as e:
            return e

    def get_pid(self) -> int | None:
        return read_pid_file(self.pid_file)

    def is_process_alive(self, pid: int) -> bool:
        """Check if a process is alive, reaping it first if it is our zombie child."""
        with contextlib.suppress(ChildProcessError, OSError):
            os.waitpid(pid, os.WNOHANG)
        return process_alive(pid)

    def _wait_for_death(self, pid: int, timeout_secs: float) -> bool:
        """Poll until pid is gone or timeout_secs have passed.

        Returns:
            True if the process died in time
        """
        interval = DaemonTimeouts.DEATH_CHECK_INTERVAL
        for _ in range(int(timeout_secs / interval)):
            time.sleep(interval)
            if not self.is_process_alive(pid):
                return True
        return False

    def cleanup_stale_files(self) -> None:
        """Remove the PID file of a dead server, and its socket once no PID is left."""
        pid = self.get_pid()
        if pid is not None and not self.is_process_alive(pid):
            logger.info(f"Removing stale PID file (process {pid} not found)")
            self.pid_file.unlink(missing_ok=True)
            pid = None

        if pid is None and self.socket_path.exists():
            logger.info(f"Removing stale socket: {self.socket_path}")
            self.socket_path.unlink(missing_ok=True)

    def server_command(self) -> list[str]:
        """Command line that runs the server in the foreground."""
        cmd = [
            sys.executable,
            "-m",
            "vigil.adapters.daemon",
            "--root",
            str(self.root),
            "--idle-timeout",
            str(self.idle_timeout),
            "--log-level",
            self.log_level,
        ]
        if self.base_dir is not None:
            cmd.extend(["--state-dir", str(self.base_dir)])
        return cmd

    # ========================================================================
    # Start
    # ========================================================================

    def start(self, foreground: bool = False) -> bool:
        """Start the server.

        In background mode this returns once the server process has been
        spawned and survived its first moments; it does not wait for the
        server to become ready. A live server that is incompatible (other
        version or root) is stopped first.

        Args:
            foreground: Run in foreground (for debugging)

        Returns:
            True if started (or already running)

        Raises:
            RuntimeError: If start fails
        """
        problem = self.handshake_problem()
        if problem is None:
            logger.info("Server already running")
            return True
        if isinstance(problem, ServerOutOfDate):
            self._replace_incompatible(problem)

        self.cleanup_stale_files()
        pid = self.get_pid()
        if pid is not None:
            # Alive but initializing or busy: it will answer eventually
            logger.info(f"Server process {pid} already exists")
            return True

        cmd = self.server_command()
        if foreground:
            logger.info("Starting server in foreground...")
            try:
                subprocess.run(cmd, check=True)
            except (OSError, subprocess.CalledProcessError) as e:
                raise RuntimeError(f"Server exited with an error: {e}") from e
            return True

        logger.info(f"Starting server for {self.root} in background...")
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,  # reported if the server dies at once
                start_new_session=True,
                cwd=str(self.root),
            )
        except OSError as e:
            raise RuntimeError(f"Failed to start server: {e}") from e

        try:
            self._record_pid(process)
            self._raise_if_exited(process)
        finally:
            if process.stderr:
                process.stderr.close()
        return True

    def _replace_incompatible(self, problem: ServerOutOfDate) -> None:
        """Stop a live server that a client of this version cannot use."""
        logger.info(f"Replacing incompatible server: {problem.message}")
        if self.get_pid() is None:
            logger.warning(
                "Incompatible server has no PID file; only its socket is removed"
            )
        if not self.stop():
            raise RuntimeError(
                f"Could not stop the incompatible server for {self.root}. "
                f"Check server logs at: {self.log_file}"
            )

    def _record_pid(self, process: subprocess.Popen) -> None:
        try:
            self.pid_file.write_text(str(process.pid))
        except OSError as e:
            # Nobody could find or stop a server without a PID file
            process.terminate()
            raise RuntimeError(f"Failed to write PID file: {e}") from e
        logger.info(f"Server started with PID {process.pid}")

    def _raise_if_exited(self, process: subprocess.Popen) -> None:
        """Give the new process a moment, and fail if it has already exited."""
        time.sleep(DaemonTimeouts.BOOTSTRAP_INSTANT_FAILURE)
        exit_code = process.poll()
        if exit_code is None:
            return

        self.pid_file.unlink(missing_ok=True)
        lines = [f"Server failed to start (exit code: {exit_code})"]
        stderr_output = ""
        if process.stderr:
            try:
                stderr_output = process.stderr.read().decode("utf-8", errors="replace")
            except OSError:
                logger.debug("Failed to read stderr from server process")
        if stderr_output.strip():
            lines.append(f"Stderr: {stderr_output.strip()}")
        lines.append(f"Check server logs at: {self.log_file}")
        raise RuntimeError("\n".join(lines))

    # ========================================================================
    # Stop
    # ========================================================================

    def _terminate(self, pid: int, timeout: float) -> bool:
        """Send SIGTERM, then SIGKILL, until pid is gone.

        Returns:
            True once the process is gone, False if it survived both signals
        """
        escalation = [
            (signal.SIGTERM, float(timeout)),
            (signal.SIGKILL, DaemonTimeouts.SIGKILL_WAIT),
        ]
        for sig, wait in escalation:
            logger.info(f"Sending {sig.name} to server (PID {pid})")
            try:
                os.kill(pid, sig)
            except ProcessLookupError:
                return True
            except OSError as e:
                logger.error(f"Could not signal server (PID {pid}): {e}")
                return not self.is_process_alive(pid)

            if self._wait_for_death(pid, wait):
                logger.info(f"Server stopped after {sig.name}")
                return True
            logger.warning(f"Server (PID {pid}) still alive after {sig.name}")

        logger.error("Server survived SIGKILL! Manual cleanup required.")
        return False

    def stop(self, timeout: int = DaemonTimeouts.SIGTERM_WAIT) -> bool:
        """Stop the server and remove its PID and socket files.

        Args:
            timeout: Seconds to wait after SIGTERM before sending SIGKILL

        Returns:
            True if no server process is left
        """
        pid = self.get_pid()
        if pid is not None and self.is_process_alive(pid):
            if not self._terminate(pid, timeout):
                return False
        else:
            logger.info("Server not running")

        self.cleanup_stale_files()
        return True

    # ========================================================================
    # Status
    # ========================================================================

    def status(self) -> ServerStatus:
        """Describe the server for this root without starting one."""
        pid = self.get_pid()

        if self.is_running():
            if pid is None:
                # PID file lost; the handshake still knows
                pid = get_daemon_pid(self.root, self.base_dir)
            shown = pid if pid is not None else "unknown"
            return self._status("running", pid, f"Server is running (PID {shown})")

        if pid is not None and self.is_process_alive(pid):
            return self._status(
                "unresponsive",
                pid,
                f"Process {pid} exists but is not answering "
                "(it may still be initializing)",
            )
        if self.socket_path.exists() or self.pid_file.exists():
            return self._status("stale", pid, "Stale files found (server not running)")
        return self._status("stopped", None, "Server is not running")

    def _status(self, state: str, pid: int | None, message: str) -> ServerStatus:
        return ServerStatus(
            state=state, root=self.root, pid=pid, paths=self.paths, message=message
        )
