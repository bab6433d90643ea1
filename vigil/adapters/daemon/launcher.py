"""Server autostart on behalf of a connecting client.

The launcher re-invokes vigil with 'start ROOT' and blocks until that
bootstrap process exits. The bootstrap spawns the real server detached and
exits straight away, so success here only means a server was spawned; the
client's next connection attempt checks whether it is actually up.
"""

import logging
import subprocess
import sys
from pathlib import Path

import click

from vigil.core.deadline import Deadline
from vigil.core.errors import server_start_failed_error, timeout_exceeded_error

logger = logging.getLogger(__name__)

STDERR_FILENO = 2


def default_vigil_command() -> list[str]:
    """Command that runs the vigil CLI with the current interpreter."""
    return [sys.executable, "-m", "vigil.entrypoints.cli"]


class ServerLauncher:
    """Starts a server via the 'vigil start' bootstrap (implements DaemonLauncher)."""

    def __init__(self, deadline: Deadline, command: list[str] | None = None):
        """Initialize the launcher.

        Args:
            deadline: Bounds the wait for the bootstrap process
            command: vigil CLI command prefix (default: current interpreter)
        """
        self.deadline = deadline
        self.command = command or default_vigil_command()

    def bootstrap_command(self, root: Path) -> list[str]:
        return [*self.command, "start", str(root)]

    def start(self, root: Path) -> None:
        """Run the bootstrap for root and wait for it to exit.

        The bootstrap's output goes to this process's stderr.

        Args:
            root: Project root to start a server for

        Raises:
            VigilCliError: ExitCode.SERVER_START_FAILED if the bootstrap
                cannot be run or exits non-zero; ExitCode.TIMEOUT if the
                deadline passes while waiting for it.
        """
        click.echo(f"vigil server launched for {root}", err=True)
        self.deadline.check()

        cmd = self.bootstrap_command(root)
        logger.debug(f"Running bootstrap: {cmd}")
        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=STDERR_FILENO,
                timeout=self.deadline.remaining(),
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Server bootstrap did not finish before the deadline")
            timeout_exceeded_error()
        except OSError as e:
            logger.error(f"Failed to run server bootstrap: {e}")
            server_start_failed_error(str(e))

        if result.returncode != 0:
            logger.error(f"Server bootstrap exited with status {result.returncode}")
            server_start_failed_error(
                f"'vigil start' exited with status {result.returncode}; "
                "see 'vigil status' for details"
            )
