"""Connect to the vigil server, retrying and autostarting as needed.

Each connection attempt is classified into an AttemptOutcome, and the
outcome decides what happens next:

    CONNECTED         return the handle
    INITIALIZING      wait and try again; does not use up retries
    BUSY              retry after 1s
    CANT_CONNECT      retry after 1s
    STALE_OR_MISSING  start a server (if autostart) and retry after 3s
    UNKNOWN           give up

Every attempt and every retry first checks the deadline, and every wait
goes through it. The loop ends by returning a connected handle or by
raising a VigilCliError carrying the exit code for the failure.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from vigil.core.deadline import Deadline
from vigil.core.errors import (
    no_server_error,
    out_of_retries_error,
    still_initializing_error,
    unknown_connect_error,
)
from vigil.domain.exceptions import (
    DaemonConnectError,
    ServerBusy,
    ServerCantConnect,
    ServerInitializing,
    ServerStaleOrMissing,
)
from vigil.ports.daemon import (
    DaemonHandle,
    DaemonLauncher,
    DaemonTransport,
    RetryReporter,
)

logger = logging.getLogger(__name__)

INITIALIZING_POLL_DELAY = 1
TRANSIENT_RETRY_DELAY = 1
AUTOSTART_RETRY_DELAY = 3

INITIALIZING_MESSAGE = (
    "vigil server still initializing. If it was just started this can take some time."
)
BUSY_MESSAGE = "Error: vigil server is busy, retrying..."
CANT_CONNECT_MESSAGE = "Error: could not connect to vigil server, retrying..."
AUTOSTART_MESSAGE = "The vigil server will be ready in a moment."


class AttemptOutcome(Enum):
    """Classification of a single connection attempt."""

    CONNECTED = "connected"
    INITIALIZING = "initializing"
    BUSY = "busy"
    CANT_CONNECT = "cant_connect"
    STALE_OR_MISSING = "stale_or_missing"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one connection attempt.

    Attributes:
        outcome: How the attempt ended.
        handle: The live connection when outcome is CONNECTED.
        error: The failure otherwise.
    """

    outcome: AttemptOutcome
    handle: DaemonHandle | None = None
    error: Exception | None = None


def attempt_connection(transport: DaemonTransport, root: Path) -> AttemptResult:
    """Make one connection attempt and classify how it went.

    Args:
        transport: Connect primitive
        root: Project root to connect for

    Returns:
        AttemptResult for the attempt. Errors the transport does not
        classify come back as UNKNOWN rather than propagating.
    """
    try:
        handle = transport.connect(root)
    except ServerInitializing as e:
        return AttemptResult(AttemptOutcome.INITIALIZING, error=e)
    except ServerBusy as e:
        return AttemptResult(AttemptOutcome.BUSY, error=e)
    except ServerCantConnect as e:
        return AttemptResult(AttemptOutcome.CANT_CONNECT, error=e)
    except ServerStaleOrMissing as e:
        return AttemptResult(AttemptOutcome.STALE_OR_MISSING, error=e)
    except DaemonConnectError as e:
        return AttemptResult(AttemptOutcome.UNKNOWN, error=e)
    except Exception as e:
        logger.debug("Unclassified connection failure", exc_info=True)
        return AttemptResult(AttemptOutcome.UNKNOWN, error=e)
    return AttemptResult(AttemptOutcome.CONNECTED, handle=handle)


class ConnectionOrchestrator:
    """Retry/backoff state machine for reaching the server of a root."""

    def __init__(
        self,
        transport: DaemonTransport,
        launcher: DaemonLauncher,
        deadline: Deadline,
        reporter: RetryReporter,
        autostart: bool = True,
        retries: int = 3,
        retry_if_initializing: bool = True,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            transport: Connect primitive
            launcher: Starts a server when none is running
            deadline: Deadline checked before every attempt and sleep
            reporter: Receives progress and retry messages
            autostart: Start a server when it is missing or out of date
            retries: Transient failures tolerated before giving up
            retry_if_initializing: Keep waiting while the server initializes.
                With no deadline this waits for as long as initialization
                takes.
        """
        self.transport = transport
        self.launcher = launcher
        self.deadline = deadline
        self.reporter = reporter
        self.autostart = autostart
        self.retries = retries
        self.retry_if_initializing = retry_if_initializing

    def connect(self, root: Path) -> DaemonHandle:
        """Connect to the server for root.

        Args:
            root: Project root

        Returns:
            Live connection handle

        Raises:
            VigilCliError: With the exit code of whichever fatal condition
                ended the attempt (timeout, out of retries, no server,
                failed autostart, unknown failure).
        """
        retries = self.retries

        while True:
            self.deadline.check()
            result = attempt_connection(self.transport, root)
            outcome = result.outcome
            logger.debug(f"Connection attempt for {root}: {outcome.value}")

            if outcome is AttemptOutcome.CONNECTED:
                return result.handle

            if outcome is AttemptOutcome.INITIALIZING:
                if not self.retry_if_initializing:
                    still_initializing_error(INITIALIZING_MESSAGE)
                self.reporter.on_initializing(INITIALIZING_MESSAGE)
                self.deadline.sleep(INITIALIZING_POLL_DELAY)
                continue

            if outcome is AttemptOutcome.BUSY:
                delay, message = TRANSIENT_RETRY_DELAY, BUSY_MESSAGE
            elif outcome is AttemptOutcome.CANT_CONNECT:
                delay, message = TRANSIENT_RETRY_DELAY, CANT_CONNECT_MESSAGE
            elif outcome is AttemptOutcome.STALE_OR_MISSING:
                if not self.autostart:
                    no_server_error(root)
                logger.info(f"Starting server for {root}: {result.error}")
                self.launcher.start(root)
                delay, message = AUTOSTART_RETRY_DELAY, AUTOSTART_MESSAGE
            else:
                logger.error(f"Connection to server failed: {result.error}")
                unknown_connect_error(str(result.error) if result.error else None)

            retries = self._retry(retries, delay, message)

    def _retry(self, retries: int, delay: int, message: str) -> int:
        """Spend one retry: report, sleep, and return the remaining budget."""
        self.deadline.check()
        if retries <= 0:
            out_of_retries_error()
        self.reporter.on_retry(message)
        self.deadline.sleep(delay)
        return retries - 1
