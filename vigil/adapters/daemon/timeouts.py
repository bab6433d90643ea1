"""Centralized timeout configuration for server operations.

All server-related waits are defined here so they can be tuned in one place.
"""


class DaemonTimeouts:
    """Centralized timeout configuration for client and server operations.

    All values are in seconds.

    Groups:
        SOCKET_*: Client socket operation timeouts
        BOOTSTRAP_*: Detached server startup
        SIGTERM_* / SIGKILL_*: Shutdown
        SERVER_*: Server-side timeouts
    """

    # =========================================================================
    # Client Socket Timeouts
    # =========================================================================

    SOCKET_CONNECT: float = 1.0
    """Timeout for connect() on the server socket.

    The server listens on a local Unix socket, so a connect that takes
    longer than this means the server is wedged rather than slow.
    """

    SOCKET_HANDSHAKE: float = 2.0
    """Time allowed for the server to answer the hello handshake.

    The server handles one client at a time. A client that gets no answer
    within this window treats the server as busy and retries.
    """

    SOCKET_OPERATION: float = 30.0
    """Timeout for requests sent on an established connection."""

    # =========================================================================
    # Detached Startup
    # =========================================================================

    BOOTSTRAP_INSTANT_FAILURE: float = 0.1
    """Pause after spawning the server to catch processes that die at once.

    The bootstrap does not wait for the server to become ready; the
    client's retried connection attempt verifies that.
    """

    # =========================================================================
    # Shutdown
    # =========================================================================

    SIGTERM_WAIT: int = 10
    """Time to wait for graceful shutdown after SIGTERM."""

    SIGKILL_WAIT: float = 2.5
    """Time to wait after sending SIGKILL."""

    DEATH_CHECK_INTERVAL: float = 0.5
    """Interval between checks when waiting for process death."""

    # =========================================================================
    # Server-Side Timeouts
    # =========================================================================

    SERVER_ACCEPT: float = 1.0
    """Timeout for server accept() calls.

    Bounds how long the server goes without checking for idle timeout and
    shutdown signals.
    """

    SERVER_CLIENT_IDLE: float = 60.0
    """How long the server keeps an established connection open without a
    request before dropping it, so one idle client cannot block the rest."""

    SERVER_ERROR_BACKOFF: float = 0.1
    """Pause after a failed accept() before trying again."""
