"""Domain exceptions for vigil.

These exceptions describe why a connection to the vigil server could not be
established. The transport raises them; the connection orchestrator
classifies them and decides whether to retry, start a server, or give up.
"""


class VigilDomainError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class DaemonConnectError(VigilDomainError):
    """Connection attempt failed for a reason the client does not recognize."""

    pass


class ServerInitializing(DaemonConnectError):
    """Server is running but still warming up."""

    pass


class ServerBusy(DaemonConnectError):
    """Server accepted the connection but did not answer in time."""

    pass


class ServerCantConnect(DaemonConnectError):
    """Server appears to exist but the connection could not be made."""

    pass


class ServerStaleOrMissing(DaemonConnectError):
    """No usable server for this root; starting one may help."""

    pass


class ServerMissing(ServerStaleOrMissing):
    """No server is running for this root."""

    pass


class ServerOutOfDate(ServerStaleOrMissing):
    """A server is running but speaks a different version."""

    pass
