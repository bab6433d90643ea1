"""CLI error handling with actionable hints and fixed exit codes.

Every fatal condition in vigil ends the process with one of a small set of
exit codes. The factory functions below raise the matching error at the
point where the condition is detected; click prints the message to stderr
and exits with the error's code.
"""

from enum import IntEnum
from pathlib import Path
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Process exit codes that make up vigil's user-visible contract."""

    OK = 0
    FAILURE = 2
    TIMEOUT = 3
    SERVER_START_FAILED = 77


class VigilCliError(click.ClickException):
    """CLI error with actionable hint and explicit exit code.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.
        exit_code: Process exit code click uses when this error reaches it.

    Example:
        raise VigilCliError(
            "Out of retries, exiting!",
            hint="Increase --retries or check 'vigil status'",
        )
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        exit_code: int = ExitCode.FAILURE,
    ) -> None:
        """Initialize the error with message, hint and exit code.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
            exit_code: Process exit code (default: ExitCode.FAILURE).
        """
        super().__init__(message)
        self.hint = hint
        self.exit_code = int(exit_code)

    def format_message(self) -> str:
        """Format the error message with hint if present."""
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def timeout_exceeded_error() -> NoReturn:
    """Raise error when the global deadline has passed.

    Raises:
        VigilCliError: Always raises with ExitCode.TIMEOUT.
    """
    raise VigilCliError("Timeout exceeded, exiting", exit_code=ExitCode.TIMEOUT)


def out_of_retries_error() -> NoReturn:
    """Raise error when the retry budget is exhausted.

    Raises:
        VigilCliError: Always raises with ExitCode.FAILURE.
    """
    raise VigilCliError(
        "Out of retries, exiting!",
        hint="Increase --retries or check 'vigil status'",
    )


def still_initializing_error(message: str) -> NoReturn:
    """Raise error when the server is initializing and waiting is disabled.

    Args:
        message: Description of the initializing server.

    Raises:
        VigilCliError: Always raises with ExitCode.FAILURE.
    """
    raise VigilCliError(f"{message} Try again...")


def no_server_error(root: Path) -> NoReturn:
    """Raise error when no server runs for root and autostart is off.

    Args:
        root: Project root the client tried to connect to.

    Raises:
        VigilCliError: Always raises with ExitCode.FAILURE.
    """
    raise VigilCliError(
        f"There is no vigil server running in '{root}'.",
        hint=f"Run 'vigil start {root}' or drop --no-auto-start",
    )


def unknown_connect_error(detail: str | None = None) -> NoReturn:
    """Raise error for connection failures that could not be classified.

    Args:
        detail: Optional description of the underlying failure.

    Raises:
        VigilCliError: Always raises with ExitCode.FAILURE.
    """
    raise VigilCliError(
        "Something went wrong :(",
        hint=detail or "Run with --verbose for more details",
    )


def server_start_failed_error(detail: str | None = None) -> NoReturn:
    """Raise error when the server bootstrap process fails.

    Args:
        detail: Optional description of the failure.

    Raises:
        VigilCliError: Always raises with ExitCode.SERVER_START_FAILED.
    """
    raise VigilCliError(
        "Could not start vigil server!",
        hint=detail,
        exit_code=ExitCode.SERVER_START_FAILED,
    )


def path_not_found_error(path: str) -> NoReturn:
    """Raise error when the path given for root discovery does not exist.

    Args:
        path: The path that could not be found.

    Raises:
        VigilCliError: Always raises with ExitCode.FAILURE.
    """
    raise VigilCliError(
        f"Could not find file or directory {path}; "
        "canceling search for .vigilconfig.",
        hint='See "vigil init --help" for more info',
    )


def root_not_found_error(directory: str) -> NoReturn:
    """Raise error when no .vigilconfig exists in directory or its parents.

    Args:
        directory: Directory where the search started.

    Raises:
        VigilCliError: Always raises with ExitCode.FAILURE.
    """
    raise VigilCliError(
        f"Could not find a .vigilconfig in {directory} "
        "or any of its parent directories.",
        hint='See "vigil init --help" for more info',
    )
