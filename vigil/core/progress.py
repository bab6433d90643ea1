"""Progress reporting while the client waits for the server.

Provides a Rich-based RetryReporter that writes to stderr, keeping stdout
free for command output.
"""

from itertools import cycle

from rich.console import Console

SPINNER_FRAMES = "-\\|/"


class ConsoleRetryReporter:
    """Rich-based reporter for connection retries.

    "Still initializing" updates rewrite a single line with a spinner;
    retry messages get a line each.
    """

    def __init__(self, console: Console | None = None, quiet: bool = False) -> None:
        """Initialize the reporter.

        Args:
            console: Console to print to (default: stderr console).
            quiet: Suppress all progress output.
        """
        self.console = console or Console(stderr=True, highlight=False)
        self.quiet = quiet
        self._frames = cycle(SPINNER_FRAMES)

    def on_initializing(self, message: str) -> None:
        if self.quiet:
            return
        self.console.print(
            f"{message} Retrying... {next(self._frames)}", end="\r", markup=False
        )

    def on_retry(self, message: str) -> None:
        if self.quiet:
            return
        self.console.print(message, markup=False)
