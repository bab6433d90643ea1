"""vigil CLI entrypoint.

Command-line interface for the vigil server client.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from vigil.domain.config import ClientConfig, VigilConfig
    from vigil.ports.daemon import DaemonHandle

from vigil.adapters.daemon.client import DaemonError
from vigil.core.deadline import Deadline
from vigil.core.errors import ExitCode, VigilCliError
from vigil.core.repo_utils import CONFIG_FILENAME, guess_root
from vigil.domain.exceptions import VigilDomainError
from vigil.version import __version__


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    VigilCliError exceptions are re-raised untouched so their exit codes
    survive. Domain, server and runtime errors become VigilCliError with a
    hint; anything else is reported as unexpected.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except VigilCliError:
                raise
            except VigilDomainError as e:
                raise VigilCliError(e.message, hint=e.hint) from e
            except DaemonError as e:
                raise VigilCliError(
                    str(e),
                    hint="Check 'vigil status' or the server log for details",
                ) from e
            except RuntimeError as e:
                raise VigilCliError(
                    str(e),
                    hint="Run with --verbose for more details",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise VigilCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_config(root: Path) -> VigilConfig:
    """Load configuration for the given project root.

    Args:
        root: Project root containing .vigilconfig.

    Returns:
        VigilConfig with merged global and local settings.
    """
    from vigil.adapters.factory import ConfigFactory

    return ConfigFactory().create_config_provider().load(root)


def connection_options(func):
    """Add the options shared by every command that connects to the server."""
    options = [
        click.option(
            "--timeout",
            type=click.IntRange(min=0),
            default=None,
            help="Maximum time to wait, in seconds (0 = no limit).",
        ),
        click.option(
            "--retries",
            type=click.IntRange(min=0),
            default=None,
            help="Set the number of retries. (default: 3)",
        ),
        click.option(
            "--retry-if-init",
            type=bool,
            default=None,
            help="Retry if the server is initializing. (default: true)",
        ),
        click.option(
            "--no-auto-start",
            is_flag=True,
            help="If the server is not running, do not start it; just exit.",
        ),
        click.option(
            "--from",
            "client_name",
            default="",
            help="Specify client (for use by editor plugins).",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _client_config(
    config: ClientConfig,
    timeout: int | None,
    retries: int | None,
    retry_if_init: bool | None,
    no_auto_start: bool,
) -> ClientConfig:
    """Apply command-line overrides on top of the configured client settings."""
    overrides = {}
    if timeout is not None:
        overrides["timeout"] = timeout
    if retries is not None:
        overrides["retries"] = retries
    if retry_if_init is not None:
        overrides["retry_if_initializing"] = retry_if_init
    if no_auto_start:
        overrides["autostart"] = False
    return dataclasses.replace(config, **overrides)


def connect_to_server(
    ctx: click.Context, root: Path, client_config: ClientConfig, client_name: str
) -> DaemonHandle:
    """Connect to the server for root, retrying and autostarting as configured.

    The deadline is armed here, once, before the first attempt.

    Raises:
        VigilCliError: With the exit code of the failure if no connection
            could be made.
    """
    from vigil.adapters.factory import DaemonFactory

    deadline = Deadline.after(client_config.timeout)
    orchestrator = DaemonFactory().create_orchestrator(
        client_config,
        deadline,
        client_name=client_name,
        quiet=ctx.obj.get("quiet", False),
    )
    return orchestrator.connect(root)


@click.group()
@click.version_option(version=__version__, prog_name="vigil")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """vigil - client for the per-project background analysis server.

    Finds the project root (the nearest .vigilconfig), connects to the
    server for that root and starts one if needed.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose)


@cli.command()
@click.argument("root", type=click.Path(file_okay=False), default=".")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing .vigilconfig.",
)
@click.pass_context
@handle_cli_errors("init")
def init(ctx: click.Context, root: str, force: bool) -> None:
    """Mark ROOT as a vigil project by creating .vigilconfig."""
    from vigil.domain.config import VigilConfig
    from vigil.shared.config_io import save_config

    root_path = Path(root).resolve()
    config_path = root_path / CONFIG_FILENAME
    if config_path.exists() and not force:
        raise VigilCliError(
            f"{config_path} already exists",
            hint="Use --force to overwrite it",
        )

    save_config(VigilConfig.default(), config_path)
    if not ctx.obj.get("quiet", False):
        click.echo(f"✓ Initialized vigil project at {root_path}")


@cli.command(name="start")
@click.argument("path", required=False, default=None)
@click.option("--foreground", is_flag=True, help="Run in foreground (blocks).")
@click.pass_context
@handle_cli_errors("start")
def start_server(ctx: click.Context, path: str | None, foreground: bool) -> None:
    """Start a server for the project containing PATH.

    Returns once the server process has been spawned; it keeps running in
    the background.
    """
    from vigil.adapters.factory import DaemonFactory

    root = guess_root(path)
    config = _load_config(root)
    lifecycle = DaemonFactory().create_daemon_lifecycle(root, config.server)

    if foreground:
        click.echo(f"Starting vigil server for {root} in foreground...")
    try:
        lifecycle.start(foreground=foreground)
    except RuntimeError as e:
        raise VigilCliError(
            f"Failed to start server: {e}",
            hint="Check 'vigil status' for details",
            exit_code=ExitCode.SERVER_START_FAILED,
        ) from e

    if not foreground and not ctx.obj.get("quiet", False):
        click.echo(f"✓ Server starting for {root}")


@cli.command(name="stop")
@click.argument("path", required=False, default=None)
@click.pass_context
@handle_cli_errors("stop")
def stop_server(ctx: click.Context, path: str | None) -> None:
    """Stop the server for the project containing PATH."""
    from vigil.adapters.factory import DaemonFactory

    root = guess_root(path)
    lifecycle = DaemonFactory().create_daemon_lifecycle(root)

    if lifecycle.get_pid() is None and not lifecycle.is_running():
        click.echo(f"No vigil server running for {root}")
        return

    click.echo("Stopping server...")
    if lifecycle.stop():
        click.echo("✓ Server stopped successfully")
    else:
        raise VigilCliError(
            "Failed to stop server",
            hint="The process may have already exited. Check 'vigil status'",
        )


@cli.command(name="status")
@click.argument("path", required=False, default=None)
@handle_cli_errors("status")
def server_status(path: str | None) -> None:
    """Show the server status for the project containing PATH.

    Never starts a server.
    """
    from vigil.adapters.factory import DaemonFactory

    root = guess_root(path)
    lifecycle = DaemonFactory().create_daemon_lifecycle(root)
    status = lifecycle.status()

    if status.running:
        click.echo(f"✓ Server is running for {root} (PID {status.pid})")
    else:
        click.echo(f"✗ Server is not running for {root}")

    click.echo("\nDetails:")
    click.echo(f"  Status: {status.state}")
    click.echo(f"  Socket: {status.paths.socket_path}")
    click.echo(f"  PID file: {status.paths.pid_file}")
    click.echo(f"  Log file: {status.paths.log_file}")

    if not status.running:
        click.echo(f"\n{status.message}")


@cli.command()
@click.argument("path", required=False, default=None)
@connection_options
@click.pass_context
@handle_cli_errors("ping")
def ping(
    ctx: click.Context,
    path: str | None,
    timeout: int | None,
    retries: int | None,
    retry_if_init: bool | None,
    no_auto_start: bool,
    client_name: str,
) -> None:
    """Connect to the server for the project containing PATH and ping it.

    Starts the server first unless --no-auto-start is given.
    """
    root = guess_root(path)
    config = _load_config(root)
    client_config = _client_config(
        config.client, timeout, retries, retry_if_init, no_auto_start
    )

    with connect_to_server(ctx, root, client_config, client_name) as conn:
        if not conn.ping():
            raise VigilCliError(
                "Server answered the handshake but not the ping",
                hint="Check 'vigil status' or the server log for details",
            )
        pid = conn.server_pid
    click.echo(f"✓ vigil server for {root} is ready (PID {pid})")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
