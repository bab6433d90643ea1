"""Run the vigil server for one project root.

Usage:
    python -m vigil.adapters.daemon --root PATH [--state-dir DIR]
        [--idle-timeout SECONDS] [--log-level LEVEL]

'vigil start' launches this detached; it can also be run by hand to debug.
"""

import argparse
import logging
import sys
from pathlib import Path

from vigil.adapters.daemon.client import DaemonPaths
from vigil.adapters.daemon.server import DaemonServer

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m vigil.adapters.daemon", description="vigil server"
    )
    parser.add_argument("--root", type=Path, required=True, help="Project root")
    parser.add_argument(
        "--state-dir",
        type=Path,
        default=None,
        help="Directory for socket, PID and log files (default: VIGIL_HOME)",
    )
    parser.add_argument(
        "--idle-timeout",
        type=int,
        default=900,
        help="Seconds without clients before exiting (0 = never)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    return parser.parse_args(argv)


def configure_logging(log_file: Path, level: str) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handlers: list[logging.Handler] = [logging.FileHandler(log_file)]
    # Detached servers lose their stderr pipe once the bootstrap exits
    if sys.stderr.isatty():
        handlers.append(logging.StreamHandler())
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    root = args.root.resolve()
    paths = DaemonPaths.for_root(root, args.state_dir)
    configure_logging(paths.log_file, args.log_level)

    server = DaemonServer(
        root=root, socket_path=paths.socket_path, idle_timeout=args.idle_timeout
    )
    try:
        server.run()
    except OSError as e:
        logger.exception(f"Server for {root} failed: {e}")
        print(f"vigil server failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
