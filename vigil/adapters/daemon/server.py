"""vigil server process for one project root.

The server:
1. Binds the root's Unix socket as soon as it starts
2. Warms up in a background thread, answering handshakes with
   "initializing" until that finishes
3. Serves one client connection at a time; clients that cannot get a
   handshake answer in time treat the server as busy
4. Auto-shuts down after idle timeout (default 15 minutes)
"""

import logging
import os
import signal
import socket
import threading
import time
from pathlib import Path
from typing import Any

from vigil.adapters.daemon.protocol import (
    BAD_REQUEST,
    INITIALIZING,
    INTERNAL_ERROR,
    OUT_OF_DATE,
    UNKNOWN_METHOD,
    ProtocolError,
    Request,
    Response,
    read_message,
    send_message,
)
from vigil.adapters.daemon.timeouts import DaemonTimeouts
from vigil.version import __version__

logger = logging.getLogger(__name__)

SKIPPED_DIRS = {".git", ".hg", ".svn", "node_modules", "__pycache__"}


class DaemonServer:
    """Server answering vigil clients for a single project root."""

    def __init__(
        self,
        root: Path,
        socket_path: Path,
        idle_timeout: int = 900,
        version: str = __version__,
    ):
        """Initialize the server.

        Args:
            root: Project root this server is responsible for
            socket_path: Path to Unix socket
            idle_timeout: Seconds of inactivity before shutdown (0 = never)
            version: Version clients must match
        """
        self.root = root
        self.socket_path = socket_path
        self.idle_timeout = idle_timeout
        self.version = version

        self.server_socket: socket.socket | None = None
        self.started_at = time.time()
        self.last_activity = self.started_at
        self.running = False
        self.requests_served = 0
        self.files_seen = 0
        self.ready = threading.Event()

    def install_signal_handlers(self) -> None:
        """Stop serving on SIGTERM or SIGINT."""

        def request_shutdown(signum, frame):
            logger.info(f"Got {signal.Signals(signum).name}, stopping")
            self.running = False

        for sig in (signal.SIGTERM, signal.SIGINT):
            signal.signal(sig, request_shutdown)

    def warm_up(self) -> None:
        """Walk the project tree once before accepting real work."""
        logger.info(f"Initializing server for {self.root}...")
        start = time.time()
        try:
            count = 0
            for _dirpath, dirnames, filenames in os.walk(self.root):
                dirnames[:] = [d for d in dirnames if d not in SKIPPED_DIRS]
                count += len(filenames)
            self.files_seen = count
            logger.info(f"Indexed {count} files in {time.time() - start:.2f}s")
        except OSError:
            logger.exception("Failed to walk project tree")
        finally:
            self.ready.set()

    def start_warm_up(self) -> threading.Thread:
        thread = threading.Thread(target=self.warm_up, name="vigil-warm-up", daemon=True)
        thread.start()
        return thread

    def create_socket(self) -> None:
        """Create and bind the Unix socket.

        Raises:
            OSError: If the socket cannot be bound
        """
        if self.socket_path.exists():
            logger.warning(f"Removing stale socket: {self.socket_path}")
            self.socket_path.unlink()

        self.socket_path.parent.mkdir(parents=True, exist_ok=True)

        self.server_socket = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.server_socket.bind(str(self.socket_path))
        self.server_socket.listen(5)
        self.server_socket.settimeout(DaemonTimeouts.SERVER_ACCEPT)

        logger.info(f"Listening on {self.socket_path}")

    def handle_hello(self, request: Request) -> Response:
        """Answer the connection handshake."""
        client_version = request.params.get("version")
        if client_version != self.version:
            return Response.failure(
                code=OUT_OF_DATE,
                message=f"Server version {self.version} does not match client {client_version}",
                request_id=request.id,
            )
        if not self.ready.is_set():
            return Response.failure(
                code=INITIALIZING,
                message="vigil server still initializing.",
                request_id=request.id,
            )
        client = request.params.get("client") or "unknown"
        logger.debug(f"Handshake from client '{client}'")
        return Response.success(
            {"pid": os.getpid(), "root": str(self.root), "version": self.version},
            request_id=request.id,
        )

    def handle_request(self, request: Request) -> Response:
        """Handle a request on an established connection."""
        try:
            if request.method == "ping":
                return Response.success("pong", request_id=request.id)
            elif request.method == "status":
                return Response.success(self.status(), request_id=request.id)
            elif request.method == "stop":
                logger.info("Stop requested by client")
                self.running = False
                return Response.success("stopping", request_id=request.id)
            else:
                return Response.failure(
                    code=UNKNOWN_METHOD,
                    message=f"Unknown method: {request.method}",
                    request_id=request.id,
                )
        except Exception as e:
            logger.exception(f"Error handling request: {e}")
            return Response.failure(
                code=INTERNAL_ERROR, message=f"Internal error: {e}", request_id=request.id
            )

    def status(self) -> dict[str, Any]:
        return {
            "pid": os.getpid(),
            "root": str(self.root),
            "version": self.version,
            "uptime": time.time() - self.started_at,
            "requests_served": self.requests_served,
            "files": self.files_seen,
        }

    def handle_client(self, client_socket: socket.socket) -> None:
        """Serve one client connection until it closes.

        The first message must be a successful hello; otherwise the reply
        explains why and the connection is closed.
        """
        client_socket.settimeout(DaemonTimeouts.SERVER_CLIENT_IDLE)
        reader = client_socket.makefile("rb")
        try:
            hello = read_message(reader, Request)
            if hello is None:
                return
            self.last_activity = time.time()
            if hello.method != "hello":
                send_message(
                    client_socket,
                    Response.failure(BAD_REQUEST, "Expected hello", request_id=hello.id),
                )
                return
            response = self.handle_hello(hello)
            send_message(client_socket, response)
            if response.is_error():
                return

            while self.running:
                request = read_message(reader, Request)
                if request is None:
                    break
                self.last_activity = time.time()
                self.requests_served += 1
                logger.debug(f"Received request: {request.method}")
                send_message(client_socket, self.handle_request(request))

        except TimeoutError:
            logger.debug("Dropping idle client connection")
        except ProtocolError as e:
            logger.error(f"Protocol error: {e}")
            try:
                send_message(client_socket, Response.failure(BAD_REQUEST, str(e)))
            except ProtocolError:
                logger.debug("Failed to send error response")
        finally:
            reader.close()
            client_socket.close()

    def idle_expired(self) -> bool:
        """True once no client has been seen for idle_timeout seconds."""
        if self.idle_timeout <= 0:
            return False
        idle_for = time.time() - self.last_activity
        if idle_for < self.idle_timeout:
            return False
        logger.info(f"No clients for {idle_for:.0f}s (limit {self.idle_timeout}s)")
        return True

    def serve_forever(self) -> None:
        """Accept and serve clients one at a time until stopped or idle."""
        if self.server_socket is None:
            raise RuntimeError("create_socket() must be called before serving")

        self.running = True
        logger.info("vigil server accepting clients")
        while self.running:
            try:
                client_socket, _ = self.server_socket.accept()
            except TimeoutError:
                if self.idle_expired():
                    break
                continue
            except OSError as e:
                if not self.running:
                    break
                logger.exception(f"accept() failed: {e}")
                time.sleep(DaemonTimeouts.SERVER_ERROR_BACKOFF)
                continue
            self.handle_client(client_socket)

        self.running = False
        logger.info("vigil server stopped")

    def cleanup(self) -> None:
        """Close the listening socket and remove its file."""
        if self.server_socket is not None:
            self.server_socket.close()
            self.server_socket = None
        self.socket_path.unlink(missing_ok=True)
        logger.info(f"Removed socket {self.socket_path}")

    def run(self) -> None:
        """Bind, warm up and serve; the socket is always removed on the way out."""
        self.install_signal_handlers()
        try:
            self.create_socket()
            self.start_warm_up()
            self.serve_forever()
        finally:
            self.cleanup()
