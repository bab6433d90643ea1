"""Client/server transport for the per-project vigil server.

Architecture:
- protocol.py: JSON line protocol
- client.py: Connect primitive and connection handle (client side)
- server.py: Server process for one project root
- lifecycle.py: Detached start, stop and status of a server
- launcher.py: Runs the 'vigil start' bootstrap on behalf of the client
"""

from vigil.adapters.daemon.client import DaemonConnection, SocketTransport

__all__ = ["DaemonConnection", "SocketTransport"]
