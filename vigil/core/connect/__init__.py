"""Connection orchestration: retries, autostart and deadline handling."""

from vigil.core.connect.orchestrator import (
    AttemptOutcome,
    AttemptResult,
    ConnectionOrchestrator,
    attempt_connection,
)

__all__ = [
    "AttemptOutcome",
    "AttemptResult",
    "ConnectionOrchestrator",
    "attempt_connection",
]
