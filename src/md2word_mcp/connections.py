"""
Live connection tracking for md2word-mcp.

Long-lived streaming connections (the legacy SSE endpoint) register here so
that the health endpoint can report them and shutdown can release them.
Each connection carries a close callback; detaching is idempotent and never
blocks other connections.
"""

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, Optional

from .logging_config import get_logger

logger = get_logger(__name__)


def _noop() -> None:
    return None


@dataclass
class LiveConnection:
    id: str
    kind: str
    opened_at: datetime
    close: Callable[[], None] = field(default=_noop, repr=False)


class LiveConnections:
    """
    Thread-safe set of open streaming connections.

    Usage:
        with connections.track("sse", close=cancel_scope.cancel):
            await serve_stream()
    """

    def __init__(self):
        self._connections: Dict[str, LiveConnection] = {}
        self._lock = threading.Lock()

        # Metrics
        self.total_opened = 0

    def open(self, kind: str, close: Optional[Callable[[], None]] = None) -> LiveConnection:
        connection = LiveConnection(
            id=uuid.uuid4().hex,
            kind=kind,
            opened_at=datetime.now(timezone.utc),
            close=close or _noop,
        )
        with self._lock:
            self._connections[connection.id] = connection
            self.total_opened += 1
            active_count = len(self._connections)

        logger.info("connection_opened", connection_id=connection.id, kind=kind, active_count=active_count)
        return connection

    def detach(self, connection_id: str) -> bool:
        """Forget a connection. Returns False if it was already detached."""
        with self._lock:
            connection = self._connections.pop(connection_id, None)
            active_count = len(self._connections)

        if connection is None:
            return False

        duration = (datetime.now(timezone.utc) - connection.opened_at).total_seconds()
        logger.info(
            "connection_closed",
            connection_id=connection_id,
            kind=connection.kind,
            duration_seconds=round(duration, 3),
            active_count=active_count,
        )
        return True

    @contextmanager
    def track(self, kind: str, close: Optional[Callable[[], None]] = None) -> Iterator[LiveConnection]:
        connection = self.open(kind, close)
        try:
            yield connection
        except Exception as e:
            logger.warning(
                "connection_error",
                connection_id=connection.id,
                kind=kind,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            self.detach(connection.id)

    def close_all(self) -> int:
        """
        Release every tracked connection (cleanup for server shutdown).

        Returns:
            Number of connections released
        """
        with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()

        for connection in connections:
            try:
                connection.close()
            except Exception as e:
                logger.warning("connection_close_failed", connection_id=connection.id, error=str(e))

        if connections:
            logger.info("connections_released", count=len(connections))
        return len(connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
