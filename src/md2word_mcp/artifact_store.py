"""
Ephemeral artifact registry for md2word-mcp.

This module provides the ArtifactStore class, which tracks converted documents
awaiting download. Each artifact is keyed by an opaque id and expires a fixed
TTL after creation.

Key behaviors:
- Dual eviction: expired or orphaned entries are dropped lazily on lookup and
  eagerly by the periodic reaper (ArtifactReaper)
- Idempotent removal: deleting an id that is already gone is a no-op
- Single index lock: insert/lookup/delete are serialized by one threading.Lock;
  payload deletion and filesystem checks happen outside the lock
- Best-effort cleanup: payload deletion failures are logged, never raised
"""

import enum
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .logging_config import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Artifact:
    """A produced document waiting to be downloaded."""

    id: str
    storage_path: Path
    display_name: str
    created_at: datetime
    expires_at: datetime
    size_bytes: int = 0

    @property
    def filename(self) -> str:
        return self.storage_path.name

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class LookupStatus(enum.Enum):
    FOUND = "found"
    MISSING = "missing"
    EXPIRED = "expired"


class ArtifactStore:
    """
    In-memory registry of produced files with expiry timestamps.

    The store exclusively owns the payload files it tracks: once an artifact is
    removed (by lookup, reaping or shutdown), its payload is deleted.

    Usage:
        store = ArtifactStore(ttl=timedelta(minutes=30))
        artifact_id = store.put("Report", Path("downloads/Report_abc.docx"))
        artifact = store.get(artifact_id)  # None once expired
    """

    def __init__(
        self,
        ttl: timedelta,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        """
        Initialize an empty store.

        Args:
            ttl: Lifetime of each artifact, measured from registration
            clock: Returns the current time (timezone-aware); injectable for tests
            id_factory: Produces fresh artifact ids
        """
        self.ttl = ttl
        self._clock = clock
        self._id_factory = id_factory
        self._artifacts: Dict[str, Artifact] = {}
        self._lock = threading.Lock()

        # Metrics
        self.total_created = 0
        self.total_evicted = 0

    def new_id(self) -> str:
        """Generate an id for a payload that is about to be registered."""
        return self._id_factory()

    def put(
        self,
        display_name: str,
        payload_path: Path,
        artifact_id: Optional[str] = None,
    ) -> str:
        """Register a materialized payload and return its id (see register())."""
        return self.register(display_name, payload_path, artifact_id).id

    def register(
        self,
        display_name: str,
        payload_path: Path,
        artifact_id: Optional[str] = None,
    ) -> Artifact:
        """
        Register a materialized payload.

        Args:
            display_name: Sanitized logical name used for Content-Disposition
            payload_path: Location of the written document
            artifact_id: Id reserved with new_id() (generated when omitted)

        Returns:
            The registered Artifact

        Raises:
            KeyError: If the id is already registered
        """
        payload_path = Path(payload_path)
        artifact_id = artifact_id or self._id_factory()
        try:
            size_bytes = payload_path.stat().st_size
        except OSError:
            size_bytes = 0

        created_at = self._clock()
        artifact = Artifact(
            id=artifact_id,
            storage_path=payload_path,
            display_name=display_name,
            created_at=created_at,
            expires_at=created_at + self.ttl,
            size_bytes=size_bytes,
        )

        with self._lock:
            if artifact_id in self._artifacts:
                raise KeyError(f"Artifact id already registered: {artifact_id}")
            self._artifacts[artifact_id] = artifact
            self.total_created += 1
            active_count = len(self._artifacts)

        logger.info(
            "artifact_stored",
            artifact_id=artifact_id,
            filename=artifact.filename,
            size_bytes=size_bytes,
            expires_at=artifact.expires_at.isoformat(),
            active_count=active_count,
        )
        return artifact

    def lookup(self, artifact_id: str) -> Tuple[LookupStatus, Optional[Artifact]]:
        """
        Look up an artifact and report why it is absent when it is.

        Stale hits (expired, or payload no longer on disk) are removed from the
        index and their payload deleted before returning.

        Returns:
            (FOUND, artifact), (EXPIRED, None) or (MISSING, None)
        """
        with self._lock:
            artifact = self._artifacts.get(artifact_id)

        if artifact is None:
            return LookupStatus.MISSING, None

        if artifact.is_expired(self._clock()):
            self.remove(artifact_id, reason="expired_on_lookup")
            return LookupStatus.EXPIRED, None

        if not artifact.storage_path.exists():
            self.remove(artifact_id, reason="payload_missing")
            return LookupStatus.MISSING, None

        return LookupStatus.FOUND, artifact

    def get(self, artifact_id: str) -> Optional[Artifact]:
        """Return the artifact if it is live, else None (lazy eviction)."""
        _, artifact = self.lookup(artifact_id)
        return artifact

    def remove(self, artifact_id: str, reason: str = "removed") -> bool:
        """
        Drop an artifact from the index and delete its payload.

        Returns:
            True if this call removed the entry, False if it was already gone
        """
        with self._lock:
            artifact = self._artifacts.pop(artifact_id, None)
            if artifact is not None:
                self.total_evicted += 1

        if artifact is None:
            return False

        _delete_payload(artifact.storage_path)
        logger.debug("artifact_removed", artifact_id=artifact_id, reason=reason)
        return True

    def reap(self) -> int:
        """
        Evict every expired artifact.

        Takes a snapshot of the index under the lock, then removes expired
        entries one at a time so lookups are never blocked for the whole scan.

        Returns:
            Number of artifacts this call evicted
        """
        now = self._clock()
        with self._lock:
            expired = [
                artifact_id
                for artifact_id, artifact in self._artifacts.items()
                if artifact.is_expired(now)
            ]

        removed = 0
        for artifact_id in expired:
            if self.remove(artifact_id, reason="reaped"):
                removed += 1

        logger.info("artifact_reap_complete", removed=removed, active_count=len(self))
        return removed

    def close_all(self) -> int:
        """
        Remove every tracked artifact (cleanup for server shutdown).

        Returns:
            Number of artifacts removed
        """
        removed = 0
        for artifact_id in self.ids():
            if self.remove(artifact_id, reason="shutdown"):
                removed += 1
        return removed

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._artifacts.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._artifacts)

    def __contains__(self, artifact_id: object) -> bool:
        with self._lock:
            return artifact_id in self._artifacts

    def get_metrics(self) -> Dict:
        """
        Get store metrics for observability.

        Returns:
            Dictionary with active_count, total_created and total_evicted
        """
        with self._lock:
            active_count = len(self._artifacts)

        return {
            "active_count": active_count,
            "total_created": self.total_created,
            "total_evicted": self.total_evicted,
        }


def _delete_payload(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("artifact_payload_delete_failed", path=str(path), error=str(e))


class ArtifactReaper:
    """
    Background thread that calls ArtifactStore.reap() on a fixed period.

    The timer runs independently of request traffic. start() and stop() are
    idempotent, so the reaper can be driven from an application lifespan.
    """

    def __init__(self, store: ArtifactStore, interval_seconds: float):
        self.store = store
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="artifact-reaper", daemon=True
        )
        self._thread.start()
        logger.info("artifact_reaper_started", interval_seconds=self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("artifact_reaper_stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.store.reap()
            except Exception as e:
                # Keep the timer alive; the next tick retries.
                logger.error("artifact_reap_failed", error=str(e), error_type=type(e).__name__)
