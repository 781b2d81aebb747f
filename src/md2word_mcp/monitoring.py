"""
Health monitoring for md2word-mcp server.

Provides HealthMonitor class that reports liveness together with the counters
that matter for this service: active artifacts awaiting download and open
streaming connections. Process and system memory come from psutil.

Status logic:
- "degraded": System memory above the configured threshold
- "ok": Otherwise
"""

from datetime import datetime, timezone
from typing import Dict, List

import psutil

from .artifact_store import ArtifactStore
from .connections import LiveConnections
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthMonitor:
    """
    Health monitor with a configurable memory threshold.

    check_health() returns a JSON-ready dict for the /health endpoint.
    """

    def __init__(
        self,
        store: ArtifactStore,
        connections: LiveConnections,
        endpoints: Dict[str, str],
        memory_threshold_percent: float = 90.0,
    ):
        """
        Initialize health monitor.

        Args:
            store: Artifact store whose size is reported as activeFiles
            connections: Live connection registry reported as sseConnections
            endpoints: Endpoint paths echoed in the health payload
            memory_threshold_percent: System memory % above which status is "degraded"
        """
        self.store = store
        self.connections = connections
        self.endpoints = endpoints
        self.memory_threshold_percent = memory_threshold_percent

    def check_health(self) -> Dict:
        """
        Check server health and return metrics.

        Returns:
            Dictionary with keys:
            - status: "ok" | "degraded"
            - timestamp: ISO-8601 UTC timestamp
            - activeFiles: Artifacts currently tracked
            - sseConnections: Open streaming connections
            - endpoints: Endpoint paths
            - artifacts: Lifetime store counters
            - process: process_memory_mb and system_memory_percent
            - alerts: List of actionable alert messages (empty if ok)
        """
        process = psutil.Process()
        process_memory_mb = process.memory_info().rss / (1024 * 1024)
        system_memory_percent = psutil.virtual_memory().percent

        alerts: List[str] = []
        status = "ok"

        if system_memory_percent > self.memory_threshold_percent:
            status = "degraded"
            alerts.append(
                f"System memory at {system_memory_percent:.1f}% "
                f"(threshold: {self.memory_threshold_percent:.1f}%)"
            )
            logger.warning(
                "health_check_warning",
                status=status,
                process_memory_mb=process_memory_mb,
                system_memory_percent=system_memory_percent,
                alerts=alerts,
            )

        return {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "activeFiles": len(self.store),
            "sseConnections": len(self.connections),
            "endpoints": dict(self.endpoints),
            "artifacts": self.store.get_metrics(),
            "process": {
                "process_memory_mb": round(process_memory_mb, 1),
                "system_memory_percent": system_memory_percent,
            },
            "alerts": alerts,
        }
