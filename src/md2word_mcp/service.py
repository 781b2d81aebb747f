"""
Service wiring for md2word-mcp.

DocumentService builds every component from one Settings object and owns their
lifecycle: start() launches the artifact reaper, shutdown() stops it, deletes
all tracked payloads and releases live connections.
"""

from typing import Dict, Optional

from .artifact_store import ArtifactReaper, ArtifactStore
from .config import Settings
from .connections import LiveConnections
from .converters import ConversionEngine
from .dispatcher import ProtocolDispatcher
from .logging_config import get_logger
from .monitoring import HealthMonitor
from .server import create_mcp_server
from .tool_registry import ToolRegistry, default_registry
from .tools.markdown_to_word import ToolExecutor

logger = get_logger(__name__)


class DocumentService:
    """
    Container for the components behind the HTTP application.

    Usage:
        service = DocumentService(Settings())
        service.start()
        ...
        service.shutdown()
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[ArtifactStore] = None,
        engine: Optional[ConversionEngine] = None,
        registry: Optional[ToolRegistry] = None,
        connections: Optional[LiveConnections] = None,
    ):
        self.settings = settings
        self.store = store if store is not None else ArtifactStore(ttl=settings.file_ttl)
        self.engine = engine if engine is not None else ConversionEngine(
            settings.downloads_dir,
            probe_ttl_seconds=settings.pandoc_probe_ttl_seconds,
        )
        self.registry = registry if registry is not None else default_registry()
        self.connections = connections if connections is not None else LiveConnections()

        self.executor = ToolExecutor(self.registry, self.engine, self.store, settings)
        self.dispatcher = ProtocolDispatcher(
            self.executor,
            mcp_path=settings.route("/mcp"),
            health_path=settings.route("/health"),
        )
        self.reaper = ArtifactReaper(self.store, settings.cleanup_interval_seconds)
        self.health_monitor = HealthMonitor(self.store, self.connections, self.endpoints())
        self.mcp_server = create_mcp_server(self.executor)

    def endpoints(self) -> Dict[str, str]:
        route = self.settings.route
        return {
            "sse": route("/sse"),
            "mcp": route("/mcp"),
            "download": route("/download/{fileId}"),
            "health": route("/health"),
        }

    def start(self) -> None:
        self.reaper.start()

    def shutdown(self) -> Dict[str, int]:
        """
        Stop background work and release resources.

        Returns:
            Counts of artifacts removed and connections released
        """
        self.reaper.stop()
        artifacts_removed = self.store.close_all()
        connections_released = self.connections.close_all()
        logger.info(
            "service_resources_released",
            artifacts_removed=artifacts_removed,
            connections_released=connections_released,
        )
        return {
            "artifacts_removed": artifacts_removed,
            "connections_released": connections_released,
        }
