"""
HTTP application for md2word-mcp.

FastAPI app exposing, under the configured base path:

- GET/OPTIONS/POST /mcp          MCP over HTTP (JSON-RPC 2.0, JSON or SSE framing)
- POST /tools/markdown_to_word   simplified REST conversion endpoint
- GET /download/{file_id}        download a converted document
- GET /health, /mcp-info         service status and description
- GET /openapi.json, /docs       generated OpenAPI document and Swagger UI
- GET /sse, POST /messages/      deprecated session-based SSE transport

Run with ``md2word-mcp`` or ``uvicorn md2word_mcp.http_app:app``.
"""

import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import BinaryIO, Iterator, Optional
from urllib.parse import quote

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from mcp.server.sse import SseServerTransport
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import SERVER_DESCRIPTION, SERVER_NAME, __version__
from .artifact_store import LookupStatus
from .config import Settings, settings as default_settings
from .dispatcher import DispatchOutcome
from .info import mcp_info, service_index
from .logging_config import get_logger
from .server import LegacySseEndpoint
from .service import DocumentService
from .tool_registry import MARKDOWN_TO_WORD
from .transport import negotiate, render

logger = get_logger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOWNLOAD_CHUNK_SIZE = 64 * 1024

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Accept, Authorization, Cache-Control",
}


class MarkdownToWordRequest(BaseModel):
    name: Optional[str] = Field(None, description="Document name (file name base, max 100 characters)")
    content: Optional[str] = Field(None, description="Markdown content (max 100,000 characters)")


class MarkdownToWordResponse(BaseModel):
    success: bool = True
    message: str
    downloadUrl: str
    filename: str
    size: int
    expiresAt: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


def _iter_file(handle: BinaryIO, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> Iterator[bytes]:
    with handle:
        while True:
            chunk = handle.read(chunk_size)
            if not chunk:
                break
            yield chunk


def isoformat_z(value: datetime) -> str:
    """UTC timestamp with millisecond precision and a trailing Z."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RequestLoggingMiddleware:
    """Logs method, path, status and duration of every HTTP request.

    Pure ASGI so long-lived event streams pass through untouched.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status = {"code": 500}

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "http_request",
                method=scope.get("method"),
                path=scope.get("path"),
                status_code=status["code"],
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[DocumentService] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service settings (default: environment-driven singleton)
        service: Pre-built component container (default: built from settings)

    Returns:
        Configured FastAPI app; the service is available as ``app.state.service``
    """
    if settings is None:
        settings = service.settings if service is not None else default_settings
    if service is None:
        service = DocumentService(settings)
    route = settings.route

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for server initialization and cleanup.

        Handles:
        - Startup: starts the artifact reaper and logs the endpoints
        - Shutdown: stops the reaper, deletes tracked files, releases SSE connections
        """
        logger.info(
            "server_starting",
            name=SERVER_NAME,
            version=__version__,
            base_url=settings.base_url,
            mcp_endpoint=f"{settings.base_url}{route('/mcp')}",
            downloads_dir=str(settings.downloads_dir),
            file_expiry_minutes=settings.file_expiry_minutes,
            cleanup_interval_minutes=settings.cleanup_interval_minutes,
        )
        service.start()
        try:
            yield
        finally:
            logger.info("server_shutting_down")
            service.shutdown()
            logger.info("server_shutdown_complete")

    app = FastAPI(
        title="MCP Document Service",
        version=__version__,
        description=SERVER_DESCRIPTION,
        openapi_url=route("/openapi.json"),
        docs_url=route("/docs"),
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization", "Cache-Control"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    router = APIRouter(prefix=settings.basepath)

    # MCP over HTTP

    @router.get("/mcp", tags=["mcp"])
    async def mcp_discovery(request: Request) -> Response:
        """Server information and capabilities (StreamableHttp discovery)."""
        framing = negotiate(request.headers.get("accept"))
        outcome = DispatchOutcome(200, service.dispatcher.discovery_envelope())
        response = render(outcome, framing)
        response.headers.update(CORS_HEADERS)
        return response

    @router.options("/mcp", tags=["mcp"])
    async def mcp_preflight() -> Response:
        """CORS preflight."""
        return Response(status_code=200, headers=CORS_HEADERS)

    @router.post("/mcp", tags=["mcp"])
    async def mcp_call(request: Request) -> Response:
        """JSON-RPC 2.0 request: initialize, ping, tools/list, tools/call."""
        framing = negotiate(request.headers.get("accept"))
        body = await request.body()
        outcome = await run_in_threadpool(service.dispatcher.dispatch_body, body)
        response = render(outcome, framing)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    # Simplified REST

    @router.post(
        "/tools/markdown_to_word",
        tags=["tools"],
        response_model=MarkdownToWordResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def markdown_to_word_rest(payload: MarkdownToWordRequest):
        """Convert Markdown to a Word document and return a download link."""
        if not payload.name or not payload.content:
            return JSONResponse(
                {"success": False, "error": "Missing required parameters: name and content"},
                status_code=400,
            )

        try:
            result = service.executor.call(
                MARKDOWN_TO_WORD, {"name": payload.name, "content": payload.content}
            )
        except Exception as e:
            logger.exception("rest_conversion_failed", name=payload.name)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        if result.is_error or result.conversion is None:
            return JSONResponse({"success": False, "error": result.text}, status_code=400)

        conversion = result.conversion
        return MarkdownToWordResponse(
            message="Conversion succeeded",
            downloadUrl=conversion.download_url,
            filename=conversion.filename,
            size=conversion.size_bytes,
            expiresAt=isoformat_z(conversion.expires_at),
        )

    # Artifacts

    @router.get("/download/{file_id}", tags=["files"])
    def download(file_id: str):
        """Download a converted document before it expires."""
        status, artifact = service.store.lookup(file_id)

        if status is LookupStatus.EXPIRED:
            return JSONResponse({"error": "File expired"}, status_code=410)
        if artifact is None:
            return JSONResponse({"error": "File not found or expired"}, status_code=404)

        # The reaper may delete the payload after lookup; an open handle
        # keeps the bytes readable for the rest of the response
        try:
            handle = artifact.storage_path.open("rb")
        except OSError as e:
            logger.warning("download_payload_unavailable", artifact_id=file_id, error=str(e))
            service.store.remove(file_id, reason="payload_missing")
            return JSONResponse({"error": "File not found or expired"}, status_code=404)

        logger.info(
            "download_started",
            artifact_id=file_id,
            filename=artifact.filename,
            display_name=artifact.display_name,
        )
        quoted = quote(f"{artifact.display_name}.docx")
        return StreamingResponse(
            _iter_file(handle),
            media_type=DOCX_MEDIA_TYPE,
            headers={
                "Content-Length": str(os.fstat(handle.fileno()).st_size),
                "Content-Disposition": (
                    f"attachment; filename=\"{quoted}\"; filename*=UTF-8''{quoted}"
                ),
            },
        )

    # Status and description

    @router.get("/health", tags=["status"])
    def health():
        """Liveness plus active file and connection counters."""
        return service.health_monitor.check_health()

    @router.get("/mcp-info", tags=["status"])
    def info():
        """MCP transports, capabilities, tools and request examples."""
        return JSONResponse(mcp_info(settings, service.registry), headers=CORS_HEADERS)

    app.include_router(router)

    @app.get("/", tags=["status"])
    def index():
        """API overview."""
        return service_index(settings, service.registry)

    # Deprecated session-based SSE transport
    sse_transport = SseServerTransport(route("/messages/"))
    app.add_route(
        route("/sse"),
        LegacySseEndpoint(service.mcp_server, sse_transport, service.connections, route("/mcp")),
        methods=["GET"],
        include_in_schema=False,
    )
    app.mount(route("/messages"), app=sse_transport.handle_post_message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                {
                    "error": "Not Found",
                    "message": f"Endpoint {request.url.path} does not exist",
                    "availableEndpoints": list(service.endpoints().values()) + ["/"],
                },
                status_code=404,
            )
        return JSONResponse(
            {"detail": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    return app


# Module-level application (environment-driven settings)
app = create_app()
