"""
JSON-RPC protocol dispatcher for md2word-mcp.

ProtocolDispatcher turns one decoded request into a DispatchOutcome: the HTTP
status to use and the response envelope, or no envelope at all for
notifications. Framing (plain JSON vs. event stream) is applied afterwards by
the transport module.

Request lifecycle:
- Parse: the body must decode to a JSON object, else -32700 (HTTP 400)
- Classify: a message without an ``id`` member is a notification and is
  acknowledged with HTTP 204 and no body, whatever its method
- Route: the method name is looked up in a static table
  (initialize, ping, tools/list, tools/call); unknown methods get -32601
- Anything unexpected becomes -32603 with the exception message as ``data``

Tool failures (bad arguments, conversion errors) are not protocol errors: they
come back as a normal result whose payload has ``isError: true``.
"""

import copy
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

from . import PROTOCOL_VERSION, SERVER_DESCRIPTION, SERVER_NAME, __version__
from .errors import (
    InternalError,
    InvalidParamsError,
    JsonRpcError,
    MethodNotFoundError,
    ParseError,
)
from .logging_config import get_logger
from .tools.markdown_to_word import ToolExecutor

logger = get_logger(__name__)

JSONRPC_VERSION = "2.0"

SERVER_INFO = {
    "name": SERVER_NAME,
    "version": __version__,
    "description": SERVER_DESCRIPTION,
}

SERVER_CAPABILITIES = {
    "tools": {"list": True, "call": True},
    "resources": {},
    "prompts": {},
}

# Sentinel for "no id member" (distinct from an explicit null id)
_NO_ID = object()


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of dispatching one request.

    Attributes:
        status_code: HTTP status for the response
        envelope: Response envelope, or None when no body must be sent
    """

    status_code: int
    envelope: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return self.envelope is None

    @property
    def is_error(self) -> bool:
        return self.envelope is not None and "error" in self.envelope


def result_envelope(request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_envelope(request_id: Any, error: JsonRpcError) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error.to_dict()}


class ProtocolDispatcher:
    """
    Stateless JSON-RPC method router.

    Usage:
        dispatcher = ProtocolDispatcher(executor)
        outcome = dispatcher.dispatch_body(request_bytes)
        outcome.status_code, outcome.envelope
    """

    def __init__(self, executor: ToolExecutor, mcp_path: str = "/mcp", health_path: str = "/health"):
        """
        Args:
            executor: Runs tool calls (validation, conversion, artifact registration)
            mcp_path: Protocol endpoint path advertised in the discovery payload
            health_path: Health endpoint path advertised in the discovery payload
        """
        self.executor = executor
        self.mcp_path = mcp_path
        self.health_path = health_path
        self._methods: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    @property
    def methods(self):
        return sorted(self._methods)

    def discovery_envelope(self) -> Dict[str, Any]:
        """Envelope answered on GET of the protocol endpoint (no request id)."""
        result = self._initialize({})
        result["transport"] = "StreamableHttp"
        result["endpoints"] = {"tools": self.mcp_path, "health": self.health_path}
        return {"jsonrpc": JSONRPC_VERSION, "result": result}

    def dispatch_body(self, body: Union[bytes, str]) -> DispatchOutcome:
        """Decode a raw request body and dispatch it."""
        try:
            message = json.loads(body) if body else None
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning("jsonrpc_parse_failed", error=str(e))
            return self._error(None, ParseError())
        return self.dispatch(message)

    def dispatch(self, message: Any) -> DispatchOutcome:
        """
        Dispatch a decoded request envelope.

        Args:
            message: Decoded JSON body

        Returns:
            DispatchOutcome with status code and envelope (None for notifications)
        """
        started = time.perf_counter()

        if not isinstance(message, Mapping):
            logger.warning("jsonrpc_invalid_body", body_type=type(message).__name__)
            return self._error(None, ParseError())

        request_id = message.get("id", _NO_ID)
        method = message.get("method")

        if request_id is _NO_ID:
            self._handle_notification(method)
            return DispatchOutcome(status_code=204)

        try:
            handler = self._methods.get(method) if isinstance(method, str) else None
            if handler is None:
                raise MethodNotFoundError()

            params = message.get("params")
            if params is None:
                params = {}
            if not isinstance(params, Mapping):
                raise InvalidParamsError()

            result = handler(dict(params))
            outcome = DispatchOutcome(200, result_envelope(request_id, result))
        except JsonRpcError as e:
            outcome = self._error(request_id, e)
        except Exception as e:
            logger.exception("jsonrpc_internal_error", method=method, request_id=request_id)
            outcome = self._error(request_id, InternalError(data=str(e)))

        logger.info(
            "jsonrpc_request_handled",
            method=method,
            request_id=request_id,
            status_code=outcome.status_code,
            is_error=outcome.is_error,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return outcome

    def _error(self, request_id: Any, error: JsonRpcError) -> DispatchOutcome:
        return DispatchOutcome(error.http_status, error_envelope(request_id, error))

    def _handle_notification(self, method: Any) -> None:
        if method == "notifications/initialized":
            logger.info("client_initialized")
        else:
            logger.info("notification_received", method=method)

    # Method handlers

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        client_info = params.get("clientInfo")
        if client_info:
            logger.info("client_initializing", client=client_info)
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": copy.deepcopy(SERVER_CAPABILITIES),
            "serverInfo": dict(SERVER_INFO),
        }

    def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": self.executor.registry.list_tool_dicts()}

    def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        arguments = params.get("arguments")
        if not isinstance(name, str) or not name or arguments is None:
            raise InvalidParamsError()

        if not self.executor.has_tool(name):
            raise MethodNotFoundError(f"Unknown tool: {name}")

        logger.info("tool_call_received", tool=name)
        return self.executor.call(name, arguments).to_dict()
