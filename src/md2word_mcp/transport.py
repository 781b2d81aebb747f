"""
Response framing for the MCP HTTP endpoint.

The caller's Accept header decides how a dispatcher outcome is delivered:

- ``text/event-stream`` accepted: exactly one Server-Sent-Event frame
  (``id``, ``event`` and ``data`` lines, blank-line terminated) with streaming
  headers
- otherwise: the envelope as a plain JSON body

Notifications (no envelope) are sent as an empty body with the outcome's
status code (204) in either framing.
"""

import enum
import json
import time
from typing import Any, Callable, Dict, Optional

from starlette.responses import JSONResponse, Response

from .dispatcher import DispatchOutcome

EVENT_STREAM_MEDIA_TYPE = "text/event-stream"
JSON_MEDIA_TYPE = "application/json"


class Framing(enum.Enum):
    JSON = "json"
    EVENT_STREAM = "event-stream"


def negotiate(accept: Optional[str]) -> Framing:
    """Pick the response framing from an Accept header value."""
    if accept and EVENT_STREAM_MEDIA_TYPE in accept.lower():
        return Framing.EVENT_STREAM
    return Framing.JSON


def framing_headers(framing: Framing) -> Dict[str, str]:
    """Streaming-related headers that go with a framing choice."""
    if framing is Framing.EVENT_STREAM:
        return {"Cache-Control": "no-cache", "Connection": "keep-alive"}
    return {}


def encode_envelope(envelope: Dict[str, Any]) -> str:
    return json.dumps(envelope, ensure_ascii=False, separators=(",", ":"))


def sse_frame(envelope: Dict[str, Any], clock: Callable[[], float] = time.time) -> str:
    """
    Render an envelope as a single SSE frame.

    The event type is ``error`` when the envelope carries an error member and
    ``message`` otherwise. Envelopes without an id (e.g. discovery) use the
    current epoch milliseconds as frame id.
    """
    event_type = "error" if "error" in envelope else "message"
    message_id = envelope.get("id")
    if message_id is None:
        message_id = int(clock() * 1000)
    # A line break inside the id would end the field early and split the frame
    frame_id = str(message_id).replace("\r", "").replace("\n", "")
    return f"id:{frame_id}\nevent:{event_type}\ndata:{encode_envelope(envelope)}\n\n"


def render(outcome: DispatchOutcome, framing: Framing) -> Response:
    """Serialize a dispatcher outcome for delivery."""
    if outcome.envelope is None:
        return Response(status_code=outcome.status_code)

    if framing is Framing.EVENT_STREAM:
        return Response(
            content=sse_frame(outcome.envelope),
            status_code=outcome.status_code,
            media_type=EVENT_STREAM_MEDIA_TYPE,
            headers=framing_headers(framing),
        )

    return JSONResponse(outcome.envelope, status_code=outcome.status_code)
